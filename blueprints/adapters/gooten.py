"""Gooten catalog adapter.

Gooten attaches printable areas to each variant; they are grouped by
location so a blueprint lists each print location once.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping

from blueprints.adapters.base import (
    BaseProviderAdapter,
    default_production_time,
    group_print_areas,
    image_type,
    lowest_price,
    now_iso,
    stock_level,
    string_attributes,
)
from blueprints.models import (
    Blueprint,
    BlueprintMetadata,
    BlueprintPricing,
    BlueprintSearchParams,
    PriceInfo,
    ProductImage,
    ProductVariant,
)


class GootenAdapter(BaseProviderAdapter):
    provider_id = "gooten"
    listing_endpoint = "products"
    listing_key = "items"
    not_found_key = "productId"

    def pagination_params(self, params: BlueprintSearchParams) -> Dict[str, Any]:
        return {"page": params.page, "pageSize": params.limit}

    def normalize_blueprint(self, data: Mapping[str, Any]) -> Blueprint:
        native_variants: List[Mapping[str, Any]] = data.get("variants") or []
        variants = [self._normalize_variant(variant) for variant in native_variants]
        currency = variants[0].price.currency if variants else "USD"
        product_type = data.get("productType") or ""
        timestamp = now_iso()

        images = sorted(data.get("images") or [], key=lambda image: image.get("index", 0))

        return Blueprint(
            id=str(data["id"]),
            provider_id=self.id,
            sku=str(data.get("templateId") or ""),
            name=data["name"],
            description=data.get("description") or data.get("shortDescription") or "",
            category=product_type,
            subcategory=str(data["categoryId"]) if data.get("categoryId") else None,
            variants=variants,
            printing_options=group_print_areas(
                (
                    {
                        "location": area.get("location") or area["name"],
                        "width": area["width"],
                        "height": area["height"],
                        "dpi": area["fileSpecs"]["dpi"],
                        "file_types": area["fileSpecs"].get("fileTypes"),
                    }
                    for variant in native_variants
                    for area in variant.get("printableAreas") or []
                ),
                technique="print",
            ),
            images=[
                ProductImage(
                    id=f"{data['id']}-{position}",
                    url=image["url"],
                    position=int(image.get("index", position)),
                    type=image_type(image.get("type")),
                )
                for position, image in enumerate(images)
            ],
            production_time=default_production_time(),
            pricing=BlueprintPricing(base=PriceInfo(amount=lowest_price(variants), currency=currency)),
            metadata=BlueprintMetadata(
                created_at=timestamp,
                updated_at=timestamp,
                is_active=True,
                tags=[product_type] if product_type else [],
            ),
        )

    def _normalize_variant(self, variant: Mapping[str, Any]) -> ProductVariant:
        price = variant["price"]
        stock = variant.get("stock") or {}
        return ProductVariant(
            id=str(variant["id"]),
            sku=variant.get("sku") or "",
            name=variant.get("name") or "",
            attributes=string_attributes(variant.get("options")),
            stock=stock_level(bool(stock.get("available")), stock.get("quantity")),
            price=PriceInfo(amount=float(price["amount"]), currency=price.get("currency") or "USD"),
        )
