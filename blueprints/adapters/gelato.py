"""Gelato catalog adapter."""

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


def _pick_price(prices: List[Mapping[str, Any]]) -> Mapping[str, Any]:
    """USD when listed, otherwise the first price."""
    if not prices:
        raise ValueError("variant has no prices")
    for price in prices:
        if price.get("currency") == "USD":
            return price
    return prices[0]


class GelatoAdapter(BaseProviderAdapter):
    provider_id = "gelato"
    listing_endpoint = "products"
    listing_key = "items"
    not_found_key = "productId"

    def pagination_params(self, params: BlueprintSearchParams) -> Dict[str, Any]:
        return {"offset": params.offset, "limit": params.limit}

    def normalize_blueprint(self, data: Mapping[str, Any]) -> Blueprint:
        native_variants: List[Mapping[str, Any]] = data.get("variants") or []
        variants = [self._normalize_variant(variant) for variant in native_variants]
        currency = variants[0].price.currency if variants else "USD"
        groups = list(data.get("productGroups") or [])
        types = list(data.get("productTypes") or [])
        timestamp = now_iso()

        image_assets = [asset for asset in data.get("assets") or [] if asset.get("type") == "image"]

        return Blueprint(
            id=str(data["id"]),
            provider_id=self.id,
            sku=data.get("merchantSku") or "",
            name=data["name"],
            description=data.get("description") or "",
            category=groups[0] if groups else "",
            subcategory=types[0] if types else None,
            variants=variants,
            printing_options=group_print_areas(
                (
                    {
                        "location": area.get("position") or area["name"],
                        "width": area["dimensions"]["width"],
                        "height": area["dimensions"]["height"],
                        "dpi": area["printQuality"]["dpi"],
                        "file_types": area.get("supportedFileTypes"),
                    }
                    for variant in native_variants
                    for area in variant.get("printAreas") or []
                ),
                technique="print",
            ),
            images=[
                ProductImage(
                    id=str(asset.get("id", position)),
                    url=asset["url"],
                    position=position,
                    type=image_type(asset.get("usage")),
                )
                for position, asset in enumerate(image_assets)
            ],
            production_time=default_production_time(),
            pricing=BlueprintPricing(base=PriceInfo(amount=lowest_price(variants), currency=currency)),
            metadata=BlueprintMetadata(
                created_at=timestamp,
                updated_at=timestamp,
                is_active=True,
                tags=groups + types,
            ),
        )

    def _normalize_variant(self, variant: Mapping[str, Any]) -> ProductVariant:
        price = _pick_price(variant.get("prices") or [])
        availability = variant.get("availability") or {}
        return ProductVariant(
            id=str(variant["id"]),
            sku=variant.get("sku") or "",
            name=variant.get("name") or "",
            attributes=string_attributes(variant.get("attributes")),
            stock=stock_level(bool(availability.get("isAvailable")), availability.get("stockLevel")),
            price=PriceInfo(amount=float(price["amount"]), currency=price.get("currency") or "USD"),
        )
