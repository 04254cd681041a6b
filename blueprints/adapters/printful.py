"""Printful catalog adapter."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping

from blueprints.adapters.base import (
    BaseProviderAdapter,
    default_production_time,
    lowest_price,
    now_iso,
    slugify,
    stock_level,
    string_attributes,
)
from blueprints.models import (
    Blueprint,
    BlueprintMetadata,
    BlueprintPricing,
    BlueprintSearchParams,
    PriceInfo,
    PrintingConstraints,
    PrintingOption,
    ProductImage,
    ProductVariant,
)


class PrintfulAdapter(BaseProviderAdapter):
    provider_id = "printful"
    listing_endpoint = "products"
    listing_key = "result"
    detail_key = "result"
    not_found_key = "product_id"

    def pagination_params(self, params: BlueprintSearchParams) -> Dict[str, Any]:
        return {"offset": params.offset, "limit": params.limit}

    def normalize_blueprint(self, data: Mapping[str, Any]) -> Blueprint:
        currency = data.get("currency") or "USD"
        variants = [
            self._normalize_variant(variant, currency) for variant in data.get("variants") or []
        ]
        brand = data.get("brand") or ""
        model = data.get("model") or ""
        product_type = data.get("type") or ""
        # Printful exposes no catalog timestamps.
        timestamp = now_iso()

        images = []
        if data.get("image"):
            images.append(ProductImage(id="main", url=data["image"], position=0, type="preview"))

        return Blueprint(
            id=str(data["id"]),
            provider_id=self.id,
            sku=model,
            name=data["title"],
            description=f"{brand} - {model}",
            category=product_type,
            variants=variants,
            printing_options=[
                self._normalize_technique(technique) for technique in data.get("techniques") or []
            ],
            images=images,
            production_time=default_production_time(),
            pricing=BlueprintPricing(base=PriceInfo(amount=lowest_price(variants), currency=currency)),
            metadata=BlueprintMetadata(
                created_at=timestamp,
                updated_at=timestamp,
                is_active=True,
                tags=[tag for tag in (product_type, brand) if tag],
            ),
        )

    def _normalize_variant(self, variant: Mapping[str, Any], currency: str) -> ProductVariant:
        return ProductVariant(
            id=str(variant["id"]),
            sku=f"{variant.get('product_id')}-{variant['id']}",
            name=variant.get("name") or "",
            attributes=string_attributes({"size": variant.get("size"), "color": variant.get("color")}),
            stock=stock_level(bool(variant.get("in_stock"))),
            price=PriceInfo(amount=float(variant["price"]), currency=currency),
        )

    def _normalize_technique(self, technique: Mapping[str, Any]) -> PrintingOption:
        areas: List[Mapping[str, Any]] = technique.get("areas") or []
        return PrintingOption(
            id=slugify(technique["name"]),
            technique=technique["name"],
            locations=[area["name"] for area in areas],
            constraints=PrintingConstraints(
                min_dpi=min((area["dpi"]["min"] for area in areas), default=0),
                max_dpi=max((area["dpi"]["max"] for area in areas), default=0),
                width=max((area["width"] for area in areas), default=0),
                height=max((area["height"] for area in areas), default=0),
            ),
        )
