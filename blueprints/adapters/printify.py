"""Printify catalog adapter."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping

from blueprints.adapters.base import (
    BaseProviderAdapter,
    default_production_time,
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
    PrintingConstraints,
    PrintingOption,
    ProductImage,
    ProductVariant,
)


def _image_position(value: Any, index: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return index


class PrintifyAdapter(BaseProviderAdapter):
    provider_id = "printify"
    listing_endpoint = "blueprints"
    listing_key = "data"
    not_found_key = "blueprint_id"

    def pagination_params(self, params: BlueprintSearchParams) -> Dict[str, Any]:
        return {"limit": params.limit, "page": params.page}

    def normalize_blueprint(self, data: Mapping[str, Any]) -> Blueprint:
        variants = [self._normalize_variant(variant) for variant in data.get("variants") or []]
        timestamp = now_iso()
        return Blueprint(
            id=str(data["id"]),
            provider_id=self.id,
            sku=str(data.get("blueprint_id") or ""),
            name=data["title"],
            description=data.get("description") or "",
            category="apparel",
            variants=variants,
            printing_options=self._normalize_print_areas(data.get("print_areas") or []),
            images=[
                ProductImage(
                    id=str(image.get("id", index)),
                    url=image["src"],
                    position=_image_position(image.get("position"), index),
                    type=image_type(image.get("type")),
                )
                for index, image in enumerate(data.get("images") or [])
            ],
            production_time=default_production_time(),
            pricing=BlueprintPricing(base=PriceInfo(amount=lowest_price(variants), currency="USD")),
            metadata=BlueprintMetadata(
                created_at=data.get("created_at") or timestamp,
                updated_at=data.get("updated_at") or timestamp,
                is_active=True,
                tags=list(data.get("tags") or []),
            ),
        )

    def _normalize_variant(self, variant: Mapping[str, Any]) -> ProductVariant:
        return ProductVariant(
            id=str(variant["id"]),
            sku=variant.get("sku") or "",
            name=variant.get("title") or "",
            attributes=string_attributes(variant.get("options")),
            stock=stock_level(bool(variant.get("is_enabled"))),
            price=PriceInfo(amount=float(variant["price"]), currency="USD"),
        )

    def _normalize_print_areas(self, areas: List[Mapping[str, Any]]) -> List[PrintingOption]:
        options = []
        for area in areas:
            constraints = area["constraints"]
            options.append(
                PrintingOption(
                    id=str(area["id"]),
                    technique="dtg",
                    locations=[str(area.get("position") or area.get("title") or area["id"])],
                    constraints=PrintingConstraints(
                        min_dpi=constraints["dpi"]["min"],
                        max_dpi=constraints["dpi"]["max"],
                        width=constraints["width"]["max"],
                        height=constraints["height"]["max"],
                    ),
                )
            )
        return options
