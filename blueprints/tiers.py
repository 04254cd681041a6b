"""Subscription tier limits for blueprint selection.

``-1`` means unlimited and an empty list means "all".
"""

from __future__ import annotations

from typing import Dict, List, Literal

from pydantic import BaseModel, Field

SubscriptionTier = Literal["free", "creator", "pro", "enterprise"]

UNLIMITED = -1


class BlueprintValidationRules(BaseModel):
    max_blueprints: int = Field(..., ge=UNLIMITED)
    allowed_providers: List[str] = Field(default_factory=list)
    allowed_types: List[str] = Field(default_factory=list)
    max_print_areas: int = Field(..., ge=UNLIMITED)
    max_variants: int = Field(..., ge=UNLIMITED)


TIER_VALIDATION_RULES: Dict[str, BlueprintValidationRules] = {
    "free": BlueprintValidationRules(
        max_blueprints=3,
        allowed_providers=["printify"],
        allowed_types=["t-shirt", "hoodie"],
        max_print_areas=2,
        max_variants=5,
    ),
    "creator": BlueprintValidationRules(
        max_blueprints=10,
        allowed_providers=["printify", "printful"],
        allowed_types=["t-shirt", "hoodie", "mug", "poster"],
        max_print_areas=4,
        max_variants=10,
    ),
    "pro": BlueprintValidationRules(
        max_blueprints=50,
        allowed_providers=["printify", "printful", "gooten"],
        allowed_types=["t-shirt", "hoodie", "mug", "poster", "phone-case", "canvas"],
        max_print_areas=8,
        max_variants=20,
    ),
    "enterprise": BlueprintValidationRules(
        max_blueprints=UNLIMITED,
        allowed_providers=["printify", "printful", "gooten", "gelato"],
        allowed_types=[],
        max_print_areas=UNLIMITED,
        max_variants=UNLIMITED,
    ),
}
