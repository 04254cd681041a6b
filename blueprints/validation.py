"""Tier gating and usage accounting for a shop's blueprint selection.

Everything here is synchronous and derived only from its arguments, so it
is safe to call on every render.
"""

from __future__ import annotations

from typing import Dict, List, Mapping, Optional, Sequence

from pydantic import BaseModel, Field

from blueprints.models import Blueprint
from blueprints.tiers import TIER_VALIDATION_RULES, UNLIMITED, BlueprintValidationRules


class SelectedBlueprint(BaseModel):
    """A blueprint as held in a shop's selection."""

    id: str
    provider: str
    title: str = ""
    placeholders: List[str] = Field(default_factory=list)
    variants: List[str] = Field(default_factory=list)

    @classmethod
    def from_blueprint(cls, blueprint: Blueprint) -> "SelectedBlueprint":
        return cls(
            id=blueprint.id,
            provider=blueprint.provider_id,
            title=blueprint.name,
            placeholders=blueprint.print_locations(),
            variants=[variant.id for variant in blueprint.variants],
        )


class TierValidationResult(BaseModel):
    is_valid: bool
    error: Optional[str] = None
    remaining_allocation: Optional[int] = None


class BlueprintUsage(BaseModel):
    used: int
    total: int
    remaining: int


class ProviderUsage(BaseModel):
    allowed: List[str]
    usage: Dict[str, int] = Field(default_factory=dict)


class CountUsage(BaseModel):
    total: int = 0
    by_blueprint: Dict[str, int] = Field(default_factory=dict)


class LimitedUsage(BaseModel):
    max: int
    usage: CountUsage


class UsageStats(BaseModel):
    blueprints: BlueprintUsage
    providers: ProviderUsage
    print_areas: LimitedUsage
    variants: LimitedUsage


class BlueprintValidationService:
    def __init__(self, rules: Optional[Mapping[str, BlueprintValidationRules]] = None):
        self.rules: Dict[str, BlueprintValidationRules] = dict(
            rules if rules is not None else TIER_VALIDATION_RULES
        )

    def get_rules(self, tier: str) -> BlueprintValidationRules:
        rules = self.rules.get(tier)
        if rules is None:
            raise ValueError(f"Unknown subscription tier: {tier}")
        return rules

    def validate_blueprint_addition(
        self,
        blueprint: SelectedBlueprint,
        current_blueprints: Sequence[SelectedBlueprint],
        tier: str,
    ) -> TierValidationResult:
        """
        Decide whether ``blueprint`` may join ``current_blueprints`` on ``tier``.

        Checks run in order: blueprint count, provider allow-list, print
        areas, variants. The first failure wins.
        """
        rules = self.get_rules(tier)

        if rules.max_blueprints != UNLIMITED:
            remaining = rules.max_blueprints - len(current_blueprints)
            if remaining <= 0:
                return TierValidationResult(
                    is_valid=False,
                    error=(
                        f"Your {tier} plan is limited to {rules.max_blueprints} blueprints. "
                        "Please upgrade to add more."
                    ),
                    remaining_allocation=0,
                )

        if rules.allowed_providers and blueprint.provider not in rules.allowed_providers:
            return TierValidationResult(
                is_valid=False,
                error=(
                    f"The {blueprint.provider} provider is not available on your {tier} plan. "
                    f"Available providers: {', '.join(rules.allowed_providers)}"
                ),
            )

        print_areas = len(blueprint.placeholders)
        if rules.max_print_areas != UNLIMITED and print_areas > rules.max_print_areas:
            return TierValidationResult(
                is_valid=False,
                error=(
                    f"This blueprint has {print_areas} print areas. Your {tier} plan is "
                    f"limited to {rules.max_print_areas} print areas per blueprint."
                ),
            )

        variants = len(blueprint.variants)
        if rules.max_variants != UNLIMITED and variants > rules.max_variants:
            return TierValidationResult(
                is_valid=False,
                error=(
                    f"This blueprint has {variants} variants. Your {tier} plan is "
                    f"limited to {rules.max_variants} variants per blueprint."
                ),
            )

        if rules.max_blueprints == UNLIMITED:
            remaining_allocation = UNLIMITED
        else:
            remaining_allocation = rules.max_blueprints - len(current_blueprints) - 1
        return TierValidationResult(is_valid=True, remaining_allocation=remaining_allocation)

    def validate_blueprint_batch(
        self,
        blueprints: Sequence[SelectedBlueprint],
        current_blueprints: Sequence[SelectedBlueprint],
        tier: str,
    ) -> List[TierValidationResult]:
        """Validate each candidate as if every other candidate were already added."""
        results = []
        for index, blueprint in enumerate(blueprints):
            others = [other for position, other in enumerate(blueprints) if position != index]
            results.append(
                self.validate_blueprint_addition(
                    blueprint, [*current_blueprints, *others], tier
                )
            )
        return results

    def get_usage_stats(
        self, current_blueprints: Sequence[SelectedBlueprint], tier: str
    ) -> UsageStats:
        rules = self.get_rules(tier)

        provider_usage: Dict[str, int] = {}
        print_areas = CountUsage()
        variants = CountUsage()
        for blueprint in current_blueprints:
            provider_usage[blueprint.provider] = provider_usage.get(blueprint.provider, 0) + 1
            print_areas.total += len(blueprint.placeholders)
            print_areas.by_blueprint[blueprint.id] = len(blueprint.placeholders)
            variants.total += len(blueprint.variants)
            variants.by_blueprint[blueprint.id] = len(blueprint.variants)

        if rules.max_blueprints == UNLIMITED:
            remaining = UNLIMITED
        else:
            remaining = rules.max_blueprints - len(current_blueprints)

        return UsageStats(
            blueprints=BlueprintUsage(
                used=len(current_blueprints), total=rules.max_blueprints, remaining=remaining
            ),
            providers=ProviderUsage(allowed=list(rules.allowed_providers), usage=provider_usage),
            print_areas=LimitedUsage(max=rules.max_print_areas, usage=print_areas),
            variants=LimitedUsage(max=rules.max_variants, usage=variants),
        )
