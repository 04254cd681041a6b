"""Static provider catalog definitions.

The catalog lives in ``blueprints/data/providers.json`` so a provider can be
described (endpoints, headers, rate limits, features) without touching
adapter code.
"""

from __future__ import annotations

import json
from functools import lru_cache
from importlib import resources
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from blueprints.errors import UnknownProviderError

EndpointType = Literal["base", "blueprints", "products", "variants", "catalog", "availability"]
FeatureName = Literal[
    "webhooks", "bulk_operations", "variant_grouping", "custom_pricing", "stock_tracking"
]


class ProviderEndpoints(BaseModel):
    base: str
    blueprints: str
    products: str
    variants: str
    catalog: str
    availability: str


class RateLimitDefinition(BaseModel):
    requests_per_minute: int = Field(..., gt=0)
    burst_limit: Optional[int] = None


class ProviderFeatures(BaseModel):
    webhooks: bool = False
    bulk_operations: bool = False
    variant_grouping: bool = False
    custom_pricing: bool = False
    stock_tracking: bool = False


class ProviderDefinition(BaseModel):
    name: str
    description: str = ""
    api_version: str
    documentation_url: str = ""
    endpoints: ProviderEndpoints
    default_headers: Dict[str, str] = Field(default_factory=dict)
    rate_limit: RateLimitDefinition
    features: ProviderFeatures = Field(default_factory=ProviderFeatures)


@lru_cache(maxsize=1)
def load_provider_definitions() -> Dict[str, ProviderDefinition]:
    raw = resources.files("blueprints.data").joinpath("providers.json").read_text(encoding="utf-8")
    payload = json.loads(raw)
    return {
        provider_id: ProviderDefinition.model_validate(definition)
        for provider_id, definition in payload.items()
    }


def list_provider_ids() -> List[str]:
    return list(load_provider_definitions().keys())


def get_provider_definition(provider_id: str) -> ProviderDefinition:
    definition = load_provider_definitions().get(provider_id)
    if definition is None:
        raise UnknownProviderError(
            provider_id, f"Provider configuration not found for: {provider_id}"
        )
    return definition


def get_provider_endpoint(
    provider_id: str, endpoint_type: EndpointType, base_url: Optional[str] = None
) -> str:
    """Absolute URL for an endpoint family, optionally against an overridden base."""
    endpoints = get_provider_definition(provider_id).endpoints
    base = (base_url or endpoints.base).rstrip("/")
    if endpoint_type == "base":
        return base
    return f"{base}{getattr(endpoints, endpoint_type)}"


def get_provider_headers(provider_id: str, api_key: str) -> Dict[str, str]:
    definition = get_provider_definition(provider_id)
    return {**definition.default_headers, "Authorization": f"Bearer {api_key}"}


def provider_supports_feature(provider_id: str, feature: FeatureName) -> bool:
    return bool(getattr(get_provider_definition(provider_id).features, feature))
