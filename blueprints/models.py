"""Typed models shared by the provider adapters and the blueprint service."""

from __future__ import annotations

import time
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

ImageType = Literal["preview", "mockup", "template"]
TimeUnit = Literal["hours", "days", "weeks"]
SortField = Literal["price", "name", "created_at", "updated_at"]
SortOrder = Literal["asc", "desc"]

# Stand-in stock count for providers that only report in/out of stock.
# This is not real inventory.
IN_STOCK_SENTINEL = 999

DEFAULT_PAGE_SIZE = 20


def _normalize_currency(value: str) -> str:
    code = (value or "").strip().upper()
    if len(code) != 3 or not code.isalpha():
        raise ValueError(f"Invalid ISO currency code: {value!r}")
    return code


def is_currency_code(value: object) -> bool:
    if not isinstance(value, str):
        return False
    try:
        _normalize_currency(value)
    except ValueError:
        return False
    return True


class PriceInfo(BaseModel):
    amount: float
    currency: str = "USD"
    production_cost: Optional[float] = None
    shipping_cost: Optional[float] = None

    @field_validator("currency", mode="before")
    @classmethod
    def _check_currency(cls, value: str) -> str:
        return _normalize_currency(value)


class BulkPricingTier(BaseModel):
    min_quantity: int = Field(..., ge=1)
    price: PriceInfo


class ProductVariant(BaseModel):
    id: str
    sku: str = ""
    name: str = ""
    attributes: Dict[str, str] = Field(default_factory=dict)
    stock: int = Field(0, ge=0)
    price: PriceInfo


class PrintingConstraints(BaseModel):
    min_dpi: float = 0
    max_dpi: float = 0
    width: float = 0
    height: float = 0
    allowed_colors: Optional[List[str]] = None
    max_colors: Optional[int] = None
    file_types: List[str] = Field(default_factory=lambda: ["png", "jpg"])


class PrintingOption(BaseModel):
    id: str
    technique: str
    locations: List[str] = Field(default_factory=list)
    constraints: PrintingConstraints


class ProductImage(BaseModel):
    id: str
    url: str
    position: int = 0
    type: ImageType = "preview"
    variant_id: Optional[str] = None


class ProductionTimeEstimate(BaseModel):
    min: int
    max: int
    unit: TimeUnit = "days"


class BlueprintPricing(BaseModel):
    base: PriceInfo
    bulk: Optional[List[BulkPricingTier]] = None


class BlueprintMetadata(BaseModel):
    created_at: str
    updated_at: str
    is_active: bool = True
    tags: List[str] = Field(default_factory=list)


class Weight(BaseModel):
    value: float
    unit: Literal["oz", "g", "kg", "lb"]


class Dimensions(BaseModel):
    width: float
    height: float
    depth: Optional[float] = None
    unit: Literal["in", "cm", "mm"]
    weight: Optional[Weight] = None


class Blueprint(BaseModel):
    """Provider-agnostic representation of one sellable product template."""

    id: str
    provider_id: str
    sku: str = ""
    name: str
    description: str = ""
    category: str = ""
    subcategory: Optional[str] = None
    variants: List[ProductVariant] = Field(default_factory=list)
    printing_options: List[PrintingOption] = Field(default_factory=list)
    images: List[ProductImage] = Field(default_factory=list)
    production_time: ProductionTimeEstimate
    pricing: BlueprintPricing
    metadata: BlueprintMetadata
    dimensions: Optional[Dimensions] = None

    def sorted_images(self) -> List[ProductImage]:
        """Images in display order. Python's sort is stable, so ties keep input order."""
        return sorted(self.images, key=lambda image: image.position)

    def print_locations(self) -> List[str]:
        locations: List[str] = []
        for option in self.printing_options:
            for location in option.locations:
                if location not in locations:
                    locations.append(location)
        return locations


class PriceRange(BaseModel):
    min: Optional[float] = Field(None, ge=0)
    max: Optional[float] = Field(None, ge=0)
    currency: str = "USD"

    @field_validator("currency", mode="before")
    @classmethod
    def _check_currency(cls, value: str) -> str:
        return _normalize_currency(value)


class BlueprintSearchParams(BaseModel):
    query: Optional[str] = None
    category: Optional[str] = None
    provider_id: Optional[str] = None
    price_range: Optional[PriceRange] = None
    tags: List[str] = Field(default_factory=list)
    printing_techniques: List[str] = Field(default_factory=list)
    in_stock: Optional[bool] = None
    page: int = Field(1, ge=1)
    limit: int = Field(DEFAULT_PAGE_SIZE, ge=1, le=100)
    sort_by: Optional[SortField] = None
    sort_order: Optional[SortOrder] = None

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class BlueprintSearchResult(BaseModel):
    items: List[Blueprint] = Field(default_factory=list)
    total: int = Field(0, ge=0)
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE
    has_more: bool = False


class ProviderRateLimits(BaseModel):
    request_limit: int
    window_size: int = 60
    remaining: int
    reset_at: int

    @classmethod
    def from_requests_per_minute(cls, requests_per_minute: int) -> "ProviderRateLimits":
        return cls(
            request_limit=requests_per_minute,
            window_size=60,
            remaining=requests_per_minute,
            reset_at=int(time.time() * 1000) + 60_000,
        )


class FieldError(BaseModel):
    field: str
    message: str


class ValidationResult(BaseModel):
    is_valid: bool
    errors: List[FieldError] = Field(default_factory=list)


class RetryPolicy(BaseModel):
    max_retries: int = Field(3, ge=0)
    retry_delay: float = Field(1.0, ge=0)
    retryable_statuses: List[int] = Field(
        default_factory=lambda: [408, 429, 500, 502, 503, 504]
    )


class CacheHints(BaseModel):
    ttl: int = 3600
    stale_while_revalidate: int = 300


class ProviderConfig(BaseModel):
    """Connection settings handed to one adapter instance."""

    api_key: str
    base_url: str
    timeout: float = Field(30.0, gt=0)
    retry: RetryPolicy = Field(default_factory=RetryPolicy)
    cache: Optional[CacheHints] = None
