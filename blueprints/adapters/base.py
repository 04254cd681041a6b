"""Shared HTTP plumbing for print provider adapters.

``BaseProviderAdapter`` owns the request loop (timeouts, retries, rate-limit
tracking, error classification, metrics). Concrete adapters only describe
their wire format: where the listing lives, how it paginates and how one
native record becomes a ``Blueprint``.
"""

from __future__ import annotations

import asyncio
import logging
import re
import time
from abc import ABC, abstractmethod
from contextlib import contextmanager, nullcontext
from datetime import datetime, timezone
from typing import (
    Any,
    Callable,
    Dict,
    Iterable,
    Iterator,
    List,
    Mapping,
    NoReturn,
    Optional,
    Tuple,
    TypeVar,
    Union,
)

import httpx
from pydantic import BaseModel

from blueprints.catalog import (
    EndpointType,
    get_provider_definition,
    get_provider_endpoint,
    get_provider_headers,
)
from blueprints.errors import (
    AuthenticationError,
    BlueprintError,
    BlueprintNotFoundError,
    NetworkError,
    ProviderAPIError,
    RateLimitError,
)
from blueprints.metrics import ProviderMetricsCollector
from blueprints.models import (
    IN_STOCK_SENTINEL,
    Blueprint,
    BlueprintSearchParams,
    BlueprintSearchResult,
    FieldError,
    PrintingConstraints,
    PrintingOption,
    ProductionTimeEstimate,
    ProductVariant,
    ProviderConfig,
    ProviderRateLimits,
    ValidationResult,
    is_currency_code,
)
from observability.metrics import provider_rate_limit_remaining, search_results_count

logger = logging.getLogger("blueprints.adapters")

T = TypeVar("T")

MAX_BACKOFF_SECONDS = 20.0
DEFAULT_FILE_TYPES = ["png", "jpg"]
IMAGE_TYPES = ("preview", "mockup", "template")


def slugify(value: str) -> str:
    return re.sub(r"\s+", "-", value.strip().lower())


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def default_production_time() -> ProductionTimeEstimate:
    return ProductionTimeEstimate(min=3, max=5, unit="days")


def lowest_price(variants: List[ProductVariant]) -> float:
    return min((variant.price.amount for variant in variants), default=0.0)


def stock_level(available: bool, quantity: Optional[int] = None) -> int:
    """Real quantity when the provider reports one, otherwise the in-stock stand-in."""
    if quantity is not None:
        return max(int(quantity), 0)
    return IN_STOCK_SENTINEL if available else 0


def image_type(value: Any) -> str:
    return value if value in IMAGE_TYPES else "preview"


def string_attributes(options: Optional[Mapping[str, Any]]) -> Dict[str, str]:
    return {str(key): str(value) for key, value in (options or {}).items() if value is not None}


def group_print_areas(areas: Iterable[Mapping[str, Any]], technique: str) -> List[PrintingOption]:
    """
    Collapse per-variant print areas into one option per location.

    Each area is a flat mapping with ``location``, ``width``, ``height``,
    ``dpi`` and ``file_types``. DPI keeps the min and max seen, size keeps the
    largest, file types are unioned in first-seen order.
    """
    grouped: Dict[str, Dict[str, Any]] = {}
    for area in areas:
        location = str(area["location"])
        dpi = float(area["dpi"])
        entry = grouped.get(location)
        if entry is None:
            grouped[location] = {
                "min_dpi": dpi,
                "max_dpi": dpi,
                "width": float(area["width"]),
                "height": float(area["height"]),
                "file_types": [],
            }
            entry = grouped[location]
        else:
            entry["min_dpi"] = min(entry["min_dpi"], dpi)
            entry["max_dpi"] = max(entry["max_dpi"], dpi)
            entry["width"] = max(entry["width"], float(area["width"]))
            entry["height"] = max(entry["height"], float(area["height"]))
        for file_type in area.get("file_types") or []:
            file_type = str(file_type).lower()
            if file_type not in entry["file_types"]:
                entry["file_types"].append(file_type)

    options = []
    for location, entry in grouped.items():
        options.append(
            PrintingOption(
                id=slugify(location),
                technique=technique,
                locations=[location],
                constraints=PrintingConstraints(
                    min_dpi=entry["min_dpi"],
                    max_dpi=entry["max_dpi"],
                    width=entry["width"],
                    height=entry["height"],
                    file_types=entry["file_types"] or list(DEFAULT_FILE_TYPES),
                ),
            )
        )
    return options


def _parse_int(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


class BaseProviderAdapter(ABC):
    """Common contract for every print provider adapter."""

    provider_id: str = ""
    # Catalog endpoint family used for listing and detail lookups.
    listing_endpoint: EndpointType = "products"
    listing_key: str = "items"
    detail_key: Optional[str] = None
    # Body key a provider uses to echo the missing id on 404.
    not_found_key: str = "product_id"

    def __init__(self, config: ProviderConfig, metrics: Optional[ProviderMetricsCollector] = None):
        self.config = config
        self.metrics = metrics
        self.definition = get_provider_definition(self.provider_id)
        self._rate_limits = ProviderRateLimits.from_requests_per_minute(
            self.definition.rate_limit.requests_per_minute
        )
        if metrics is not None:
            metrics.init_provider(self.provider_id)
        logger.info(f"Initialized {self.name} adapter", extra={"provider": self.provider_id})

    @property
    def id(self) -> str:
        return self.provider_id

    @property
    def name(self) -> str:
        return self.definition.name

    @property
    def api_endpoint(self) -> str:
        return self.config.base_url

    @property
    def api_version(self) -> str:
        return self.definition.api_version

    # Wire format hooks

    @abstractmethod
    def pagination_params(self, params: BlueprintSearchParams) -> Dict[str, Any]:
        """Query parameters selecting the requested page."""

    @abstractmethod
    def normalize_blueprint(self, data: Mapping[str, Any]) -> Blueprint:
        """Map one native catalog record to a Blueprint."""

    def extract_listing(
        self, payload: Any, params: BlueprintSearchParams
    ) -> Tuple[List[Mapping[str, Any]], int]:
        records = payload[self.listing_key]
        if not isinstance(records, list):
            raise TypeError(f"'{self.listing_key}' is not a list")
        total = payload.get("total")
        if total is None:
            total = params.offset + len(records)
        return records, int(total)

    def extract_detail(self, payload: Any) -> Mapping[str, Any]:
        record = payload[self.detail_key] if self.detail_key else payload
        if not isinstance(record, Mapping):
            raise TypeError("blueprint record is not an object")
        return record

    # Public operations

    async def fetch_blueprints(self, params: BlueprintSearchParams) -> BlueprintSearchResult:
        url = self._endpoint(self.listing_endpoint)
        with self._track("fetch_blueprints", page=params.page, limit=params.limit):
            response = await self._get(url, params=self.pagination_params(params))

            def parse(payload: Any) -> BlueprintSearchResult:
                records, total = self.extract_listing(payload, params)
                return BlueprintSearchResult(
                    items=[self.normalize_blueprint(record) for record in records],
                    total=total,
                    page=params.page,
                    limit=params.limit,
                    has_more=params.page * params.limit < total,
                )

            result = self._decode(response, url, parse)

        search_results_count.labels(provider=self.id).observe(len(result.items))
        return result

    async def fetch_blueprint_details(self, blueprint_id: str) -> Blueprint:
        url = f"{self._endpoint(self.listing_endpoint)}/{blueprint_id}"
        with self._track("fetch_blueprint_details", blueprint_id=blueprint_id):
            response = await self._get(url, blueprint_id=blueprint_id)
            return self._decode(
                response, url, lambda payload: self.normalize_blueprint(self.extract_detail(payload))
            )

    async def check_availability(self) -> bool:
        """Single cheap probe. Never raises."""
        url = self._endpoint("availability")
        start = time.time()
        try:
            response = await asyncio.wait_for(self._send(url), self.config.timeout)
        except Exception as e:
            logger.warning(
                f"{self.name} availability check failed: {e}",
                extra={"provider": self.id, "url": url},
            )
            return False

        logger.debug(
            f"{self.name} availability probe returned {response.status_code}",
            extra={
                "provider": self.id,
                "url": url,
                "status": response.status_code,
                "duration_ms": round((time.time() - start) * 1000, 1),
            },
        )
        return response.is_success

    def get_rate_limits(self) -> ProviderRateLimits:
        return self._rate_limits.model_copy()

    async def validate_blueprint(
        self, blueprint: Union[Blueprint, Mapping[str, Any]]
    ) -> ValidationResult:
        """Local checks only, no network."""
        data = blueprint.model_dump() if isinstance(blueprint, BaseModel) else dict(blueprint)
        errors: List[FieldError] = []

        if not data.get("name"):
            errors.append(FieldError(field="name", message="Name is required"))

        provider_id = data.get("provider_id")
        if provider_id and provider_id != self.id:
            errors.append(
                FieldError(
                    field="provider_id",
                    message=f"Blueprint belongs to provider {provider_id}, not {self.id}",
                )
            )

        pricing = data.get("pricing") or {}
        base = pricing.get("base") if isinstance(pricing, Mapping) else None
        if isinstance(base, Mapping) and base.get("currency") is not None:
            if not is_currency_code(base["currency"]):
                errors.append(
                    FieldError(
                        field="pricing.base.currency",
                        message=f"Invalid currency code: {base['currency']}",
                    )
                )

        logger.debug(
            "Blueprint validation",
            extra={"provider": self.id, "errors": [error.model_dump() for error in errors]},
        )
        return ValidationResult(is_valid=not errors, errors=errors)

    # HTTP plumbing

    def _endpoint(self, endpoint_type: EndpointType) -> str:
        return get_provider_endpoint(self.id, endpoint_type, self.config.base_url)

    def _headers(self) -> Dict[str, str]:
        return get_provider_headers(self.id, self.config.api_key)

    def _backoff(self, attempt: int) -> float:
        return min(self.config.retry.retry_delay * (2 ** attempt), MAX_BACKOFF_SECONDS)

    def _retry_delay(self, response: httpx.Response, attempt: int) -> float:
        if response.status_code == 429:
            retry_after = response.headers.get("Retry-After")
            if retry_after is not None:
                try:
                    return min(max(float(retry_after), 0.0), MAX_BACKOFF_SECONDS)
                except ValueError:
                    pass
        return self._backoff(attempt)

    async def _get(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        blueprint_id: Optional[str] = None,
    ) -> httpx.Response:
        """
        GET with retries. Returns a 2xx response or raises a BlueprintError.

        Retries transport failures and ``retry.retryable_statuses`` up to
        retry.max_retries`` extra times with exponential backoff. Each attempt
        has ``config.timeout`` seconds end to end, body included.
        """
        retry = self.config.retry
        attempt = 0
        while True:
            is_last = attempt >= retry.max_retries
            start = time.time()
            logger.debug(
                f"[{self.id}] GET {url}",
                extra={"provider": self.id, "event": "api_call", "url": url, "params": params, "attempt": attempt + 1},
            )
            try:
                response = await asyncio.wait_for(self._send(url, params), self.config.timeout)
            except (httpx.TimeoutException, asyncio.TimeoutError) as e:
                error = NetworkError(
                    f"Request to {self.name} timed out after {self.config.timeout}s",
                    provider_id=self.id,
                )
                if is_last:
                    raise error from e
                await self._wait_before_retry(attempt, self._backoff(attempt), str(error))
                attempt += 1
                continue
            except httpx.HTTPError as e:
                error = NetworkError(f"Failed to reach {self.name}: {e}", provider_id=self.id)
                if is_last:
                    raise error from e
                await self._wait_before_retry(attempt, self._backoff(attempt), str(error))
                attempt += 1
                continue

            self._update_rate_limits(response.headers)
            logger.debug(
                f"[{self.id}] {response.status_code} {url}",
                extra={
                    "provider": self.id,
                    "event": "api_response",
                    "url": url,
                    "status": response.status_code,
                    "duration_ms": round((time.time() - start) * 1000, 1),
                    "rate_limit": self._rate_limits.model_dump(),
                },
            )

            if response.is_success:
                return response

            if response.status_code in retry.retryable_statuses and not is_last:
                await self._wait_before_retry(
                    attempt, self._retry_delay(response, attempt), f"status {response.status_code}"
                )
                attempt += 1
                continue

            self._handle_error_response(response, url, blueprint_id)

    async def _send(self, url: str, params: Optional[Dict[str, Any]] = None) -> httpx.Response:
        async with httpx.AsyncClient(timeout=self.config.timeout) as client:
            return await client.get(url, params=params, headers=self._headers())

    async def _wait_before_retry(self, attempt: int, delay: float, reason: str) -> None:
        logger.warning(
            f"[{self.id}] Request failed ({reason}). Retrying in {delay}s... "
            f"(Attempt {attempt + 1}/{self.config.retry.max_retries + 1})",
            extra={"provider": self.id},
        )
        await asyncio.sleep(delay)

    def _decode(self, response: httpx.Response, url: str, parse: Callable[[Any], T]) -> T:
        """Parse a 2xx body, turning shape problems into a non-retryable ProviderAPIError."""
        try:
            return parse(response.json())
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise ProviderAPIError(
                f"Malformed response from {self.name}: {e}",
                provider_id=self.id,
                status_code=response.status_code,
                endpoint=url,
                retryable=False,
            ) from e

    def _update_rate_limits(self, headers: Mapping[str, str]) -> None:
        remaining = _parse_int(headers.get("X-RateLimit-Remaining"))
        reset = _parse_int(headers.get("X-RateLimit-Reset"))
        limit = _parse_int(headers.get("X-RateLimit-Limit"))
        if remaining is None or reset is None or limit is None:
            return

        self._rate_limits = ProviderRateLimits(
            request_limit=limit,
            window_size=60,
            remaining=remaining,
            reset_at=reset * 1000,
        )
        provider_rate_limit_remaining.labels(provider=self.id).set(remaining)
        logger.debug(
            "Rate limits updated",
            extra={"provider": self.id, "rate_limit": self._rate_limits.model_dump()},
        )

    def _handle_error_response(
        self, response: httpx.Response, url: str, blueprint_id: Optional[str] = None
    ) -> NoReturn:
        try:
            body = response.json()
        except ValueError:
            body = {"message": response.text}
        if not isinstance(body, Mapping):
            body = {"message": str(body)}

        status = response.status_code
        logger.debug(
            f"[{self.id}] Error response {status}",
            extra={"provider": self.id, "url": url, "status": status, "response": body},
        )

        if status == 401:
            raise AuthenticationError(
                provider_id=self.id, message=body.get("message") or "Authentication failed"
            )
        if status == 404:
            missing_id = body.get(self.not_found_key) or blueprint_id or "unknown"
            raise BlueprintNotFoundError(blueprint_id=str(missing_id), provider_id=self.id)
        if status == 429:
            raise RateLimitError(
                provider_id=self.id, endpoint=url, reset_at=self._rate_limits.reset_at
            )
        raise ProviderAPIError(
            body.get("message") or f"Unexpected status {status} from {self.name}",
            provider_id=self.id,
            status_code=status,
            endpoint=url,
            retryable=status >= 500,
        )

    @contextmanager
    def _track(self, operation: str, **context: Any) -> Iterator[None]:
        start = time.time()
        tracker = self.metrics.track_request(self.id) if self.metrics is not None else nullcontext()
        try:
            with tracker:
                yield
        except BlueprintError as e:
            logger.error(
                f"{self.name} {operation} failed: {e.message}",
                extra={
                    "provider": self.id,
                    "duration_ms": round((time.time() - start) * 1000, 1),
                    "error": e.to_dict(),
                    **context,
                },
            )
            raise
