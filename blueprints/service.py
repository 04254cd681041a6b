"""Blueprint service: the provider registry and the provider-agnostic query surface."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Dict, List, Mapping, Optional, Sequence, Tuple, Type, TypeVar, Union

from blueprints.adapters import ADAPTERS, BaseProviderAdapter
from blueprints.catalog import get_provider_definition
from blueprints.errors import (
    AllProvidersFailedError,
    BlueprintError,
    ProviderUnavailableError,
    ServiceNotInitializedError,
    UnknownProviderError,
)
from blueprints.metrics import ProviderMetricsCollector
from blueprints.models import (
    Blueprint,
    BlueprintSearchParams,
    BlueprintSearchResult,
    CacheHints,
    ProviderConfig,
    ProviderRateLimits,
    RetryPolicy,
    ValidationResult,
)
from blueprints.settings import CacheSettings, ConfigManager, FeatureFlags, ProviderSettings

logger = logging.getLogger("blueprints.service")

T = TypeVar("T")

DEFAULT_TIMEOUT_SECONDS = 30.0


def build_provider_config(
    provider_id: str,
    settings: ProviderSettings,
    cache: Optional[CacheSettings] = None,
    features: Optional[FeatureFlags] = None,
) -> ProviderConfig:
    """Connection settings for one provider from its environment settings."""
    base_url = settings.custom_endpoint or get_provider_definition(provider_id).endpoints.base
    cache_hints = None
    if cache is not None and (features is None or features.caching_enabled):
        cache_hints = CacheHints(ttl=cache.ttl, stale_while_revalidate=cache.stale_while_revalidate)
    return ProviderConfig(
        api_key=settings.api_key,
        base_url=base_url,
        timeout=DEFAULT_TIMEOUT_SECONDS,
        retry=RetryPolicy(),
        cache=cache_hints,
    )


def merge_search_results(results: Sequence[BlueprintSearchResult]) -> BlueprintSearchResult:
    """
    Combine per-provider pages into one.

    Items keep the order of ``results``, totals are summed, page and limit
    come from the first result, and ``has_more`` is true if any input has more.
    """
    if not results:
        raise ValueError("Cannot merge an empty list of search results")
    items: List[Blueprint] = []
    for result in results:
        items.extend(result.items)
    return BlueprintSearchResult(
        items=items,
        total=sum(result.total for result in results),
        page=results[0].page,
        limit=results[0].limit,
        has_more=any(result.has_more for result in results),
    )


class BlueprintService:
    """
    Owns the live adapters and fans queries out to them.

    The registry is built once by ``initialize()`` and replaced wholesale by
    ``reload()`` or ``register_provider()``; it is never mutated in place.
    """

    def __init__(
        self,
        config_manager: ConfigManager,
        adapters: Optional[Mapping[str, Type[BaseProviderAdapter]]] = None,
        metrics: Optional[ProviderMetricsCollector] = None,
    ):
        self.config_manager = config_manager
        self.adapters: Dict[str, Type[BaseProviderAdapter]] = dict(
            adapters if adapters is not None else ADAPTERS
        )
        self.metrics = metrics
        self._providers: Dict[str, BaseProviderAdapter] = {}
        self._initialized = False
        self._lock = asyncio.Lock()

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> None:
        """Register every enabled provider that answers its availability probe. Idempotent."""
        async with self._lock:
            if self._initialized:
                return
            self._providers = await self._build_registry()
            self._initialized = True

    async def reload(self) -> None:
        """Rebuild the registry from the current configuration."""
        async with self._lock:
            self._providers = await self._build_registry()
            self._initialized = True

    async def register_provider(self, provider_id: str, config: ProviderConfig) -> bool:
        """Add one provider if it is reachable. Returns whether it was registered."""
        self._ensure_initialized()
        adapter = self._create_adapter(provider_id, config)
        if not await adapter.check_availability():
            logger.warning(
                f"Provider {provider_id} is not available; not registered",
                extra={"provider": provider_id},
            )
            return False
        providers = dict(self._providers)
        providers[provider_id] = adapter
        self._providers = providers
        logger.info(f"Registered provider {provider_id}", extra={"provider": provider_id})
        return True

    def get_providers(self) -> List[BaseProviderAdapter]:
        self._ensure_initialized()
        return list(self._providers.values())

    def get_provider(self, provider_id: str) -> BaseProviderAdapter:
        self._ensure_initialized()
        provider = self._providers.get(provider_id)
        if provider is None:
            raise UnknownProviderError(provider_id)
        return provider

    async def search_blueprints(self, params: BlueprintSearchParams) -> BlueprintSearchResult:
        self._ensure_initialized()
        if params.provider_id:
            provider = self.get_provider(params.provider_id)
            return await self._run_single(
                provider.id, "search blueprints", self._search_provider(provider, params)
            )

        providers = list(self._providers.values())
        start = time.time()
        outcomes = await asyncio.gather(
            *(self._search_provider(provider, params) for provider in providers),
            return_exceptions=True,
        )

        successes: List[BlueprintSearchResult] = []
        errors: Dict[str, BaseException] = {}
        summary: List[Dict[str, Any]] = []
        for provider, outcome in zip(providers, outcomes):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                errors[provider.id] = outcome
                summary.append({"id": provider.id, "status": "error", "error": str(outcome)})
                logger.warning(
                    f"Provider {provider.id} search failed: {outcome}",
                    extra={"provider": provider.id},
                )
            else:
                successes.append(outcome)
                summary.append({"id": provider.id, "status": "ok", "results": len(outcome.items)})

        log_data = {
            "event": "search_complete",
            "providers": {
                "called": len(providers),
                "succeeded": len(successes),
                "failed": len(errors),
                "details": summary,
            },
            "latency_ms": round((time.time() - start) * 1000, 1),
        }

        if not successes:
            logger.error("Search failed - all providers failed", extra=log_data)
            raise AllProvidersFailedError(errors)
        if errors:
            logger.warning("Search completed with provider failures", extra=log_data)
        else:
            logger.info("Search completed successfully", extra=log_data)

        return merge_search_results(successes)

    async def get_blueprint_details(self, provider_id: str, blueprint_id: str) -> Blueprint:
        self._ensure_initialized()
        provider = self.get_provider(provider_id)
        return await self._run_single(
            provider_id, "fetch blueprint details", self._fetch_details(provider, blueprint_id)
        )

    async def validate_blueprint(
        self, provider_id: str, blueprint: Union[Blueprint, Mapping[str, Any]]
    ) -> ValidationResult:
        self._ensure_initialized()
        provider = self.get_provider(provider_id)
        return await self._run_single(
            provider_id, "validate blueprint", provider.validate_blueprint(blueprint)
        )

    async def check_availability(self, provider_id: Optional[str] = None) -> Dict[str, bool]:
        """Probe one or all providers concurrently. A failed probe counts as unavailable."""
        self._ensure_initialized()
        if provider_id:
            providers = [self.get_provider(provider_id)]
        else:
            providers = list(self._providers.values())

        outcomes = await asyncio.gather(
            *(provider.check_availability() for provider in providers),
            return_exceptions=True,
        )
        availability: Dict[str, bool] = {}
        for provider, outcome in zip(providers, outcomes):
            if isinstance(outcome, BaseException):
                logger.warning(
                    f"Availability probe for {provider.id} raised: {outcome}",
                    extra={"provider": provider.id},
                )
            availability[provider.id] = outcome is True
        return availability

    def get_rate_limits(self) -> Dict[str, ProviderRateLimits]:
        self._ensure_initialized()
        return {provider_id: adapter.get_rate_limits() for provider_id, adapter in self._providers.items()}

    def _ensure_initialized(self) -> None:
        if not self._initialized:
            raise ServiceNotInitializedError("BlueprintService")

    def _create_adapter(self, provider_id: str, config: ProviderConfig) -> BaseProviderAdapter:
        adapter_class = self.adapters.get(provider_id)
        if adapter_class is None:
            raise UnknownProviderError(provider_id, f"Unsupported provider: {provider_id}")
        return adapter_class(config, metrics=self.metrics)

    async def _build_registry(self) -> Dict[str, BaseProviderAdapter]:
        config = self.config_manager.get_config()
        candidates: List[Tuple[str, BaseProviderAdapter]] = []
        for provider_id in self.config_manager.get_enabled_providers():
            if provider_id not in self.adapters:
                logger.warning(
                    f"No adapter for enabled provider {provider_id}; skipping",
                    extra={"provider": provider_id},
                )
                continue
            provider_config = build_provider_config(
                provider_id, config.providers[provider_id], config.cache, config.features
            )
            candidates.append((provider_id, self._create_adapter(provider_id, provider_config)))

        probes = await asyncio.gather(
            *(adapter.check_availability() for _, adapter in candidates),
            return_exceptions=True,
        )

        registry: Dict[str, BaseProviderAdapter] = {}
        for (provider_id, adapter), available in zip(candidates, probes):
            if available is True:
                registry[provider_id] = adapter
            else:
                logger.warning(
                    f"Provider {provider_id} failed its availability check; skipping",
                    extra={"provider": provider_id},
                )

        logger.info(
            f"Blueprint service initialized with {len(registry)} provider(s)",
            extra={"event": "service_initialized", "registered": list(registry)},
        )
        return registry

    async def _search_provider(
        self, provider: BaseProviderAdapter, params: BlueprintSearchParams
    ) -> BlueprintSearchResult:
        await self._require_available(provider)
        return await provider.fetch_blueprints(params)

    async def _fetch_details(self, provider: BaseProviderAdapter, blueprint_id: str) -> Blueprint:
        await self._require_available(provider)
        return await provider.fetch_blueprint_details(blueprint_id)

    async def _require_available(self, provider: BaseProviderAdapter) -> None:
        if not await provider.check_availability():
            raise ProviderUnavailableError(
                provider_id=provider.id,
                message=f"Provider {provider.name} is currently unavailable",
            )

    async def _run_single(self, provider_id: str, action: str, call: Awaitable[T]) -> T:
        try:
            return await call
        except BlueprintError:
            raise
        except Exception as e:
            raise RuntimeError(f"Failed to {action} for provider {provider_id}: {e}") from e
