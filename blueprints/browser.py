"""Stateful browsing surface for UI layers.

``BlueprintBrowser`` keeps the result list, paging position and provider
availability for one view, and turns failures into display strings.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Union

from blueprints.errors import (
    AuthenticationError,
    BlueprintError,
    ProviderUnavailableError,
    RateLimitError,
    ServiceNotInitializedError,
)
from blueprints.models import Blueprint, BlueprintSearchParams, ValidationResult
from blueprints.service import BlueprintService
from blueprints.settings import ConfigManager, ProviderSettings
from observability.logging import correlation_id_context

logger = logging.getLogger("blueprints.browser")


def describe_error(error: BaseException, default: str = "Failed to load blueprints") -> str:
    """Human-readable message for a failure shown to the user."""
    if isinstance(error, AuthenticationError):
        return f"Authentication failed for provider {error.provider_id}"
    if isinstance(error, ProviderUnavailableError):
        return f"Provider {error.provider_id} is currently unavailable"
    if isinstance(error, RateLimitError):
        reset = datetime.fromtimestamp(error.reset_at / 1000, tz=timezone.utc)
        return (
            f"Rate limit exceeded for provider {error.provider_id}. "
            f"Retry after {reset.strftime('%H:%M:%S')} UTC"
        )
    if isinstance(error, BlueprintError):
        return error.message
    return default


class BlueprintBrowser:
    def __init__(
        self,
        service: BlueprintService,
        config_manager: ConfigManager,
        provider_id: Optional[str] = None,
        initial_search: Optional[BlueprintSearchParams] = None,
        auto_load: bool = False,
    ):
        self.service = service
        self.config_manager = config_manager
        self.provider_id = provider_id
        self.auto_load = auto_load

        self.blueprints: List[Blueprint] = []
        self.is_loading = False
        self.error: Optional[str] = None
        self.total_results = 0
        self.current_page = 1
        self.has_next_page = False
        self.search_params = initial_search or BlueprintSearchParams()
        self.is_initialized = False
        self.available_providers: Dict[str, bool] = {}
        self.selected_blueprint: Optional[Blueprint] = None

    @property
    def debug_mode(self) -> bool:
        return self.config_manager.get_config().features.debug_mode

    async def initialize(self) -> None:
        with correlation_id_context():
            self.is_loading = True
            self.error = None
            try:
                await self.service.initialize()
                availability = await self.service.check_availability()
            except Exception as e:
                logger.error("Blueprint service initialization failed", exc_info=True)
                self.error = describe_error(e, "Failed to initialize blueprint service")
                self.is_loading = False
                return

            if self.debug_mode:
                logger.debug("Provider availability status", extra={"providers": availability})
            self.available_providers = availability
            self.is_initialized = True
            self.is_loading = False

        if self.auto_load:
            await self.load_blueprints()

    async def load_blueprints(self, **overrides: Any) -> None:
        """
        Run a search with the current parameters plus ``overrides``.

        Page 1 replaces the result list; later pages append to it. Without a
        ``page`` override the current page is fetched again and its items are
        appended a second time, so restart from page 1 with ``refresh()`` or
        ``update_search()``. Failures are stored in ``error`` as display text.
        """
        self._ensure_initialized()

        with correlation_id_context():
            start = time.time()
            self.is_loading = True
            self.error = None

            merged = self.search_params.model_dump()
            merged.update(overrides)
            merged["page"] = overrides.get("page") or self.current_page
            if self.provider_id:
                merged["provider_id"] = self.provider_id

            try:
                params = BlueprintSearchParams.model_validate(merged)
                result = await self.service.search_blueprints(params)
            except Exception as e:
                self.error = describe_error(e)
                self.is_loading = False
                logger.error(
                    f"Blueprint loading error: {e}",
                    extra={
                        "duration_ms": round((time.time() - start) * 1000, 1),
                        "provider": self.provider_id,
                        "params": overrides,
                    },
                )
                return

            if self.debug_mode:
                logger.debug(
                    "Blueprint search metrics",
                    extra={
                        "duration_ms": round((time.time() - start) * 1000, 1),
                        "total_results": result.total,
                        "returned_results": len(result.items),
                        "provider": self.provider_id,
                    },
                )

            if params.page == 1:
                self.blueprints = list(result.items)
            else:
                self.blueprints = [*self.blueprints, *result.items]
            self.total_results = result.total
            self.current_page = result.page
            self.has_next_page = result.has_more
            self.search_params = params
            self.is_loading = False

    async def load_next_page(self) -> None:
        if not self.has_next_page or self.is_loading:
            return
        await self.load_blueprints(page=self.current_page + 1)

    async def refresh(self) -> None:
        await self.load_blueprints(page=1)

    async def update_search(self, **params: Any) -> None:
        await self.load_blueprints(**{**params, "page": 1})

    async def load_blueprint_details(self, blueprint_id: str, provider_id: str) -> Blueprint:
        self._ensure_initialized()

        with correlation_id_context():
            start = time.time()
            self.is_loading = True
            self.error = None
            try:
                blueprint = await self.service.get_blueprint_details(provider_id, blueprint_id)
            except Exception as e:
                self.error = describe_error(e, "Failed to load blueprint details")
                self.is_loading = False
                logger.error(
                    f"Blueprint details error: {e}",
                    extra={"provider": provider_id, "blueprint_id": blueprint_id},
                )
                raise

            if self.debug_mode:
                logger.debug(
                    "Blueprint details loaded",
                    extra={
                        "duration_ms": round((time.time() - start) * 1000, 1),
                        "provider": provider_id,
                        "blueprint_id": blueprint_id,
                        "variant_count": len(blueprint.variants),
                    },
                )
            self.selected_blueprint = blueprint
            self.is_loading = False
            return blueprint

    async def validate_blueprint(
        self, provider_id: str, blueprint: Union[Blueprint, Mapping[str, Any]]
    ) -> ValidationResult:
        self._ensure_initialized()

        with correlation_id_context():
            result = await self.service.validate_blueprint(provider_id, blueprint)
            if self.debug_mode:
                logger.debug(
                    "Blueprint validation",
                    extra={
                        "provider": provider_id,
                        "is_valid": result.is_valid,
                        "error_count": len(result.errors),
                    },
                )
            return result

    async def refresh_availability(self) -> Dict[str, bool]:
        """Re-probe providers. Returns only the providers whose state changed."""
        self._ensure_initialized()

        with correlation_id_context():
            availability = await self.service.check_availability()
            changes = {
                provider_id: available
                for provider_id, available in availability.items()
                if self.available_providers.get(provider_id) != available
            }
            if changes:
                logger.info("Provider availability changed", extra={"changes": changes})
                self.available_providers = availability
            return changes

    def is_provider_enabled(self, provider_id: str) -> bool:
        return self.config_manager.is_provider_enabled(provider_id)

    def get_provider_settings(self, provider_id: str) -> ProviderSettings:
        return self.config_manager.get_provider_settings(provider_id)

    def _ensure_initialized(self) -> None:
        if not self.is_initialized:
            raise ServiceNotInitializedError("BlueprintBrowser")
