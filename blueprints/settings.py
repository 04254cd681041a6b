"""Environment-driven provider configuration.

Values come from the process environment (optionally seeded from a ``.env``
file through python-dotenv) and are held by a ``ConfigManager`` that can be
updated at runtime.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Literal, Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from blueprints.catalog import list_provider_ids
from blueprints.errors import ConfigurationError, UnknownProviderError

logger = logging.getLogger("blueprints.settings")

ProviderEnvironment = Literal["production", "sandbox"]

DEFAULT_ENABLED_PROVIDERS = ("printify", "printful")

_TRUE_VALUES = {"1", "true", "yes", "on"}


class ProviderSettings(BaseModel):
    api_key: str = ""
    enabled: bool = False
    environment: ProviderEnvironment = "production"
    webhook_secret: Optional[str] = None
    custom_endpoint: Optional[str] = None


class FeatureFlags(BaseModel):
    bulk_operations: bool = True
    caching_enabled: bool = True
    webhooks_enabled: bool = False
    debug_mode: bool = False


class CacheSettings(BaseModel):
    ttl: int = 3600
    max_size: int = 1000
    stale_while_revalidate: int = 300


class EnvironmentConfig(BaseModel):
    providers: Dict[str, ProviderSettings] = Field(default_factory=dict)
    features: FeatureFlags = Field(default_factory=FeatureFlags)
    cache: CacheSettings = Field(default_factory=CacheSettings)


def _env_bool(env: Mapping[str, str], key: str, default: bool) -> bool:
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in _TRUE_VALUES


def _env_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{key} must be an integer, got {raw!r}")


def load_config_from_env(
    env: Optional[Mapping[str, str]] = None,
    dotenv_path: Optional[str] = None,
) -> EnvironmentConfig:
    """
    Build an EnvironmentConfig from environment variables.

    Per provider: {PROVIDER}_API_KEY, {PROVIDER}_ENABLED, {PROVIDER}_ENVIRONMENT,
    {PROVIDER}_BASE_URL, {PROVIDER}_WEBHOOK_SECRET.
    Global: BLUEPRINTS_DEBUG, BLUEPRINTS_CACHE_TTL, BLUEPRINTS_CACHE_MAX_SIZE,
    BLUEPRINTS_STALE_WHILE_REVALIDATE, BLUEPRINTS_CACHING_ENABLED,
    BLUEPRINTS_WEBHOOKS_ENABLED, BLUEPRINTS_BULK_OPERATIONS.

    When ``env`` is omitted, ``os.environ`` is used after loading
    ``dotenv_path`` (without overriding variables already set).
    """
    if env is None:
        if dotenv_path:
            load_dotenv(dotenv_path=dotenv_path, override=False)
        env = os.environ

    providers: Dict[str, ProviderSettings] = {}
    for provider_id in list_provider_ids():
        prefix = provider_id.upper()
        environment = (env.get(f"{prefix}_ENVIRONMENT") or "production").strip().lower()
        if environment not in ("production", "sandbox"):
            raise ConfigurationError(
                f"{prefix}_ENVIRONMENT must be 'production' or 'sandbox', got {environment!r}"
            )
        providers[provider_id] = ProviderSettings(
            api_key=env.get(f"{prefix}_API_KEY", ""),
            enabled=_env_bool(
                env, f"{prefix}_ENABLED", provider_id in DEFAULT_ENABLED_PROVIDERS
            ),
            environment=environment,
            webhook_secret=env.get(f"{prefix}_WEBHOOK_SECRET") or None,
            custom_endpoint=env.get(f"{prefix}_BASE_URL") or None,
        )

    features = FeatureFlags(
        bulk_operations=_env_bool(env, "BLUEPRINTS_BULK_OPERATIONS", True),
        caching_enabled=_env_bool(env, "BLUEPRINTS_CACHING_ENABLED", True),
        webhooks_enabled=_env_bool(env, "BLUEPRINTS_WEBHOOKS_ENABLED", False),
        debug_mode=_env_bool(env, "BLUEPRINTS_DEBUG", False),
    )
    cache = CacheSettings(
        ttl=_env_int(env, "BLUEPRINTS_CACHE_TTL", 3600),
        max_size=_env_int(env, "BLUEPRINTS_CACHE_MAX_SIZE", 1000),
        stale_while_revalidate=_env_int(env, "BLUEPRINTS_STALE_WHILE_REVALIDATE", 300),
    )

    return EnvironmentConfig(providers=providers, features=features, cache=cache)


def _deep_merge(base: Dict[str, Any], updates: Mapping[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in updates.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class ConfigManager:
    """Holds the active EnvironmentConfig and validates every change."""

    def __init__(self, config: Optional[EnvironmentConfig] = None):
        self._config = config if config is not None else load_config_from_env()
        self._validate(self._config)

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "ConfigManager":
        return cls(load_config_from_env(dotenv_path=dotenv_path))

    def get_config(self) -> EnvironmentConfig:
        return self._config.model_copy(deep=True)

    def get_provider_settings(self, provider_id: str) -> ProviderSettings:
        settings = self._config.providers.get(provider_id)
        if settings is None:
            raise UnknownProviderError(provider_id, f"Unknown provider: {provider_id}")
        return settings.model_copy()

    def is_provider_enabled(self, provider_id: str) -> bool:
        settings = self._config.providers.get(provider_id)
        return bool(settings and settings.enabled and settings.api_key)

    def get_enabled_providers(self) -> List[str]:
        return [pid for pid in self._config.providers if self.is_provider_enabled(pid)]

    def update_config(self, updates: Mapping[str, Any]) -> EnvironmentConfig:
        """Deep-merge a partial config dict into the current one."""
        merged = _deep_merge(self._config.model_dump(), updates)
        new_config = EnvironmentConfig.model_validate(merged)
        self._validate(new_config)
        self._config = new_config
        logger.info("Configuration updated", extra={"sections": sorted(updates.keys())})
        return self.get_config()

    def update_provider_config(self, provider_id: str, **changes: Any) -> ProviderSettings:
        if provider_id not in self._config.providers:
            raise UnknownProviderError(provider_id, f"Unknown provider: {provider_id}")
        self.update_config({"providers": {provider_id: changes}})
        return self.get_provider_settings(provider_id)

    def _validate(self, config: EnvironmentConfig) -> None:
        for provider_id, settings in config.providers.items():
            if settings.enabled and not settings.api_key:
                logger.warning(
                    f"Provider {provider_id} is enabled but has no API key",
                    extra={"provider": provider_id},
                )
            if config.features.webhooks_enabled and settings.enabled and not settings.webhook_secret:
                logger.warning(
                    f"Webhooks are enabled but {provider_id} has no webhook secret",
                    extra={"provider": provider_id},
                )
            if settings.custom_endpoint and not settings.custom_endpoint.startswith(
                ("http://", "https://")
            ):
                raise ConfigurationError(
                    f"Invalid custom endpoint for {provider_id}: {settings.custom_endpoint}"
                )

        cache = config.cache
        if cache.ttl < 0:
            raise ConfigurationError("Cache TTL must be non-negative")
        if cache.max_size < 1:
            raise ConfigurationError("Cache max size must be positive")
        if cache.stale_while_revalidate < 0:
            raise ConfigurationError("Stale-while-revalidate must be non-negative")
