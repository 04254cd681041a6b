"""Print-on-demand blueprint provider integration layer."""

from blueprints.adapters import ADAPTERS, BaseProviderAdapter, get_adapter_class
from blueprints.bootstrap import BlueprintServices, build_services
from blueprints.browser import BlueprintBrowser, describe_error
from blueprints.errors import (
    AllProvidersFailedError,
    AuthenticationError,
    BlueprintError,
    BlueprintNotFoundError,
    ConfigurationError,
    NetworkError,
    ProviderAPIError,
    ProviderUnavailableError,
    RateLimitError,
    ServiceNotInitializedError,
    UnknownProviderError,
    ValidationError,
)
from blueprints.metrics import ProviderMetricsCollector
from blueprints.models import (
    Blueprint,
    BlueprintSearchParams,
    BlueprintSearchResult,
    ProviderConfig,
    ProviderRateLimits,
)
from blueprints.service import BlueprintService, merge_search_results
from blueprints.settings import ConfigManager, EnvironmentConfig, load_config_from_env
from blueprints.validation import BlueprintValidationService, SelectedBlueprint

__all__ = [
    "ADAPTERS",
    "AllProvidersFailedError",
    "AuthenticationError",
    "BaseProviderAdapter",
    "Blueprint",
    "BlueprintBrowser",
    "BlueprintError",
    "BlueprintNotFoundError",
    "BlueprintSearchParams",
    "BlueprintSearchResult",
    "BlueprintService",
    "BlueprintServices",
    "BlueprintValidationService",
    "ConfigManager",
    "ConfigurationError",
    "EnvironmentConfig",
    "NetworkError",
    "ProviderAPIError",
    "ProviderConfig",
    "ProviderMetricsCollector",
    "ProviderRateLimits",
    "ProviderUnavailableError",
    "RateLimitError",
    "SelectedBlueprint",
    "ServiceNotInitializedError",
    "UnknownProviderError",
    "ValidationError",
    "build_services",
    "describe_error",
    "get_adapter_class",
    "load_config_from_env",
    "merge_search_results",
]
