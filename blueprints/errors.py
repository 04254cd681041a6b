"""
Error hierarchy for the blueprint provider integration layer.

Every failure that crosses the adapter boundary is one of these types, so
callers can branch on the kind of failure instead of parsing messages.

Exception Hierarchy:
    BlueprintError (base)
    ├── ProviderAPIError
    │   └── RateLimitError
    ├── ValidationError
    ├── BlueprintNotFoundError
    ├── AuthenticationError
    ├── ProviderUnavailableError
    └── NetworkError

Programmer and configuration mistakes are deliberately outside the
hierarchy (UnknownProviderError, ServiceNotInitializedError,
ConfigurationError) so a UI boundary catching BlueprintError never hides
them.

Usage:
    from blueprints.errors import AuthenticationError, BlueprintError

    try:
        await adapter.fetch_blueprints(params)
    except AuthenticationError as e:
        logger.error(f"Bad credentials for {e.provider_id}")
    except BlueprintError as e:
        logger.error(f"Provider call failed: {e}", extra={"error": e.to_dict()})
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from blueprints.models import FieldError


def _now_ms() -> int:
    return int(time.time() * 1000)


def format_reset_time(reset_at: int) -> str:
    """Render an epoch-milliseconds reset time as an ISO-8601 UTC string."""
    return datetime.fromtimestamp(reset_at / 1000, tz=timezone.utc).isoformat()


class BlueprintError(Exception):
    """
    Base exception for all blueprint-related failures.

    Attributes:
        message: Human-readable error message
        code: Stable machine-readable error code
        timestamp: Epoch milliseconds when the error was constructed
    """

    code = "BLUEPRINT_ERROR"

    def __init__(self, message: str, *, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.timestamp = _now_ms()

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to a dictionary for JSON serialization."""
        return {
            "error": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "timestamp": self.timestamp,
        }


class ProviderAPIError(BlueprintError):
    """
    Raised when a provider answers with an unexpected non-2xx status.

    Examples:
        raise ProviderAPIError("Internal error", provider_id="printify",
                               status_code=502, endpoint="/catalog/blueprints",
                               retryable=True)
    """

    code = "PROVIDER_API_ERROR"

    def __init__(
        self,
        message: str,
        *,
        provider_id: str,
        status_code: int,
        endpoint: str,
        retryable: bool = False,
    ):
        super().__init__(message)
        self.provider_id = provider_id
        self.status_code = status_code
        self.endpoint = endpoint
        self.retryable = retryable

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result.update(
            {
                "provider_id": self.provider_id,
                "status_code": self.status_code,
                "endpoint": self.endpoint,
                "retryable": self.retryable,
            }
        )
        return result


class RateLimitError(ProviderAPIError):
    """Raised when a provider reports 429. reset_at is epoch milliseconds."""

    code = "RATE_LIMIT_EXCEEDED"

    def __init__(self, *, provider_id: str, endpoint: str, reset_at: int):
        super().__init__(
            f"Rate limit exceeded for provider {provider_id}. "
            f"Resets at {format_reset_time(reset_at)}",
            provider_id=provider_id,
            status_code=429,
            endpoint=endpoint,
            retryable=True,
        )
        self.reset_at = reset_at

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["reset_at"] = self.reset_at
        return result


class ValidationError(BlueprintError):
    """
    Raised when local shape or business-rule validation fails.

    Examples:
        raise ValidationError("Invalid blueprint",
                              [FieldError(field="name", message="Name is required")])
    """

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, errors: Sequence[FieldError]):
        super().__init__(message)
        self.errors: List[FieldError] = list(errors)

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["errors"] = [error.model_dump() for error in self.errors]
        return result


class BlueprintNotFoundError(BlueprintError):
    code = "BLUEPRINT_NOT_FOUND"

    def __init__(self, *, blueprint_id: str, provider_id: str):
        super().__init__(f"Blueprint {blueprint_id} not found for provider {provider_id}")
        self.blueprint_id = blueprint_id
        self.provider_id = provider_id

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result.update({"blueprint_id": self.blueprint_id, "provider_id": self.provider_id})
        return result


class AuthenticationError(BlueprintError):
    code = "AUTHENTICATION_ERROR"

    def __init__(self, *, provider_id: str, message: str = "Authentication failed"):
        super().__init__(message)
        self.provider_id = provider_id

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["provider_id"] = self.provider_id
        return result


class ProviderUnavailableError(BlueprintError):
    code = "PROVIDER_UNAVAILABLE"

    def __init__(
        self,
        *,
        provider_id: str,
        message: str = "Provider service is currently unavailable",
    ):
        super().__init__(message)
        self.provider_id = provider_id

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["provider_id"] = self.provider_id
        return result


class NetworkError(BlueprintError):
    """Transport-level failure: connection refused, DNS, timeout."""

    code = "NETWORK_ERROR"

    def __init__(self, message: str, *, provider_id: str, retryable: bool = True):
        super().__init__(message)
        self.provider_id = provider_id
        self.retryable = retryable

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result.update({"provider_id": self.provider_id, "retryable": self.retryable})
        return result


class UnknownProviderError(LookupError):
    """Raised for a provider id that is not configured or not supported."""

    def __init__(self, provider_id: str, message: Optional[str] = None):
        super().__init__(message or f"Provider not found: {provider_id}")
        self.provider_id = provider_id


class ServiceNotInitializedError(RuntimeError):
    def __init__(self, service_name: str = "BlueprintService"):
        super().__init__(f"{service_name} must be initialized before use")


class AllProvidersFailedError(RuntimeError):
    """Raised when a fan-out search gets no successful provider response."""

    def __init__(self, errors: Dict[str, BaseException]):
        super().__init__("Failed to fetch blueprints from all providers")
        self.errors = errors


class ConfigurationError(ValueError):
    pass
