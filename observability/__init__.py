"""
Observability infrastructure for the blueprint provider integration layer.

Provides:
- Structured logging with correlation IDs
- In-memory recent-log buffer for the debug panel
- Prometheus metrics per print provider
"""

from .logging import (
    correlation_id_context,
    get_correlation_id,
    recent_logs,
    setup_logging,
)
from .metrics import (
    metrics_registry,
    provider_errors_total,
    provider_rate_limit_remaining,
    provider_request_duration_seconds,
    provider_requests_total,
    search_results_count,
)

__all__ = [
    "setup_logging",
    "correlation_id_context",
    "get_correlation_id",
    "recent_logs",
    "metrics_registry",
    "provider_requests_total",
    "provider_request_duration_seconds",
    "provider_errors_total",
    "provider_rate_limit_remaining",
    "search_results_count",
]
