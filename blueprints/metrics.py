"""Per-provider request metrics.

Tracks success/failure counts, latency and an error breakdown for each
print provider, and mirrors every observation into the Prometheus
collectors in ``observability.metrics``.
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterator, Literal, Optional

from blueprints.errors import (
    AuthenticationError,
    NetworkError,
    RateLimitError,
    ValidationError,
)
from observability.metrics import (
    provider_errors_total,
    provider_request_duration_seconds,
    provider_requests_total,
)

logger = logging.getLogger("blueprints.metrics")

ErrorKind = Literal["authentication", "rate_limit", "network", "validation", "other"]
HealthStatus = Literal["healthy", "degraded", "failing", "unknown"]

METRICS_WINDOW_SECONDS = 24 * 60 * 60


def _empty_breakdown() -> Dict[str, int]:
    return {"authentication": 0, "rate_limit": 0, "network": 0, "validation": 0, "other": 0}


def classify_error(error: BaseException) -> ErrorKind:
    if isinstance(error, AuthenticationError):
        return "authentication"
    if isinstance(error, RateLimitError):
        return "rate_limit"
    if isinstance(error, NetworkError):
        return "network"
    if isinstance(error, ValidationError):
        return "validation"
    return "other"


@dataclass
class ProviderMetrics:
    """Running counters for a single provider."""
    successful_requests: int = 0
    failed_requests: int = 0
    total_latency_ms: float = 0.0
    request_count: int = 0
    rate_limit_hits: int = 0
    last_request: float = field(default_factory=time.time)
    errors: Dict[str, int] = field(default_factory=_empty_breakdown)


@dataclass
class ProviderPerformanceReport:
    provider_id: str
    status: HealthStatus
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    success_rate: Optional[float] = None
    average_latency_ms: Optional[float] = None
    request_count: int = 0
    rate_limit_hits: int = 0
    error_breakdown: Dict[str, int] = field(default_factory=dict)
    last_request: Optional[datetime] = None


class ProviderMetricsCollector:
    """Collector for provider request metrics."""

    def __init__(self, window_seconds: int = METRICS_WINDOW_SECONDS):
        self.window_seconds = window_seconds
        self._metrics: Dict[str, ProviderMetrics] = {}

    def init_provider(self, provider_id: str) -> None:
        if provider_id not in self._metrics:
            self._metrics[provider_id] = ProviderMetrics()

    def record_success(self, provider_id: str, latency_ms: float) -> None:
        metrics = self._ensure(provider_id)
        metrics.successful_requests += 1
        metrics.request_count += 1
        metrics.total_latency_ms += latency_ms
        metrics.last_request = time.time()

        provider_requests_total.labels(provider=provider_id, outcome="success").inc()
        provider_request_duration_seconds.labels(provider=provider_id).observe(latency_ms / 1000)

    def record_failure(self, provider_id: str, error: BaseException, latency_ms: float) -> None:
        metrics = self._ensure(provider_id)
        metrics.failed_requests += 1
        metrics.request_count += 1
        metrics.total_latency_ms += latency_ms
        metrics.last_request = time.time()

        kind = classify_error(error)
        metrics.errors[kind] += 1
        if kind == "rate_limit":
            metrics.rate_limit_hits += 1

        provider_requests_total.labels(provider=provider_id, outcome="failure").inc()
        provider_request_duration_seconds.labels(provider=provider_id).observe(latency_ms / 1000)
        provider_errors_total.labels(provider=provider_id, kind=kind).inc()

    @contextmanager
    def track_request(self, provider_id: str) -> Iterator[None]:
        """Record the wrapped call as one success or failure with its latency."""
        start = time.time()
        try:
            yield
        except Exception as e:
            self.record_failure(provider_id, e, (time.time() - start) * 1000)
            raise
        self.record_success(provider_id, (time.time() - start) * 1000)

    def get_provider_metrics(self, provider_id: str) -> Optional[ProviderMetrics]:
        return self._metrics.get(provider_id)

    def get_all_metrics(self) -> Dict[str, ProviderMetrics]:
        self._prune()
        return dict(self._metrics)

    def get_success_rate(self, provider_id: str) -> float:
        """Success rate as a percentage, 0 when nothing was recorded."""
        metrics = self._metrics.get(provider_id)
        if not metrics or metrics.request_count == 0:
            return 0.0
        return metrics.successful_requests / metrics.request_count * 100

    def get_average_latency(self, provider_id: str) -> float:
        metrics = self._metrics.get(provider_id)
        if not metrics or metrics.request_count == 0:
            return 0.0
        return metrics.total_latency_ms / metrics.request_count

    def get_error_breakdown(self, provider_id: str) -> Dict[str, int]:
        metrics = self._metrics.get(provider_id)
        if not metrics:
            return {}
        return dict(metrics.errors)

    def generate_report(self, provider_id: str) -> ProviderPerformanceReport:
        metrics = self._metrics.get(provider_id)
        if not metrics:
            return ProviderPerformanceReport(provider_id=provider_id, status="unknown")

        success_rate = self.get_success_rate(provider_id)
        status: HealthStatus = "unknown"
        if metrics.request_count > 0:
            if success_rate >= 98:
                status = "healthy"
            elif success_rate >= 90:
                status = "degraded"
            else:
                status = "failing"

        return ProviderPerformanceReport(
            provider_id=provider_id,
            status=status,
            success_rate=success_rate,
            average_latency_ms=self.get_average_latency(provider_id),
            request_count=metrics.request_count,
            rate_limit_hits=metrics.rate_limit_hits,
            error_breakdown=self.get_error_breakdown(provider_id),
            last_request=datetime.fromtimestamp(metrics.last_request, tz=timezone.utc),
        )

    def reset_metrics(self, provider_id: str) -> None:
        self._metrics[provider_id] = ProviderMetrics()

    def _ensure(self, provider_id: str) -> ProviderMetrics:
        self.init_provider(provider_id)
        return self._metrics[provider_id]

    def _prune(self) -> None:
        cutoff = time.time() - self.window_seconds
        for provider_id in [pid for pid, m in self._metrics.items() if m.last_request < cutoff]:
            logger.debug(f"Pruning stale metrics for provider {provider_id}")
            del self._metrics[provider_id]
