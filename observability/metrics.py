"""
Prometheus metrics for the blueprint provider integration layer.

Provides RED metrics (Rate, Errors, Duration) per print provider.
"""

from prometheus_client import (
    Counter,
    Histogram,
    Gauge,
    REGISTRY,
)

# Use the default registry
metrics_registry = REGISTRY

# Provider API Metrics
provider_requests_total = Counter(
    "blueprint_provider_requests_total",
    "Total print provider catalog requests",
    ["provider", "outcome"],  # outcome: success, failure
    registry=metrics_registry,
)

provider_request_duration_seconds = Histogram(
    "blueprint_provider_request_duration_seconds",
    "Print provider API duration in seconds",
    ["provider"],
    buckets=[0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0],
    registry=metrics_registry,
)

provider_errors_total = Counter(
    "blueprint_provider_errors_total",
    "Total print provider errors by kind",
    ["provider", "kind"],  # kind: authentication, rate_limit, network, validation, other
    registry=metrics_registry,
)

provider_rate_limit_remaining = Gauge(
    "blueprint_provider_rate_limit_remaining",
    "Requests remaining in the provider's current rate-limit window",
    ["provider"],
    registry=metrics_registry,
)

search_results_count = Histogram(
    "blueprint_search_results_count",
    "Number of blueprints returned per provider search",
    ["provider"],
    buckets=[0, 1, 5, 10, 20, 50, 100],
    registry=metrics_registry,
)
