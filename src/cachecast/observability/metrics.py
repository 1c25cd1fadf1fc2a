"""Prometheus metrics for Cachecast.

Provides metrics collection and exposure:
- HTTP request metrics (latency, count)
- Cache metrics (hits, misses, evictions)
- Primary source fetches
- Invalidation traffic (published, received, publish failures)

Usage:
    from cachecast.observability.metrics import get_metrics

    metrics = get_metrics()
    metrics.cache_hits_total.labels(cache="my-cache-data").inc()
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from cachecast.config import settings

if TYPE_CHECKING:
    from starlette.types import ASGIApp

logger = logging.getLogger(__name__)


class NoOpMetric:
    """No-op metric for when metrics are disabled."""

    def labels(self, **kwargs: Any) -> "NoOpMetric":
        """Return self for chaining."""
        return self

    def inc(self, amount: float = 1) -> None:
        pass

    def dec(self, amount: float = 1) -> None:
        pass

    def observe(self, value: float) -> None:
        pass


@dataclass
class MetricsRegistry:
    """Registry for Prometheus metrics."""

    enabled: bool = True

    # HTTP metrics
    http_requests_total: Any = field(default_factory=NoOpMetric)
    http_request_duration_seconds: Any = field(default_factory=NoOpMetric)
    http_requests_in_progress: Any = field(default_factory=NoOpMetric)

    # Cache metrics
    cache_hits_total: Any = field(default_factory=NoOpMetric)
    cache_misses_total: Any = field(default_factory=NoOpMetric)
    cache_evictions_total: Any = field(default_factory=NoOpMetric)
    source_fetches_total: Any = field(default_factory=NoOpMetric)

    # Invalidation metrics
    invalidations_published_total: Any = field(default_factory=NoOpMetric)
    invalidations_received_total: Any = field(default_factory=NoOpMetric)
    invalidation_publish_failures_total: Any = field(default_factory=NoOpMetric)

    # Internal state
    _initialized: bool = field(default=False, repr=False)
    _registry: CollectorRegistry | None = field(default=None, repr=False)

    def initialize(self) -> None:
        """Initialize Prometheus metrics."""
        if self._initialized:
            return

        if not self.enabled:
            logger.info("Metrics are disabled")
            self._initialized = True
            return

        self._registry = registry = CollectorRegistry()

        # HTTP metrics
        self.http_requests_total = Counter(
            "cachecast_http_requests_total",
            "Total HTTP requests",
            ["method", "path", "status"],
            registry=registry,
        )

        self.http_request_duration_seconds = Histogram(
            "cachecast_http_request_duration_seconds",
            "HTTP request latency in seconds",
            ["method", "path"],
            buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
            registry=registry,
        )

        self.http_requests_in_progress = Gauge(
            "cachecast_http_requests_in_progress",
            "HTTP requests currently in progress",
            ["method"],
            registry=registry,
        )

        # Cache metrics
        self.cache_hits_total = Counter(
            "cachecast_cache_hits_total", "Cache hits", ["cache"], registry=registry
        )
        self.cache_misses_total = Counter(
            "cachecast_cache_misses_total", "Cache misses", ["cache"], registry=registry
        )
        self.cache_evictions_total = Counter(
            "cachecast_cache_evictions_total",
            "Cache entries removed by invalidation",
            ["cache"],
            registry=registry,
        )
        self.source_fetches_total = Counter(
            "cachecast_source_fetches_total",
            "Reads served by the primary source",
            ["cache", "outcome"],
            registry=registry,
        )

        # Invalidation metrics
        self.invalidations_published_total = Counter(
            "cachecast_invalidations_published_total",
            "Invalidation messages published",
            ["channel"],
            registry=registry,
        )
        self.invalidations_received_total = Counter(
            "cachecast_invalidations_received_total",
            "Invalidation messages received",
            ["cache"],
            registry=registry,
        )
        self.invalidation_publish_failures_total = Counter(
            "cachecast_invalidation_publish_failures_total",
            "Invalidation messages the transport rejected",
            ["channel"],
            registry=registry,
        )

        self._initialized = True
        logger.info("Prometheus metrics initialized")

    def generate_latest(self) -> bytes:
        """Generate Prometheus metrics in exposition format."""
        if self._registry is None:
            return b"# Metrics disabled\n"
        return generate_latest(self._registry)


# Global metrics registry, replaced by configure_metrics when an app starts
metrics_registry = MetricsRegistry(enabled=settings.enable_metrics)


def get_metrics() -> MetricsRegistry:
    """Get the global metrics registry.

    Initializes metrics on first access.
    """
    if not metrics_registry._initialized:
        metrics_registry.initialize()
    return metrics_registry


def configure_metrics(enabled: bool) -> MetricsRegistry:
    """Make the global registry match an application's metrics setting.

    Switching between enabled and disabled installs a fresh registry, so a
    disabled app records into no-op metrics only.
    """
    global metrics_registry
    if metrics_registry.enabled != enabled:
        metrics_registry = MetricsRegistry(enabled=enabled)
    return get_metrics()


class MetricsMiddleware(BaseHTTPMiddleware):
    """Middleware for HTTP request metrics.

    Records:
    - Request count by method, path, status
    - Request duration histogram
    - Requests in progress gauge
    """

    def __init__(self, app: "ASGIApp") -> None:
        super().__init__(app)
        self.metrics = get_metrics()

    async def dispatch(self, request: Request, call_next: Callable[[Request], Any]) -> Response:
        """Record metrics for HTTP requests."""
        if request.url.path == "/metrics" or request.url.path.startswith("/health"):
            return await call_next(request)

        method = request.method
        path = self._normalize_path(request.url.path)

        self.metrics.http_requests_in_progress.labels(method=method).inc()
        start_time = time.perf_counter()
        status_code = 500  # Default in case of exception

        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            duration = time.perf_counter() - start_time
            self.metrics.http_requests_total.labels(
                method=method, path=path, status=status_code
            ).inc()
            self.metrics.http_request_duration_seconds.labels(
                method=method, path=path
            ).observe(duration)
            self.metrics.http_requests_in_progress.labels(method=method).dec()

    def _normalize_path(self, path: str) -> str:
        """Normalize path by replacing keys with placeholders.

        This prevents high cardinality in metrics.

        Examples:
            /data/get/abc -> /data/get/{key}
            /data/update/abc -> /data/update/{key}
        """
        parts = path.strip("/").split("/")
        if len(parts) >= 3 and parts[0] == "data" and parts[1] in ("get", "update"):
            return f"/data/{parts[1]}/{{key}}"
        return path


def record_cache_hit(cache: str) -> None:
    get_metrics().cache_hits_total.labels(cache=cache).inc()


def record_cache_miss(cache: str) -> None:
    get_metrics().cache_misses_total.labels(cache=cache).inc()


def record_source_fetch(cache: str, outcome: str) -> None:
    """Record a primary source read.

    Args:
        cache: Cache namespace the read was for
        outcome: "ok" or "error"
    """
    get_metrics().source_fetches_total.labels(cache=cache, outcome=outcome).inc()


def record_invalidation_published(channel: str) -> None:
    get_metrics().invalidations_published_total.labels(channel=channel).inc()


def record_invalidation_publish_failure(channel: str) -> None:
    get_metrics().invalidation_publish_failures_total.labels(channel=channel).inc()


def record_invalidation_received(cache: str, evicted: bool) -> None:
    """Record a delivered invalidation and whether it removed an entry."""
    metrics = get_metrics()
    metrics.invalidations_received_total.labels(cache=cache).inc()
    if evicted:
        metrics.cache_evictions_total.labels(cache=cache).inc()
