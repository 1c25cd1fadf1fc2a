"""Observability module for Cachecast.

Provides metrics and structured logging:
- Prometheus metrics for cache and invalidation traffic
- Request/response instrumentation
- JSON structured logging with correlation IDs
"""

from cachecast.observability.logging import (
    LogContext,
    configure_logging,
    correlation_id_var,
    request_id_var,
)
from cachecast.observability.metrics import (
    MetricsMiddleware,
    MetricsRegistry,
    configure_metrics,
    get_metrics,
)

__all__ = [
    # Logging
    "configure_logging",
    "LogContext",
    "request_id_var",
    "correlation_id_var",
    # Metrics
    "configure_metrics",
    "get_metrics",
    "MetricsMiddleware",
    "MetricsRegistry",
]
