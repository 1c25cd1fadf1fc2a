"""Middleware for Cachecast API.

- Correlation context for request tracing
"""

from cachecast.api.middleware.correlation import CorrelationMiddleware

__all__ = ["CorrelationMiddleware"]
