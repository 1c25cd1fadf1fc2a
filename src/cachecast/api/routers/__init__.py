"""API routers for Cachecast."""

from cachecast.api.routers import data, health, metrics

__all__ = ["data", "health", "metrics"]
