"""Cachecast: cache-aside reads with broadcast cache invalidation."""

__version__ = "0.1.0"
