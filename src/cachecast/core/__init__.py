"""Core domain helpers for Cachecast."""

from cachecast.core.coalescing import RequestCoalescer
from cachecast.core.keys import InvalidKey, validate_key

__all__ = ["InvalidKey", "RequestCoalescer", "validate_key"]
