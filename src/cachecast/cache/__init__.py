"""Cache layer for Cachecast.

Provides the cache-aside storage used by the data service:
- CacheStore interface with explicit get/put/evict calls
- In-memory store for the per-instance local cache
- Redis store for shared deployments
- Optional TTL-based expiration
"""

from cachecast.cache.base import CacheEntry, CacheStats, CacheStore
from cachecast.cache.keys import CacheKeys
from cachecast.cache.memory import InMemoryCacheStore
from cachecast.cache.redis import RedisCacheStore, close_redis, get_redis

__all__ = [
    "CacheEntry",
    "CacheKeys",
    "CacheStats",
    "CacheStore",
    "InMemoryCacheStore",
    "RedisCacheStore",
    "close_redis",
    "get_redis",
]
