"""Redis cache implementation for Cachecast.

Provides async Redis operations for caching values.
Uses redis-py async client for connection pooling.
"""

from __future__ import annotations

from collections.abc import Awaitable
from datetime import datetime
from typing import TYPE_CHECKING, cast

import orjson
import redis.asyncio as redis

from cachecast.cache.base import CacheEntry, CacheStore
from cachecast.cache.keys import CacheKeys
from cachecast.config import settings

if TYPE_CHECKING:
    from redis.asyncio import Redis

# Module-level connection pool
_redis_client: Redis | None = None


async def get_redis() -> Redis:
    """Get or create the Redis client.

    Uses connection pooling for efficient connection management.
    """
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(  # type: ignore[no-untyped-call]
            settings.redis_url,
            encoding="utf-8",
            decode_responses=False,  # We're storing bytes
        )
    return _redis_client


async def close_redis() -> None:
    """Close Redis connections."""
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None


class RedisCacheStore(CacheStore):
    """Cache store backed by Redis.

    Entries are stored as JSON documents holding the value and its creation
    timestamp. With a TTL configured Redis expires entries on its own.
    """

    def __init__(self, client: Redis, name: str = "my-cache-data", ttl: int | None = None):
        super().__init__(name)
        self.client = client
        self.ttl = ttl

    def _key(self, key: str) -> str:
        return CacheKeys.entry(self.name, key)

    async def entry(self, key: str) -> CacheEntry | None:
        raw = cast(bytes | None, await self.client.get(self._key(key)))
        if raw is None:
            return None

        parsed = orjson.loads(raw)
        return CacheEntry(
            key=key,
            value=parsed["value"],
            created_at=datetime.fromisoformat(parsed["created_at"]),
        )

    async def put(self, key: str, value: str) -> CacheEntry:
        entry = CacheEntry(key=key, value=value)
        payload = orjson.dumps(
            {"value": entry.value, "created_at": entry.created_at.isoformat()}
        )
        if self.ttl:
            await self.client.set(self._key(key), payload, ex=self.ttl)
        else:
            await self.client.set(self._key(key), payload)
        self.stats.puts += 1
        return entry

    async def evict(self, key: str) -> bool:
        deleted = cast(int, await self.client.delete(self._key(key)))
        if deleted:
            self.stats.evictions += 1
        return deleted > 0

    async def size(self) -> int:
        count = 0
        # Use SCAN to avoid blocking on large keyspaces
        async for _key in self.client.scan_iter(match=CacheKeys.namespace_pattern(self.name)):
            count += 1
        return count

    async def clear(self) -> int:
        deleted = 0
        async for key in self.client.scan_iter(match=CacheKeys.namespace_pattern(self.name)):
            deleted += cast(int, await self.client.delete(key))
        self.stats.evictions += deleted
        return deleted

    async def health_check(self) -> bool:
        """Check Redis connectivity."""
        try:
            await cast(Awaitable[bool], self.client.ping())
            return True
        except Exception:
            return False
