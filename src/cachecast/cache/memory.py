"""In-process cache store.

Each instance holds its own copy of the data; cross-instance consistency is
maintained by the invalidation bus, not by sharing this store.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import UTC, datetime

from cachecast.cache.base import CacheEntry, CacheStore

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class InMemoryCacheStore(CacheStore):
    """Dict-backed cache store guarded by an asyncio lock.

    Entries live until evicted, or until ``ttl`` seconds have passed when a
    TTL is configured. Expired entries are dropped lazily on access.
    """

    def __init__(
        self,
        name: str = "my-cache-data",
        ttl: int | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        super().__init__(name)
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = asyncio.Lock()

    def _expired(self, entry: CacheEntry) -> bool:
        if self.ttl is None:
            return False
        return entry.age_seconds(self._clock()) >= self.ttl

    async def entry(self, key: str) -> CacheEntry | None:
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._expired(entry):
                del self._entries[key]
                logger.debug(f"Expired cache entry [cache:{self.name}] [key:{key}]")
                return None
            return entry

    async def put(self, key: str, value: str) -> CacheEntry:
        entry = CacheEntry(key=key, value=value, created_at=self._clock())
        async with self._lock:
            self._entries[key] = entry
        self.stats.puts += 1
        return entry

    async def evict(self, key: str) -> bool:
        async with self._lock:
            removed = self._entries.pop(key, None) is not None
        if removed:
            self.stats.evictions += 1
        return removed

    async def size(self) -> int:
        async with self._lock:
            expired = [k for k, e in self._entries.items() if self._expired(e)]
            for k in expired:
                del self._entries[k]
            return len(self._entries)

    async def clear(self) -> int:
        async with self._lock:
            count = len(self._entries)
            self._entries.clear()
        self.stats.evictions += count
        return count
