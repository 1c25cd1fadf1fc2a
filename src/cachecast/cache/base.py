"""Cache store interface for Cachecast.

The service talks to the cache through explicit calls on this interface
instead of relying on method interception:

- get: look up a cached value
- put: store a freshly fetched value
- evict: drop the entry for a key (idempotent)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import UTC, datetime


@dataclass(frozen=True)
class CacheEntry:
    """A single cached value."""

    key: str
    value: str
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def age_seconds(self, now: datetime | None = None) -> float:
        """Seconds elapsed since the entry was stored."""
        current = now or datetime.now(UTC)
        return (current - self.created_at).total_seconds()


@dataclass
class CacheStats:
    """Hit/miss counters for one cache store."""

    hits: int = 0
    misses: int = 0
    puts: int = 0
    evictions: int = 0

    @property
    def hit_ratio(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0


class CacheStore(ABC):
    """Abstract cache store interface."""

    def __init__(self, name: str) -> None:
        self.name = name
        self.stats = CacheStats()

    async def get(self, key: str) -> str | None:
        """Return the cached value for key, or None when not cached."""
        entry = await self.entry(key)
        if entry is None:
            self.stats.misses += 1
            return None
        self.stats.hits += 1
        return entry.value

    @abstractmethod
    async def entry(self, key: str) -> CacheEntry | None:
        """Return the full entry for key without touching hit counters."""
        pass

    @abstractmethod
    async def put(self, key: str, value: str) -> CacheEntry:
        """Store value under key, replacing any previous entry."""
        pass

    @abstractmethod
    async def evict(self, key: str) -> bool:
        """Remove the entry for key.

        Returns True if an entry was removed. Evicting an absent key is a no-op.
        """
        pass

    @abstractmethod
    async def size(self) -> int:
        """Number of live entries."""
        pass

    @abstractmethod
    async def clear(self) -> int:
        """Remove every entry and return how many were removed."""
        pass

    async def health_check(self) -> bool:
        """Check that the store is reachable."""
        return True
