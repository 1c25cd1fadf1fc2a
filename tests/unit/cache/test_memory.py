"""Tests for the in-memory cache store."""

import asyncio
from datetime import UTC, datetime, timedelta

import pytest

from cachecast.cache.base import CacheEntry
from cachecast.cache.memory import InMemoryCacheStore


class FakeClock:
    def __init__(self) -> None:
        self.now = datetime(2026, 1, 1, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class TestInMemoryCacheStore:
    """Test the local cache store."""

    @pytest.fixture
    def store(self) -> InMemoryCacheStore:
        return InMemoryCacheStore(name="test-cache")

    async def test_get_absent_key_returns_none(self, store: InMemoryCacheStore) -> None:
        """A lookup of an uncached key misses."""
        assert await store.get("missing") is None
        assert store.stats.misses == 1

    async def test_put_then_get(self, store: InMemoryCacheStore) -> None:
        """A stored value is returned and counted as a hit."""
        entry = await store.put("abc", "value")

        assert isinstance(entry, CacheEntry)
        assert entry.key == "abc"
        assert await store.get("abc") == "value"
        assert store.stats.hits == 1
        assert store.stats.puts == 1

    async def test_at_most_one_entry_per_key(self, store: InMemoryCacheStore) -> None:
        """Storing a key twice replaces the entry."""
        await store.put("abc", "first")
        await store.put("abc", "second")

        assert await store.size() == 1
        assert await store.get("abc") == "second"

    async def test_entry_does_not_count_hits(self, store: InMemoryCacheStore) -> None:
        """Inspecting an entry leaves the hit counter alone."""
        await store.put("abc", "value")
        entry = await store.entry("abc")

        assert entry is not None
        assert entry.value == "value"
        assert store.stats.hits == 0

    async def test_evict_present_key(self, store: InMemoryCacheStore) -> None:
        """Evicting a cached key removes it."""
        await store.put("abc", "value")

        assert await store.evict("abc") is True
        assert await store.get("abc") is None
        assert store.stats.evictions == 1

    async def test_evict_absent_key_is_noop(self, store: InMemoryCacheStore) -> None:
        """Evicting an uncached key changes nothing."""
        assert await store.evict("never-cached") is False
        assert await store.evict("never-cached") is False
        assert store.stats.evictions == 0

    async def test_clear(self, store: InMemoryCacheStore) -> None:
        """Clear drops every entry and reports how many."""
        await store.put("a", "1")
        await store.put("b", "2")

        assert await store.clear() == 2
        assert await store.size() == 0

    async def test_entries_never_expire_without_ttl(self) -> None:
        """Without a TTL entries live until evicted."""
        clock = FakeClock()
        store = InMemoryCacheStore(clock=clock)
        await store.put("abc", "value")

        clock.advance(10 * 365 * 24 * 3600)
        assert await store.get("abc") == "value"

    async def test_ttl_expiry(self) -> None:
        """Entries disappear once their TTL elapses."""
        clock = FakeClock()
        store = InMemoryCacheStore(ttl=60, clock=clock)
        await store.put("abc", "value")

        clock.advance(59)
        assert await store.get("abc") == "value"

        clock.advance(1)
        assert await store.get("abc") is None
        assert await store.size() == 0

    async def test_created_at_uses_clock(self) -> None:
        """Entry timestamps come from the injected clock."""
        clock = FakeClock()
        store = InMemoryCacheStore(clock=clock)
        entry = await store.put("abc", "value")

        assert entry.created_at == clock.now
        clock.advance(5)
        assert entry.age_seconds(clock.now) == 5

    async def test_concurrent_puts_and_evicts(self, store: InMemoryCacheStore) -> None:
        """Interleaved puts and evicts leave a consistent store."""
        keys = [f"k{i}" for i in range(50)]
        await asyncio.gather(*(store.put(k, k) for k in keys))
        await asyncio.gather(*(store.evict(k) for k in keys[::2]))

        assert await store.size() == 25

    async def test_health_check(self, store: InMemoryCacheStore) -> None:
        """The local store is always healthy."""
        assert await store.health_check() is True


class TestCacheStats:
    """Test hit ratio bookkeeping."""

    async def test_hit_ratio(self) -> None:
        """Hit ratio is hits over lookups."""
        store = InMemoryCacheStore()
        await store.put("a", "1")
        await store.get("a")
        await store.get("a")
        await store.get("b")

        assert store.stats.hit_ratio == pytest.approx(2 / 3)

    def test_hit_ratio_without_lookups(self) -> None:
        """Hit ratio is zero before any lookup."""
        assert InMemoryCacheStore().stats.hit_ratio == 0.0
