"""Tests for the Redis cache store using a mocked client."""

from __future__ import annotations

from collections.abc import AsyncIterator
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import orjson
import pytest

from cachecast.cache.redis import RedisCacheStore


async def _iter(items: list[bytes]) -> AsyncIterator[bytes]:
    for item in items:
        yield item


class TestRedisCacheStore:
    """Test Redis-backed cache operations."""

    @pytest.fixture
    def mock_redis(self) -> AsyncMock:
        client = AsyncMock()
        client.get.return_value = None
        client.delete.return_value = 0
        return client

    @pytest.fixture
    def store(self, mock_redis: AsyncMock) -> RedisCacheStore:
        return RedisCacheStore(mock_redis, name="my-cache-data")

    async def test_get_miss(self, store: RedisCacheStore, mock_redis: AsyncMock) -> None:
        """A missing Redis key is a miss under the namespaced key."""
        assert await store.get("abc") is None
        mock_redis.get.assert_awaited_once_with("cachecast:my-cache-data:abc")
        assert store.stats.misses == 1

    async def test_get_hit(self, store: RedisCacheStore, mock_redis: AsyncMock) -> None:
        """A stored payload is decoded and counted as a hit."""
        mock_redis.get.return_value = orjson.dumps(
            {"value": "Sample Data for key abc", "created_at": "2026-01-01T00:00:00+00:00"}
        )

        assert await store.get("abc") == "Sample Data for key abc"
        assert store.stats.hits == 1

    async def test_entry_restores_timestamp(
        self, store: RedisCacheStore, mock_redis: AsyncMock
    ) -> None:
        """The stored creation time survives a round trip."""
        mock_redis.get.return_value = orjson.dumps(
            {"value": "v", "created_at": "2026-01-01T00:00:00+00:00"}
        )

        entry = await store.entry("abc")

        assert entry is not None
        assert entry.created_at == datetime(2026, 1, 1, tzinfo=UTC)

    async def test_put_without_ttl(self, store: RedisCacheStore, mock_redis: AsyncMock) -> None:
        """Entries are written without expiry by default."""
        entry = await store.put("abc", "value")

        args, kwargs = mock_redis.set.call_args
        assert args[0] == "cachecast:my-cache-data:abc"
        payload = orjson.loads(args[1])
        assert payload["value"] == "value"
        assert payload["created_at"] == entry.created_at.isoformat()
        assert "ex" not in kwargs

    async def test_put_with_ttl(self, mock_redis: AsyncMock) -> None:
        """A configured TTL is passed to Redis as the expiry."""
        store = RedisCacheStore(mock_redis, name="my-cache-data", ttl=30)
        await store.put("abc", "value")

        _, kwargs = mock_redis.set.call_args
        assert kwargs["ex"] == 30

    async def test_evict_present(self, store: RedisCacheStore, mock_redis: AsyncMock) -> None:
        """Evicting an existing key deletes it."""
        mock_redis.delete.return_value = 1

        assert await store.evict("abc") is True
        mock_redis.delete.assert_awaited_once_with("cachecast:my-cache-data:abc")
        assert store.stats.evictions == 1

    async def test_evict_absent_is_noop(
        self, store: RedisCacheStore, mock_redis: AsyncMock
    ) -> None:
        """Evicting a missing key changes nothing."""
        assert await store.evict("abc") is False
        assert store.stats.evictions == 0

    async def test_size_scans_namespace(
        self, store: RedisCacheStore, mock_redis: AsyncMock
    ) -> None:
        """Size counts keys under the cache namespace."""
        mock_redis.scan_iter = MagicMock(return_value=_iter([b"k1", b"k2", b"k3"]))

        assert await store.size() == 3
        mock_redis.scan_iter.assert_called_once_with(match="cachecast:my-cache-data:*")

    async def test_clear_deletes_every_key(
        self, store: RedisCacheStore, mock_redis: AsyncMock
    ) -> None:
        """Clear deletes each key found in the namespace."""
        mock_redis.scan_iter = MagicMock(return_value=_iter([b"k1", b"k2"]))
        mock_redis.delete.return_value = 1

        assert await store.clear() == 2
        assert mock_redis.delete.await_count == 2

    async def test_health_check_ok(self, store: RedisCacheStore, mock_redis: AsyncMock) -> None:
        """A successful ping is healthy."""
        mock_redis.ping.return_value = True
        assert await store.health_check() is True

    async def test_health_check_failure(
        self, store: RedisCacheStore, mock_redis: AsyncMock
    ) -> None:
        """A failing ping is reported as unhealthy."""
        mock_redis.ping.side_effect = ConnectionError("down")
        assert await store.health_check() is False
