"""Tests for runtime wiring."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from cachecast.cache.memory import InMemoryCacheStore
from cachecast.cache.redis import RedisCacheStore
from cachecast.config import Settings
from cachecast.messaging.bus import InMemoryInvalidationBus
from cachecast.messaging.redis_bus import RedisInvalidationBus
from cachecast.messaging.runtime import create_invalidation_bus
from cachecast.runtime import build_service, create_cache_store
from cachecast.source import SampleDataSource


class TestCreateCacheStore:
    async def test_memory(self) -> None:
        """Memory backend names build the in-memory implementation."""
        store = await create_cache_store(Settings(cache_backend="memory", cache_ttl=30))

        assert isinstance(store, InMemoryCacheStore)
        assert store.name == "my-cache-data"
        assert store.ttl == 30

    async def test_redis(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Redis backend names build the Redis implementation."""
        monkeypatch.setattr("cachecast.runtime.get_redis", AsyncMock(return_value=AsyncMock()))

        store = await create_cache_store(Settings(cache_backend="redis", cache_name="orders"))

        assert isinstance(store, RedisCacheStore)
        assert store.name == "orders"

    async def test_unknown_backend(self) -> None:
        """An unknown backend name is rejected."""
        with pytest.raises(ValueError, match="cache_backend"):
            await create_cache_store(Settings(cache_backend="memcached"))


class TestCreateInvalidationBus:
    @pytest.mark.parametrize("backend", ["memory", "in_memory", "INMEMORY"])
    def test_memory(self, backend: str) -> None:
        """Memory backend names build the in-memory implementation."""
        assert isinstance(create_invalidation_bus(backend), InMemoryInvalidationBus)

    @pytest.mark.parametrize("backend", ["redis", "redis_pubsub", "pubsub"])
    def test_redis(self, backend: str) -> None:
        """Redis backend names build the Redis implementation."""
        assert isinstance(create_invalidation_bus(backend), RedisInvalidationBus)

    def test_unknown_backend(self) -> None:
        """An unknown backend name is rejected."""
        with pytest.raises(ValueError, match="bus_backend"):
            create_invalidation_bus("kafka")


class TestBuildService:
    async def test_uses_configuration(self) -> None:
        """Channels and options come from settings."""
        config = Settings(
            cache_backend="memory",
            bus_backend="memory",
            invalidation_out_channel="out",
            invalidation_in_channel="in",
            single_flight=False,
            max_key_length=64,
        )

        service, bus = await build_service(config)

        assert isinstance(bus, InMemoryInvalidationBus)
        assert service.publisher is bus
        assert service.subscriber is bus
        assert service.out_channel == "out"
        assert service.in_channel == "in"
        assert service.max_key_length == 64
        assert isinstance(service.source, SampleDataSource)

    async def test_explicit_collaborators_win(self) -> None:
        """Passed-in collaborators replace configured ones."""
        cache = InMemoryCacheStore(name="explicit")
        bus = InMemoryInvalidationBus()
        source = SampleDataSource()

        service, built_bus = await build_service(
            Settings(cache_backend="redis", bus_backend="redis"),
            cache=cache,
            bus=bus,
            source=source,
        )

        assert built_bus is bus
        assert service.cache is cache
        assert service.source is source
