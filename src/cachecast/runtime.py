"""Runtime wiring for Cachecast.

Builds the data service and its collaborators from configuration. The
service itself only sees the interfaces it is handed.
"""

from __future__ import annotations

import logging

from cachecast.cache.base import CacheStore
from cachecast.cache.memory import InMemoryCacheStore
from cachecast.cache.redis import RedisCacheStore, get_redis
from cachecast.config import Settings, settings
from cachecast.messaging.bus import InvalidationBus
from cachecast.messaging.runtime import create_invalidation_bus
from cachecast.service import DataService
from cachecast.source import PrimarySource, SampleDataSource

logger = logging.getLogger(__name__)


async def create_cache_store(config: Settings = settings) -> CacheStore:
    """Create a cache store based on configuration."""
    backend = config.cache_backend.lower()

    if backend in {"memory", "inmemory", "in_memory", "local"}:
        return InMemoryCacheStore(name=config.cache_name, ttl=config.cache_ttl)

    if backend == "redis":
        return RedisCacheStore(await get_redis(), name=config.cache_name, ttl=config.cache_ttl)

    raise ValueError("Unsupported cache_backend. Supported values: memory, redis.")


async def build_service(
    config: Settings = settings,
    *,
    cache: CacheStore | None = None,
    bus: InvalidationBus | None = None,
    source: PrimarySource | None = None,
) -> tuple[DataService, InvalidationBus]:
    """Build a DataService and the bus it subscribes through.

    Any collaborator passed in explicitly is used as-is.
    """
    cache = cache or await create_cache_store(config)
    bus = bus or create_invalidation_bus(config.bus_backend)
    source = source or SampleDataSource()

    service = DataService(
        cache,
        source,
        bus,
        out_channel=config.invalidation_out_channel,
        in_channel=config.invalidation_in_channel,
        single_flight=config.single_flight,
        max_key_length=config.max_key_length,
    )
    logger.info(
        f"Built data service (cache={type(cache).__name__}, bus={type(bus).__name__}, "
        f"source={type(source).__name__})"
    )
    return service, bus
