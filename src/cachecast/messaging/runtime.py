"""Runtime wiring for the Cachecast invalidation bus."""

from __future__ import annotations

import logging

from cachecast.config import settings
from cachecast.messaging.bus import InMemoryInvalidationBus, InvalidationBus
from cachecast.messaging.redis_bus import RedisInvalidationBus

logger = logging.getLogger(__name__)


def create_invalidation_bus(backend: str | None = None) -> InvalidationBus:
    """Create an invalidation bus based on configuration."""
    backend = (backend or settings.bus_backend).lower()

    if backend in {"memory", "inmemory", "in_memory"}:
        return InMemoryInvalidationBus()

    if backend in {"redis", "redis_pubsub", "redis-pubsub", "pubsub"}:
        return RedisInvalidationBus()

    raise ValueError("Unsupported bus_backend. Supported values: memory, redis, redis_pubsub.")
