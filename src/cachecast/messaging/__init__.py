"""Invalidation messaging for Cachecast.

Carries bare cache keys between instances:
- Publisher / Subscriber interfaces owned explicitly by the data service
- In-memory bus with a shared hub for single-process fan-out
- Redis Pub/Sub bus for multi-instance deployments
"""

from cachecast.messaging.bus import (
    InMemoryInvalidationBus,
    InvalidationBus,
    InvalidationHub,
    InvalidationPublishError,
    MessageHandler,
    Publisher,
    Subscriber,
)
from cachecast.messaging.redis_bus import RedisInvalidationBus
from cachecast.messaging.runtime import create_invalidation_bus
from cachecast.messaging.schemas import InvalidationMessage, InvalidMessage

__all__ = [
    "InMemoryInvalidationBus",
    "InvalidMessage",
    "InvalidationBus",
    "InvalidationHub",
    "InvalidationMessage",
    "InvalidationPublishError",
    "MessageHandler",
    "Publisher",
    "RedisInvalidationBus",
    "Subscriber",
    "create_invalidation_bus",
]
