"""Redis Pub/Sub invalidation bus for horizontal scaling.

Uses Redis Pub/Sub to broadcast cache invalidation keys across all
Cachecast instances. When any instance publishes a key, every instance
subscribed to the channel (the publisher included) receives it and evicts
its local copy.

Example:
    bus = RedisInvalidationBus()
    await bus.subscribe("cache-invalidation", service.on_cache_invalidation)
    await bus.start()

    # When a key changes in the primary source
    await bus.publish("cache-invalidation", "abc")

    # On shutdown
    await bus.stop()
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, cast

from redis.exceptions import RedisError

from cachecast.cache.redis import get_redis
from cachecast.messaging.bus import InvalidationBus, InvalidationPublishError, MessageHandler
from cachecast.messaging.schemas import InvalidationMessage

if TYPE_CHECKING:
    from redis.asyncio import Redis
    from redis.asyncio.client import PubSub

logger = logging.getLogger(__name__)


class RedisInvalidationBus(InvalidationBus):
    """Broadcasts and receives invalidation keys via Redis Pub/Sub.

    When started, it will:
    1. Subscribe to every channel that has a registered handler
    2. Process incoming messages on a background task
    3. Call the handlers registered for the message's channel

    Handlers registered after start() are subscribed immediately.
    """

    def __init__(self, client: Redis | None = None):
        self._redis: Redis | None = client
        self._handlers: dict[str, list[MessageHandler]] = {}
        self._running = False
        self._task: asyncio.Task[None] | None = None
        self._pubsub: PubSub | None = None

    async def _get_redis(self) -> Redis:
        """Get Redis client."""
        if self._redis is None:
            self._redis = await get_redis()
        return self._redis

    async def subscribe(self, channel: str, handler: MessageHandler) -> None:
        """Register a handler for keys published on channel."""
        first_for_channel = channel not in self._handlers
        self._handlers.setdefault(channel, []).append(handler)
        handler_name = getattr(handler, "__name__", handler.__class__.__name__)
        logger.info(f"Registered invalidation handler {handler_name} on channel {channel}")

        if self._running and self._pubsub is not None and first_for_channel:
            await self._pubsub.subscribe(channel)

    async def unsubscribe(self, channel: str, handler: MessageHandler) -> None:
        """Remove a handler; the channel is dropped with its last handler."""
        handlers = self._handlers.get(channel, [])
        if handler in handlers:
            handlers.remove(handler)
        if handlers or channel not in self._handlers:
            return

        del self._handlers[channel]
        if self._running and self._pubsub is not None:
            await self._pubsub.unsubscribe(channel)

    async def start(self) -> None:
        """Start listening for invalidation messages."""
        if self._running:
            return

        redis = await self._get_redis()
        self._pubsub = redis.pubsub()
        if self._handlers:
            await self._pubsub.subscribe(*self._handlers)

        self._running = True
        self._task = asyncio.create_task(self._listen_loop())
        logger.info(f"Started invalidation listener on channels {sorted(self._handlers)}")

    async def stop(self) -> None:
        """Stop listening for invalidation messages."""
        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        if self._pubsub:
            await self._pubsub.unsubscribe()
            await self._pubsub.aclose()
            self._pubsub = None

        logger.info("Stopped invalidation listener")

    async def _listen_loop(self) -> None:
        """Main loop for receiving invalidation messages."""
        while self._running and self._pubsub:
            try:
                message = await self._pubsub.get_message(
                    ignore_subscribe_messages=True,
                    timeout=1.0,
                )

                if message is None:
                    continue

                if message["type"] == "message":
                    await self._handle_message(message)

            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error in invalidation listener: {e}")
                await asyncio.sleep(1)

    async def _handle_message(self, raw: dict[str, Any]) -> None:
        """Decode an incoming Pub/Sub message and dispatch it."""
        channel = raw["channel"]
        if isinstance(channel, bytes):
            channel = channel.decode("utf-8")

        try:
            message = InvalidationMessage.from_bytes(raw["data"])
        except ValueError as e:
            logger.error(f"Failed to parse invalidation message on {channel}: {e}")
            return

        logger.debug(f"Received invalidation [channel:{channel}] [key:{message.key}]")
        await self._dispatch(list(self._handlers.get(channel, [])), channel, message)

    async def publish(self, channel: str, key: str) -> int:
        """Publish an invalidation key to all instances.

        Returns the number of subscribers that received the message.
        """
        redis = await self._get_redis()
        message = InvalidationMessage(key=key)
        try:
            count = cast(int, await redis.publish(channel, message.to_bytes()))
        except RedisError as e:
            raise InvalidationPublishError(channel, key, str(e)) from e

        logger.debug(f"Published invalidation [channel:{channel}] [key:{key}] to {count} subscribers")
        return count

    async def health_check(self) -> bool:
        """Check Redis connectivity."""
        try:
            redis = await self._get_redis()
            await redis.ping()
            return True
        except Exception:
            return False
