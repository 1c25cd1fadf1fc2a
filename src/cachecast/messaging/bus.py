"""Invalidation bus implementation for Cachecast.

Provides pub/sub for cache invalidation keys:
- InMemoryInvalidationBus: for single-process deployments and tests
- RedisInvalidationBus: for multi-instance fan-out with Redis Pub/Sub

Buses sharing an InvalidationHub behave like separate instances connected to
one broker: every publish is delivered to each bus subscribed to the channel,
including the publishing bus itself.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable

from cachecast.messaging.schemas import InvalidationMessage

logger = logging.getLogger(__name__)


MessageHandler = Callable[[str], Awaitable[None]]


class InvalidationPublishError(RuntimeError):
    """An invalidation could not be handed to the transport."""

    def __init__(self, channel: str, key: str, reason: str):
        self.channel = channel
        self.key = key
        self.reason = reason
        super().__init__(f"Failed to publish invalidation for '{key}' on {channel}: {reason}")


class Publisher(ABC):
    """Outbound side of the invalidation channel."""

    @abstractmethod
    async def publish(self, channel: str, key: str) -> int:
        """Publish a key to a channel.

        Returns the number of subscribers the transport delivered it to.
        Raises InvalidationPublishError if the transport rejects it.
        """
        pass


class Subscriber(ABC):
    """Inbound side of the invalidation channel."""

    @abstractmethod
    async def subscribe(self, channel: str, handler: MessageHandler) -> None:
        """Register a handler called once per key received on channel."""
        pass

    @abstractmethod
    async def unsubscribe(self, channel: str, handler: MessageHandler) -> None:
        """Remove a handler previously registered on channel."""
        pass


class InvalidationBus(Publisher, Subscriber):
    """Abstract invalidation bus interface."""

    @abstractmethod
    async def start(self) -> None:
        """Start delivering messages to subscribers."""
        pass

    @abstractmethod
    async def stop(self) -> None:
        """Stop delivering messages."""
        pass

    async def health_check(self) -> bool:
        """Check that the transport is reachable."""
        return True

    async def _dispatch(
        self, handlers: list[MessageHandler], channel: str, message: InvalidationMessage
    ) -> None:
        """Run every handler for one message, isolating handler failures."""
        for handler in handlers:
            try:
                await handler(message.key)
            except Exception:
                handler_name = getattr(handler, "__name__", handler.__class__.__name__)
                logger.exception(
                    f"Invalidation handler {handler_name} failed "
                    f"[channel:{channel}] [key:{message.key}]"
                )


class InvalidationHub:
    """In-process broker connecting InMemoryInvalidationBus instances."""

    def __init__(self) -> None:
        self._buses: list[InMemoryInvalidationBus] = []

    def attach(self, bus: InMemoryInvalidationBus) -> None:
        if bus not in self._buses:
            self._buses.append(bus)

    def detach(self, bus: InMemoryInvalidationBus) -> None:
        if bus in self._buses:
            self._buses.remove(bus)

    def deliver(self, channel: str, message: InvalidationMessage) -> int:
        """Fan a message out to every bus listening on channel.

        A bus whose queue is full is skipped so the others still get the
        message. QueueFull is raised only when no bus could take it.
        """
        delivered = 0
        dropped = 0
        for bus in list(self._buses):
            if not bus.is_subscribed(channel):
                continue
            try:
                bus._enqueue(channel, message)
            except asyncio.QueueFull:
                dropped += 1
                logger.warning(
                    f"Subscriber queue full, invalidation dropped "
                    f"[channel:{channel}] [key:{message.key}]"
                )
                continue
            delivered += 1
        if dropped and not delivered:
            raise asyncio.QueueFull
        return delivered


class InMemoryInvalidationBus(InvalidationBus):
    """In-memory invalidation bus using asyncio.Queue.

    Publishing never waits for handlers: messages are queued and processed by
    a background task once the bus is started.

    For horizontal scaling, use RedisInvalidationBus instead.
    """

    def __init__(self, hub: InvalidationHub | None = None, max_size: int = 10000):
        self.hub = hub or InvalidationHub()
        self.hub.attach(self)
        self._queue: asyncio.Queue[tuple[str, InvalidationMessage]] = asyncio.Queue(
            maxsize=max_size
        )
        self._handlers: dict[str, list[MessageHandler]] = {}
        self._running = False
        self._task: asyncio.Task[None] | None = None

    def is_subscribed(self, channel: str) -> bool:
        return bool(self._handlers.get(channel))

    def _enqueue(self, channel: str, message: InvalidationMessage) -> None:
        self._queue.put_nowait((channel, message))

    async def publish(self, channel: str, key: str) -> int:
        """Publish a key to every bus on the hub subscribed to channel."""
        message = InvalidationMessage(key=key)
        try:
            count = self.hub.deliver(channel, message)
        except asyncio.QueueFull:
            raise InvalidationPublishError(channel, key, "subscriber queue is full")
        logger.debug(f"Published invalidation [channel:{channel}] [key:{key}] to {count} buses")
        return count

    async def subscribe(self, channel: str, handler: MessageHandler) -> None:
        """Subscribe a handler to receive keys published on channel."""
        self._handlers.setdefault(channel, []).append(handler)
        handler_name = getattr(handler, "__name__", handler.__class__.__name__)
        logger.info(f"Registered invalidation handler {handler_name} on channel {channel}")

    async def unsubscribe(self, channel: str, handler: MessageHandler) -> None:
        handlers = self._handlers.get(channel, [])
        if handler in handlers:
            handlers.remove(handler)
        if not handlers:
            self._handlers.pop(channel, None)

    async def start(self) -> None:
        """Start processing messages."""
        if self._running:
            return

        self.hub.attach(self)
        self._running = True
        self._task = asyncio.create_task(self._process_loop())

    async def stop(self) -> None:
        """Stop processing messages and leave the hub."""
        self._running = False
        self.hub.detach(self)

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    async def _process_loop(self) -> None:
        """Main message processing loop."""
        while self._running:
            try:
                # Wait with timeout to allow graceful shutdown
                channel, message = await asyncio.wait_for(self._queue.get(), timeout=1.0)
            except TimeoutError:
                continue
            except asyncio.CancelledError:
                break

            try:
                await self._dispatch(list(self._handlers.get(channel, [])), channel, message)
            finally:
                self._queue.task_done()

    @property
    def pending_count(self) -> int:
        """Number of messages waiting to be processed."""
        return self._queue.qsize()

    async def drain(self) -> None:
        """Wait for all pending messages to be processed."""
        await self._queue.join()
