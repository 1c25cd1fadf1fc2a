"""Cache-aside data service with broadcast invalidation.

Reads go through the local cache and fall back to the primary source on a
miss. Updates go to the primary source and then publish the key on the
invalidation channel; the service never evicts on update directly. Every
instance, the publisher included, evicts its copy when the key is delivered
back through its subscription.

Per key the cache moves between two states only:

    Absent --fetch--> Cached --invalidation--> Absent
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Any

from cachecast.cache.base import CacheStore
from cachecast.config import DEFAULT_INVALIDATION_CHANNEL
from cachecast.core.coalescing import RequestCoalescer
from cachecast.core.keys import DEFAULT_MAX_KEY_LENGTH, InvalidKey, validate_key
from cachecast.messaging.bus import InvalidationPublishError, Publisher, Subscriber
from cachecast.observability.metrics import (
    record_cache_hit,
    record_cache_miss,
    record_invalidation_publish_failure,
    record_invalidation_published,
    record_invalidation_received,
    record_source_fetch,
)
from cachecast.source import PrimarySource, SourceFetchError

logger = logging.getLogger(__name__)


class InvalidKeyError(ValueError):
    """A key was rejected before reaching the cache or the source."""

    def __init__(self, key: object, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Invalid key {key!r}: {reason}")


@dataclass(frozen=True)
class UpdateReceipt:
    """Outcome of an update: where the invalidation went and who heard it."""

    key: str
    channel: str
    subscribers: int


class DataService:
    """Cache-aside reads over a primary source with invalidation fan-out."""

    def __init__(
        self,
        cache: CacheStore,
        source: PrimarySource,
        publisher: Publisher,
        subscriber: Subscriber | None = None,
        *,
        out_channel: str = DEFAULT_INVALIDATION_CHANNEL,
        in_channel: str = DEFAULT_INVALIDATION_CHANNEL,
        single_flight: bool = True,
        max_key_length: int = DEFAULT_MAX_KEY_LENGTH,
    ):
        if subscriber is None and isinstance(publisher, Subscriber):
            subscriber = publisher
        if subscriber is None:
            raise ValueError("DataService needs a subscriber for invalidation messages")

        self.cache = cache
        self.source = source
        self.publisher = publisher
        self.subscriber = subscriber
        self.out_channel = out_channel
        self.in_channel = in_channel
        self.max_key_length = max_key_length
        self._coalescer = RequestCoalescer() if single_flight else None
        # Only keys with a fetch in flight are tracked. A fetch that started
        # before an invalidation must not write its result into the cache.
        self._generations: dict[str, int] = {}
        self._loading: Counter[str] = Counter()
        self._subscribed = False

    async def start(self) -> None:
        """Register the invalidation callback on the inbound channel."""
        if self._subscribed:
            return
        await self.subscriber.subscribe(self.in_channel, self.on_cache_invalidation)
        self._subscribed = True
        logger.info(
            f"Listening for cache invalidations [cache:{self.cache.name}] "
            f"[channel:{self.in_channel}]"
        )

    async def stop(self) -> None:
        """Drop the invalidation callback from the inbound channel."""
        if not self._subscribed:
            return
        await self.subscriber.unsubscribe(self.in_channel, self.on_cache_invalidation)
        self._subscribed = False
        logger.info(f"Stopped listening for cache invalidations [cache:{self.cache.name}]")

    @property
    def started(self) -> bool:
        return self._subscribed

    def _check_key(self, key: str) -> str:
        try:
            return validate_key(key, self.max_key_length)
        except InvalidKey as e:
            raise InvalidKeyError(key, str(e)) from e

    async def get_data(self, key: str) -> str:
        """Return the value for key from the cache, fetching it on a miss."""
        key = self._check_key(key)

        cached = await self.cache.get(key)
        if cached is not None:
            record_cache_hit(self.cache.name)
            logger.debug(f"Cache hit [cache:{self.cache.name}] [key:{key}]")
            return cached

        record_cache_miss(self.cache.name)
        if self._coalescer is not None:
            return await self._coalescer.run(key, lambda: self._load(key))
        return await self._load(key)

    async def _load(self, key: str) -> str:
        generation = self._generations.setdefault(key, 0)
        self._loading[key] += 1
        try:
            try:
                value = await self.source.fetch(key)
            except SourceFetchError:
                record_source_fetch(self.cache.name, "error")
                raise
            except Exception as e:
                record_source_fetch(self.cache.name, "error")
                raise SourceFetchError(key, str(e)) from e

            record_source_fetch(self.cache.name, "ok")
            if self._generations[key] == generation:
                await self.cache.put(key, value)
            else:
                logger.info(f"Invalidated while fetching, result not cached [key:{key}]")
            return value
        finally:
            self._loading[key] -= 1
            if self._loading[key] <= 0:
                del self._loading[key]
                del self._generations[key]

    async def update_data(self, key: str) -> UpdateReceipt:
        """Update key in the primary source and broadcast its invalidation.

        The local entry is left alone here; it is evicted when the broadcast
        comes back through this instance's own subscription.
        """
        key = self._check_key(key)
        logger.info(f"Update data was invoked. [key:{key}]")

        await self.source.update(key)

        try:
            subscribers = await self.publisher.publish(self.out_channel, key)
        except InvalidationPublishError:
            record_invalidation_publish_failure(self.out_channel)
            logger.warning(
                f"Invalidation not published, other instances may serve stale data "
                f"[key:{key}] [channel:{self.out_channel}]",
                exc_info=True,
            )
            raise

        record_invalidation_published(self.out_channel)
        logger.info(f"Cache notification sent to other instances [key:{key}]")
        return UpdateReceipt(key=key, channel=self.out_channel, subscribers=subscribers)

    async def invalidate_data(self, key: str) -> bool:
        """Evict key from the local cache. Absent keys are a no-op.

        A fetch already running for key keeps serving the callers waiting on
        it, but its result is not cached and later reads start a new fetch.
        """
        if key in self._generations:
            self._generations[key] += 1
        if self._coalescer is not None:
            self._coalescer.forget(key)
        evicted = await self.cache.evict(key)
        logger.info(f"The invalidate cache was invoked. [key:{key}] [evicted:{evicted}]")
        return evicted

    async def on_cache_invalidation(self, key: str) -> None:
        """Subscriber callback, invoked once per delivered invalidation."""
        logger.info(f"The invalidate cache request is received. [key:{key}]")
        evicted = await self.invalidate_data(key)
        record_invalidation_received(self.cache.name, evicted)

    async def stats(self) -> dict[str, Any]:
        """Local cache statistics."""
        stats = self.cache.stats
        return {
            "cache": self.cache.name,
            "entries": await self.cache.size(),
            "hits": stats.hits,
            "misses": stats.misses,
            "hit_ratio": round(stats.hit_ratio, 4),
            "evictions": stats.evictions,
            "in_flight": self._coalescer.in_flight if self._coalescer else 0,
        }
