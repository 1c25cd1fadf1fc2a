"""Primary data source for Cachecast.

The primary source is the system of record behind the cache. The service only
needs two operations from it: read a value for a key and apply an update.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections import Counter

logger = logging.getLogger(__name__)


class SourceFetchError(Exception):
    """The primary source could not produce a value for a key."""

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Failed to fetch '{key}' from primary source: {reason}")


class PrimarySource(ABC):
    """Abstract primary data source."""

    @abstractmethod
    async def fetch(self, key: str) -> str:
        """Read the current value for key.

        Raises SourceFetchError when the value cannot be read.
        """
        pass

    @abstractmethod
    async def update(self, key: str) -> None:
        """Apply an update for key in the system of record."""
        pass


class SampleDataSource(PrimarySource):
    """Deterministic stand-in for a real primary source.

    Produces ``"Sample Data for key <key>"`` and counts calls so callers can
    observe whether a read was served from the cache.
    """

    def __init__(self) -> None:
        self._fetches: Counter[str] = Counter()
        self._updates: Counter[str] = Counter()

    async def fetch(self, key: str) -> str:
        self._fetches[key] += 1
        logger.info(f"The data was get by primary sources. [key:{key}]")
        return f"Sample Data for key {key}"

    async def update(self, key: str) -> None:
        # The sample source has nothing to write; only the call is recorded.
        self._updates[key] += 1
        logger.info(f"Primary source update applied. [key:{key}]")

    def fetch_count(self, key: str) -> int:
        return self._fetches[key]

    def update_count(self, key: str) -> int:
        return self._updates[key]

    @property
    def total_fetches(self) -> int:
        return sum(self._fetches.values())
