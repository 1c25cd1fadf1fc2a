"""Global pytest configuration and fixtures.

Provides in-memory collaborators for the data service so unit tests run
without Redis.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

import pytest

from cachecast.cache.memory import InMemoryCacheStore
from cachecast.messaging.bus import InMemoryInvalidationBus, InvalidationHub
from cachecast.service import DataService
from cachecast.source import SampleDataSource


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "scenario(name): mark test as an end-to-end cache scenario"
    )


@pytest.fixture
def source() -> SampleDataSource:
    """Primary source stub that counts fetches."""
    return SampleDataSource()


@pytest.fixture
def cache() -> InMemoryCacheStore:
    """Fresh local cache."""
    return InMemoryCacheStore(name="my-cache-data")


@pytest.fixture
def hub() -> InvalidationHub:
    """In-process broker shared by every bus in a test."""
    return InvalidationHub()


@pytest.fixture
async def bus(hub: InvalidationHub) -> AsyncIterator[InMemoryInvalidationBus]:
    """In-memory invalidation bus attached to the test hub."""
    bus = InMemoryInvalidationBus(hub=hub)
    yield bus
    await bus.stop()


@pytest.fixture
async def service(
    cache: InMemoryCacheStore,
    source: SampleDataSource,
    bus: InMemoryInvalidationBus,
) -> DataService:
    """Data service subscribed to its bus, with the bus running."""
    svc = DataService(cache, source, bus)
    await svc.start()
    await bus.start()
    return svc
