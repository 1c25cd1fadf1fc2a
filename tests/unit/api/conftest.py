"""API test fixtures.

Builds the application with in-memory collaborators and drives it through
httpx, running the lifespan so the service is wired and subscribed.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from cachecast.api.app import create_app
from cachecast.cache.base import CacheStore
from cachecast.cache.memory import InMemoryCacheStore
from cachecast.config import Settings
from cachecast.messaging.bus import InMemoryInvalidationBus, InvalidationBus
from cachecast.source import PrimarySource, SampleDataSource

AppFactory = Callable[..., AbstractAsyncContextManager[AsyncClient]]


@pytest.fixture
def test_settings() -> Settings:
    return Settings(cache_backend="memory", bus_backend="memory", env="test")


@pytest.fixture
def make_client(test_settings: Settings) -> AppFactory:
    """Return a context manager factory yielding a client for a started app."""

    @asynccontextmanager
    async def factory(
        *,
        cache: CacheStore | None = None,
        bus: InvalidationBus | None = None,
        source: PrimarySource | None = None,
        raise_app_exceptions: bool = True,
    ) -> AsyncIterator[AsyncClient]:
        app: FastAPI = create_app(
            test_settings,
            cache=cache or InMemoryCacheStore(),
            bus=bus or InMemoryInvalidationBus(),
            source=source or SampleDataSource(),
            setup_logging=False,
        )
        async with app.router.lifespan_context(app):
            async with AsyncClient(
                transport=ASGITransport(app=app, raise_app_exceptions=raise_app_exceptions),
                base_url="http://test",
            ) as client:
                yield client

    return factory
