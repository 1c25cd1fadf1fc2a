"""FastAPI application factory for Cachecast.

Creates the application with:
- Data endpoints (/data/get/{key}, /data/update/{key}, /data/stats)
- Health probes and Prometheus metrics
- Lifecycle management for the cache store, invalidation bus and Redis
- Consistent error handling
- ORJSON for fast JSON serialization
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import cast

from fastapi import FastAPI
from fastapi.responses import ORJSONResponse
from starlette.types import ExceptionHandler

from cachecast.api.errors import (
    ApiError,
    api_exception_handler,
    generic_exception_handler,
    invalid_key_handler,
    invalidation_publish_handler,
    source_fetch_handler,
)
from cachecast.api.middleware import CorrelationMiddleware
from cachecast.api.routers import data, health
from cachecast.api.routers import metrics as metrics_router
from cachecast.cache import CacheStore, close_redis
from cachecast.config import Settings, settings
from cachecast.messaging import InvalidationBus, InvalidationPublishError
from cachecast.observability import MetricsMiddleware, configure_logging, configure_metrics
from cachecast.runtime import build_service
from cachecast.service import InvalidKeyError
from cachecast.source import PrimarySource, SourceFetchError

logger = logging.getLogger(__name__)


def make_lifespan(
    config: Settings,
    cache: CacheStore | None = None,
    bus: InvalidationBus | None = None,
    source: PrimarySource | None = None,
    setup_logging: bool = True,
) -> Callable[[FastAPI], AbstractAsyncContextManager[None]]:
    """Build the lifespan handler for one application instance.

    On startup:
    - Configure structured logging
    - Initialize Prometheus metrics
    - Build the data service and subscribe it to invalidations
    - Start the invalidation bus

    On shutdown:
    - Unsubscribe the data service
    - Stop the invalidation bus
    - Close Redis connections
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if setup_logging:
            # JSON in production, console in dev
            configure_logging(
                json_format=config.env != "dev",
                level=config.log_level,
                instance_id=config.instance_id,
            )

        configure_metrics(config.enable_metrics)

        logger.info(f"Starting Cachecast instance {config.instance_id} ({config.env})")
        service, invalidation_bus = await build_service(
            config, cache=cache, bus=bus, source=source
        )
        await service.start()
        await invalidation_bus.start()

        app.state.data_service = service
        app.state.invalidation_bus = invalidation_bus
        logger.info("Cachecast startup complete")

        yield

        logger.info("Shutting down Cachecast")
        await service.stop()
        await invalidation_bus.stop()
        await close_redis()
        logger.info("Cachecast shutdown complete")

    return lifespan


def create_app(
    config: Settings = settings,
    *,
    cache: CacheStore | None = None,
    bus: InvalidationBus | None = None,
    source: PrimarySource | None = None,
    setup_logging: bool = True,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Collaborators passed in explicitly replace the ones built from
    configuration, which lets several instances share one in-memory hub.
    """
    app = FastAPI(
        title="Cachecast",
        description="Cache-aside reads with broadcast invalidation",
        version="0.1.0",
        default_response_class=ORJSONResponse,
        lifespan=make_lifespan(config, cache, bus, source, setup_logging),
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # CorrelationMiddleware is innermost to set context for all other middleware
    app.add_middleware(CorrelationMiddleware)
    if config.enable_metrics:
        app.add_middleware(MetricsMiddleware)

    # Register exception handlers
    app.add_exception_handler(ApiError, cast(ExceptionHandler, api_exception_handler))
    app.add_exception_handler(InvalidKeyError, cast(ExceptionHandler, invalid_key_handler))
    app.add_exception_handler(SourceFetchError, cast(ExceptionHandler, source_fetch_handler))
    app.add_exception_handler(
        InvalidationPublishError, cast(ExceptionHandler, invalidation_publish_handler)
    )
    app.add_exception_handler(Exception, cast(ExceptionHandler, generic_exception_handler))

    app.include_router(health.router)
    if config.enable_metrics:
        app.include_router(metrics_router.router)
    app.include_router(data.router)

    return app
