"""Data endpoints for Cachecast.

- GET /data/get/{key}    - cache-aside read, body is the value as a JSON string
- GET /data/update/{key} - primary-source update plus invalidation broadcast
- GET /data/stats        - local cache statistics
"""

from __future__ import annotations

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Path
from fastapi.responses import PlainTextResponse

from cachecast.api.deps import DataServiceDep

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/data", tags=["data"])

UPDATE_CONFIRMATION = "The update is ready and Cache invalidated notification was sent"

KeyParam = Annotated[str, Path(description="Cache key", min_length=1)]


@router.get(
    "/get/{key}",
    summary="Read a value through the cache",
    responses={
        400: {"description": "Invalid key"},
        502: {"description": "Primary source unavailable"},
    },
)
async def get_key(key: KeyParam, service: DataServiceDep) -> str:
    """Return the cached value for key, loading it from the primary source on a miss."""
    logger.info(f"Start get flow by rest. [key:{key}]")
    return await service.get_data(key)


@router.get(
    "/update/{key}",
    response_class=PlainTextResponse,
    summary="Update a value and broadcast its invalidation",
    responses={
        400: {"description": "Invalid key"},
        503: {"description": "Update applied but invalidation not published"},
    },
)
async def update_key(key: KeyParam, service: DataServiceDep) -> PlainTextResponse:
    """Update key in the primary source and notify every instance to evict it."""
    logger.info(f"Start update flow by rest. [key:{key}]")
    await service.update_data(key)
    return PlainTextResponse(UPDATE_CONFIRMATION)


@router.get("/stats", summary="Local cache statistics")
async def cache_stats(service: DataServiceDep) -> dict[str, Any]:
    return await service.stats()
