"""Shared FastAPI dependencies for Cachecast routers."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from cachecast.api.errors import InternalServerError
from cachecast.messaging.bus import InvalidationBus
from cachecast.service import DataService


def get_data_service(request: Request) -> DataService:
    """FastAPI dependency returning the service wired at startup."""
    service: DataService | None = getattr(request.app.state, "data_service", None)
    if service is None:
        raise InternalServerError("Data service is not initialized")
    return service


def get_invalidation_bus(request: Request) -> InvalidationBus | None:
    """FastAPI dependency returning the invalidation bus, if one is running."""
    return getattr(request.app.state, "invalidation_bus", None)


DataServiceDep = Annotated[DataService, Depends(get_data_service)]
