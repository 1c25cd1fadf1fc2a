"""Health check endpoints for Cachecast.

Provides Kubernetes-compatible liveness and readiness probes:
- /health/live  - Liveness probe (always returns OK if process is running)
- /health/ready - Readiness probe (checks cache store, invalidation bus and
                  the service subscription)
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from cachecast.api.deps import DataServiceDep, get_invalidation_bus
from cachecast.messaging.bus import InvalidationBus

router = APIRouter(tags=["health"])

CHECK_TIMEOUT = 5.0  # seconds


class HealthStatus(str, Enum):
    """Health check status."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


@dataclass
class ComponentHealth:
    """Health status of a single component."""

    name: str
    status: HealthStatus
    latency_ms: float
    message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON response."""
        result: dict[str, Any] = {
            "name": self.name,
            "status": self.status.value,
            "latency_ms": round(self.latency_ms, 2),
        }
        if self.message:
            result["message"] = self.message
        return result


async def check_component(name: str, check: Callable[[], Awaitable[bool]]) -> ComponentHealth:
    """Run one health check with a timeout."""
    start = time.monotonic()
    try:
        healthy = await asyncio.wait_for(check(), timeout=CHECK_TIMEOUT)
        message = None if healthy else f"{name} check failed"
    except asyncio.TimeoutError:
        healthy = False
        message = f"{name} check timed out"
    except Exception as e:
        healthy = False
        message = str(e)

    latency = (time.monotonic() - start) * 1000
    return ComponentHealth(
        name=name,
        status=HealthStatus.HEALTHY if healthy else HealthStatus.UNHEALTHY,
        latency_ms=latency,
        message=message,
    )


@router.get("/health/live")
async def live() -> dict[str, str]:
    """Liveness probe.

    Returns OK if the process is running. Used by Kubernetes
    to determine if the container should be restarted.
    """
    return {"status": "ok"}


@router.get("/health/ready")
async def ready(
    service: DataServiceDep,
    bus: InvalidationBus | None = Depends(get_invalidation_bus),
) -> JSONResponse:
    """Readiness probe.

    Returns 200 if the cache store and the invalidation bus are reachable and
    the service is subscribed to invalidations, 503 otherwise.
    """

    async def subscribed() -> bool:
        return service.started

    checks = [
        check_component("cache", service.cache.health_check),
        check_component("subscription", subscribed),
    ]
    if bus is not None:
        checks.append(check_component("invalidation_bus", bus.health_check))

    components = await asyncio.gather(*checks)

    all_healthy = all(c.status == HealthStatus.HEALTHY for c in components)
    overall_status = HealthStatus.HEALTHY if all_healthy else HealthStatus.UNHEALTHY

    result = {
        "status": overall_status.value,
        "components": [c.to_dict() for c in components],
    }
    return JSONResponse(content=result, status_code=200 if all_healthy else 503)
