"""Health endpoints for the service and its content store."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from mediamirror import __version__
from mediamirror.dependencies import get_health_service
from mediamirror.errors import DependencyError
from mediamirror.schemas import HealthResponse, LiveResponse, StoreInfo
from mediamirror.services.health import HealthService

router = APIRouter(tags=["System"])
live_router = APIRouter(tags=["System"])


@router.get("/health", response_model=HealthResponse)
async def store_health(health: HealthService = Depends(get_health_service)) -> HealthResponse:
    result = await health.check_store()
    if not result.ok or result.identity is None:
        raise DependencyError(
            "Content store is unreachable.",
            meta={"error": result.error or "unknown", "latency_ms": result.latency_ms},
        )
    return HealthResponse(
        ok=True,
        latency_ms=result.latency_ms,
        store=StoreInfo.from_identity(result.identity),
    )


@live_router.get("/live", response_model=LiveResponse, include_in_schema=False)
async def live_probe() -> LiveResponse:
    """Process liveness, independent of the content store."""

    return LiveResponse(status="ok", version=__version__)
