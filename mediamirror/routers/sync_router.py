"""Route triggering a library synchronisation run."""

from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends

from mediamirror.dependencies import get_sync_guard, get_sync_pipeline
from mediamirror.errors import ConflictError, DependencyError
from mediamirror.integrations.content_store import ContentStoreUnavailableError
from mediamirror.logging import get_logger
from mediamirror.logging_events import log_event
from mediamirror.schemas import SyncResponse
from mediamirror.services.sync_pipeline import SyncPipeline

router = APIRouter(tags=["Sync"])
logger = get_logger(__name__)


@router.post("/sync", response_model=SyncResponse)
async def trigger_sync(
    pipeline: SyncPipeline = Depends(get_sync_pipeline),
    guard: asyncio.Lock = Depends(get_sync_guard),
) -> SyncResponse:
    """Mirror new and changed files into the content store."""

    # Only one run may hold the working catalog; overlapping runs are refused.
    if guard.locked():
        log_event(logger, "api.sync.trigger", status="conflict")
        raise ConflictError("A sync run is already in progress.")

    async with guard:
        try:
            result = await pipeline.sync()
        except ContentStoreUnavailableError as exc:
            log_event(logger, "api.sync.trigger", status="store_unavailable", error=str(exc))
            raise DependencyError(
                "Content store is unreachable.", meta={"error": str(exc)}
            ) from exc

    log_event(
        logger,
        "api.sync.trigger",
        status="completed",
        total=result.total,
        added=result.added,
        failed=result.failed,
    )
    return SyncResponse.from_result(result)
