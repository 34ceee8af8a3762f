"""HTTP routers exposing the MediaMirror API."""

from __future__ import annotations

from fastapi import APIRouter, FastAPI

from mediamirror.logging import get_logger

from .catalog_router import router as catalog_router
from .health_router import live_router
from .health_router import router as health_router
from .stream_router import router as stream_router
from .sync_router import router as sync_router

_logger = get_logger(__name__)

# Routers mounted below the configured API base path, in registration order.
API_ROUTERS: tuple[tuple[str, APIRouter], ...] = (
    ("sync", sync_router),
    ("catalog", catalog_router),
    ("stream", stream_router),
    ("health", health_router),
)


def compose_prefix(base: str | None, *parts: str) -> str:
    """Join path components into a normalised router prefix."""

    segments: list[str] = []
    for raw_part in (base, *parts):
        if not raw_part:
            continue
        segments.extend(part for part in raw_part.strip().split("/") if part)
    return "/" + "/".join(segments) if segments else ""


def register_routers(app: FastAPI, *, base_path: str) -> None:
    prefix = compose_prefix(base_path)
    for key, router in API_ROUTERS:
        app.include_router(router, prefix=prefix)
        _logger.debug("Registered router %s under %r", key, prefix or "/")
    app.include_router(live_router)


__all__ = ["API_ROUTERS", "compose_prefix", "register_routers"]
