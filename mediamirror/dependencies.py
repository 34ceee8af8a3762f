"""FastAPI dependency providers.

Collaborators are created once by :func:`mediamirror.main.create_app` and kept
on ``app.state``; handlers receive them through these providers so tests can
swap them via ``app.dependency_overrides``.
"""

from __future__ import annotations

import asyncio

from fastapi import Request

from mediamirror.services.catalog_store import CatalogStore
from mediamirror.services.health import HealthService
from mediamirror.services.stream_proxy import StreamProxy
from mediamirror.services.sync_pipeline import SyncPipeline


def get_catalog_store(request: Request) -> CatalogStore:
    return request.app.state.catalog_store


def get_sync_pipeline(request: Request) -> SyncPipeline:
    return request.app.state.sync_pipeline


def get_sync_guard(request: Request) -> asyncio.Lock:
    return request.app.state.sync_guard


def get_stream_proxy(request: Request) -> StreamProxy:
    return request.app.state.stream_proxy


def get_health_service(request: Request) -> HealthService:
    return request.app.state.health_service
