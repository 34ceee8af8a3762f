"""Liveness checks against the content store."""

from __future__ import annotations

from dataclasses import dataclass
import time

from mediamirror.integrations.content_store import ContentStore, ContentStoreError
from mediamirror.logging import get_logger
from mediamirror.logging_events import elapsed_ms
from mediamirror.models import StoreIdentity

logger = get_logger(__name__)


@dataclass(slots=True, frozen=True)
class StoreHealth:
    ok: bool
    latency_ms: float
    identity: StoreIdentity | None = None
    error: str | None = None


class HealthService:
    def __init__(self, *, store: ContentStore) -> None:
        self._store = store

    async def check_store(self) -> StoreHealth:
        start = time.perf_counter()
        try:
            identity = await self._store.identify()
        except ContentStoreError as exc:
            logger.warning("Content store health check failed: %s", exc)
            return StoreHealth(ok=False, latency_ms=elapsed_ms(start), error=str(exc))
        return StoreHealth(ok=True, latency_ms=elapsed_ms(start), identity=identity)


__all__ = ["HealthService", "StoreHealth"]
