"""Serve stored objects back with the mime type recorded in the catalog."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Mapping
from dataclasses import dataclass

from mediamirror.integrations.content_store import ContentStore
from mediamirror.logging import get_logger
from mediamirror.logging_events import log_event
from mediamirror.models import CatalogEntry
from mediamirror.services.catalog_store import CatalogStore

logger = get_logger(__name__)

DEFAULT_STREAM_MIME_TYPE = "audio/mpeg"


@dataclass(slots=True)
class StreamHandle:
    mime_type: str
    chunks: AsyncIterator[bytes]
    entry: CatalogEntry | None = None


def resolve_entry(catalog: Mapping[str, CatalogEntry], content_id: str) -> CatalogEntry | None:
    """Return the first catalog entry recorded with ``content_id``."""

    for entry in catalog.values():
        if entry.content_id == content_id:
            return entry
    return None


class StreamProxy:
    """Pipe bytes from the content store without buffering whole objects.

    Lookups always read the persisted catalog, so a request made while a sync
    run is in progress sees the state of the previous run.
    """

    def __init__(
        self,
        *,
        store: ContentStore,
        catalog: CatalogStore,
        default_mime_type: str = DEFAULT_STREAM_MIME_TYPE,
    ) -> None:
        self._store = store
        self._catalog = catalog
        self._default_mime_type = default_mime_type

    async def stream(self, content_id: str) -> StreamHandle:
        catalog = await asyncio.to_thread(self._catalog.load)
        entry = resolve_entry(catalog, content_id)
        mime_type = (entry.mime_type if entry else None) or self._default_mime_type
        chunks = await self._store.cat(content_id)
        log_event(
            logger,
            "stream.resolved",
            content_id=content_id,
            mime_type=mime_type,
            path=entry.relative_path if entry else None,
        )
        return StreamHandle(mime_type=mime_type, chunks=chunks, entry=entry)


__all__ = ["DEFAULT_STREAM_MIME_TYPE", "StreamHandle", "StreamProxy", "resolve_entry"]
