"""Mirror the media library into the content store and record it in the catalog."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Mapping
from dataclasses import dataclass
import logging
import os
from pathlib import Path
import time
from typing import BinaryIO

from mediamirror.integrations.content_store import ContentStore, ContentStoreError
from mediamirror.integrations.metadata import MetadataExtractor
from mediamirror.logging import get_logger
from mediamirror.logging_events import elapsed_ms, log_event
from mediamirror.models import Catalog, CatalogEntry, MediaMetadata, SyncResult
from mediamirror.services.catalog_store import CatalogStore
from mediamirror.services.change_detection import needs_ingest
from mediamirror.services.walker import iter_media_files, relative_key
from mediamirror.utils.media_types import mime_type_for

logger = get_logger(__name__)

DEFAULT_CONCURRENCY = 2
READ_CHUNK_SIZE = 256 * 1024


@dataclass(slots=True)
class _RunState:
    root: Path
    snapshot: Mapping[str, CatalogEntry]
    working: Catalog
    result: SyncResult


class SyncPipeline:
    """Walk, diff, extract, push and persist one sync run at a time.

    Every decision of a run is taken against the catalog snapshot loaded at its
    start, and the catalog is written exactly once when all workers are done.
    Runs are not coordinated with each other; callers must serialise them.
    """

    def __init__(
        self,
        *,
        store: ContentStore,
        catalog: CatalogStore,
        extractor: MetadataExtractor,
        media_dir: str | os.PathLike[str],
        concurrency: int = DEFAULT_CONCURRENCY,
    ) -> None:
        self._store = store
        self._catalog = catalog
        self._extractor = extractor
        self._media_dir = Path(media_dir)
        self._concurrency = max(1, int(concurrency))

    @property
    def concurrency(self) -> int:
        return self._concurrency

    async def sync(self, root: str | os.PathLike[str] | None = None) -> SyncResult:
        """Run one synchronisation pass over ``root`` (the media dir by default).

        Raises ``ContentStoreUnavailableError`` without touching the catalog when
        the store cannot be reached before the run starts.
        """

        base = Path(root if root is not None else self._media_dir).expanduser().absolute()
        start = time.perf_counter()

        identity = await self._store.identify()
        snapshot = await asyncio.to_thread(self._catalog.load)
        state = _RunState(root=base, snapshot=snapshot, working=dict(snapshot), result=SyncResult())

        candidates = await asyncio.to_thread(lambda: list(iter_media_files(base)))
        state.result.total = len(candidates)
        log_event(
            logger,
            "sync.started",
            root=str(base),
            candidates=len(candidates),
            known=len(snapshot),
            concurrency=self._concurrency,
            store_id=identity.id,
        )

        queue: asyncio.Queue[Path] = asyncio.Queue()
        for path in candidates:
            queue.put_nowait(path)

        workers = [
            asyncio.create_task(self._worker(queue, state), name=f"sync-worker-{index}")
            for index in range(min(self._concurrency, len(candidates)))
        ]
        try:
            outcomes = await asyncio.gather(*workers, return_exceptions=True)
        finally:
            await asyncio.to_thread(self._catalog.save, state.working)

        result = state.result
        log_event(
            logger,
            "sync.completed",
            root=str(base),
            total=result.total,
            added=result.added,
            skipped=result.skipped,
            failed=result.failed,
            duration_ms=elapsed_ms(start),
        )
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                raise outcome
        return result

    async def _worker(self, queue: asyncio.Queue[Path], state: _RunState) -> None:
        while True:
            try:
                path = queue.get_nowait()
            except asyncio.QueueEmpty:
                return
            try:
                await self._process(path, state)
            finally:
                queue.task_done()

    async def _process(self, path: Path, state: _RunState) -> None:
        key = relative_key(state.root, path)
        try:
            stat_result = await asyncio.to_thread(path.stat)
        except OSError as exc:
            self._record_failure(state.result, key, exc)
            return

        size = stat_result.st_size
        if not needs_ingest(path, size, state.snapshot.get(key)):
            state.result.skipped += 1
            return

        metadata = await self._extract_metadata(path)
        try:
            handle = await asyncio.to_thread(path.open, "rb")
        except OSError as exc:
            self._record_failure(state.result, key, exc)
            return
        try:
            content_id = await self._store.add(path.name, read_chunks(handle))
        except (OSError, ContentStoreError) as exc:
            self._record_failure(state.result, key, exc)
            return
        finally:
            await asyncio.to_thread(handle.close)

        state.working[key] = CatalogEntry(
            relative_path=key,
            content_id=content_id,
            size=size,
            title=metadata.title,
            artist=metadata.artist,
            album=metadata.album,
            duration_seconds=metadata.duration_seconds,
            mime_type=mime_type_for(path),
        )
        state.result.added += 1
        log_event(
            logger,
            "sync.file_ingested",
            level=logging.DEBUG,
            path=key,
            content_id=content_id,
            size=size,
        )

    async def _extract_metadata(self, path: Path) -> MediaMetadata:
        try:
            return await asyncio.to_thread(self._extractor.extract, path)
        except Exception as exc:
            logger.debug("Ignoring metadata failure for %s: %s", path, exc)
            return MediaMetadata()

    @staticmethod
    def _record_failure(result: SyncResult, key: str, exc: Exception) -> None:
        result.failed += 1
        result.failures.append(key)
        log_event(
            logger,
            "sync.file_failed",
            level=logging.WARNING,
            path=key,
            error=exc.__class__.__name__,
            detail=str(exc),
        )


async def read_chunks(handle: BinaryIO, chunk_size: int = READ_CHUNK_SIZE) -> AsyncIterator[bytes]:
    """Yield ``handle`` in chunks, each read in a worker thread."""

    while True:
        chunk = await asyncio.to_thread(handle.read, chunk_size)
        if not chunk:
            return
        yield chunk


__all__ = ["DEFAULT_CONCURRENCY", "READ_CHUNK_SIZE", "SyncPipeline", "read_chunks"]
