"""Test doubles and filesystem helpers shared across the suite."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
import hashlib
from pathlib import Path

from mediamirror.integrations.content_store import (
    ContentNotFoundError,
    ContentStoreResponseError,
    ContentStoreUnavailableError,
)
from mediamirror.models import MediaMetadata, StoreIdentity


class FakeContentStore:
    """In-memory content store recording pushes and their concurrency."""

    def __init__(
        self,
        *,
        delay: float = 0.0,
        fail_names: Iterable[str] = (),
        crash_names: Iterable[str] = (),
        unreachable: bool = False,
    ) -> None:
        self.delay = delay
        self.fail_names = set(fail_names)
        self.crash_names = set(crash_names)
        self.unreachable = unreachable
        self.objects: dict[str, bytes] = {}
        self.added: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def add(self, name: str, chunks) -> str:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if name in self.crash_names:
                raise RuntimeError(f"store crashed on {name}")
            if name in self.fail_names:
                raise ContentStoreResponseError(f"push rejected for {name}", status_code=500)
            data = b"".join([chunk async for chunk in chunks])
            content_id = "bafy" + hashlib.sha256(data).hexdigest()[:40]
            self.objects[content_id] = data
            self.added.append(name)
            return content_id
        finally:
            self.in_flight -= 1

    async def cat(self, content_id: str):
        if self.unreachable:
            raise ContentStoreUnavailableError("connection refused")
        if content_id not in self.objects:
            raise ContentNotFoundError(content_id)
        return self._chunks(self.objects[content_id])

    async def identify(self) -> StoreIdentity:
        if self.unreachable:
            raise ContentStoreUnavailableError("connection refused")
        return StoreIdentity(id="12D3KooWTestNode", agent_version="kubo/0.29.0")

    @staticmethod
    async def _chunks(data: bytes):
        for offset in range(0, len(data), 4):
            yield data[offset : offset + 4]


class StaticMetadataExtractor:
    def __init__(self, metadata: MediaMetadata | None = None) -> None:
        self.metadata = metadata or MediaMetadata()
        self.calls: list[Path] = []

    def extract(self, path: Path) -> MediaMetadata:
        self.calls.append(path)
        return self.metadata


def write_file(root: Path, relative: str, content: bytes = b"audio-bytes") -> Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
    return path
