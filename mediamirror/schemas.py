"""Pydantic schemas for API response bodies."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from mediamirror.models import CatalogEntry, StoreIdentity, SyncResult


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CatalogEntryResponse(_CamelModel):
    relative_path: str
    content_id: Optional[str] = None
    size: Optional[int] = None
    title: Optional[str] = None
    artist: Optional[str] = None
    album: Optional[str] = None
    duration_seconds: Optional[float] = None
    mime_type: Optional[str] = None

    @classmethod
    def from_entry(cls, entry: CatalogEntry) -> CatalogEntryResponse:
        return cls(
            relative_path=entry.relative_path,
            content_id=entry.content_id,
            size=entry.size,
            title=entry.title,
            artist=entry.artist,
            album=entry.album,
            duration_seconds=entry.duration_seconds,
            mime_type=entry.mime_type,
        )


class CatalogResponse(_CamelModel):
    ok: bool = True
    count: int
    entries: List[CatalogEntryResponse] = Field(default_factory=list)


class SyncResponse(_CamelModel):
    ok: bool = True
    total: int
    added: int
    failed: int = 0
    skipped: int = 0

    @classmethod
    def from_result(cls, result: SyncResult) -> SyncResponse:
        return cls(**result.as_dict())


class StoreInfo(_CamelModel):
    id: str
    agent_version: Optional[str] = None

    @classmethod
    def from_identity(cls, identity: StoreIdentity) -> StoreInfo:
        return cls(id=identity.id, agent_version=identity.agent_version)


class HealthResponse(_CamelModel):
    ok: bool
    latency_ms: float
    store: Optional[StoreInfo] = None


class LiveResponse(BaseModel):
    status: str
    version: str
