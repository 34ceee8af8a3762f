"""Domain records shared by the sync pipeline, the catalog and the API."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

# Legacy catalogs were written with short key names; accept them on read.
_FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "relative_path": ("relativePath",),
    "content_id": ("contentId", "cid"),
    "size": ("size",),
    "title": ("title",),
    "artist": ("artist",),
    "album": ("album",),
    "duration_seconds": ("durationSeconds", "duration"),
    "mime_type": ("mimeType", "mime"),
}


@dataclass(slots=True, frozen=True)
class MediaMetadata:
    """Tags recovered from a media file; any field may be missing."""

    title: str | None = None
    artist: str | None = None
    album: str | None = None
    duration_seconds: float | None = None


@dataclass(slots=True)
class CatalogEntry:
    relative_path: str
    content_id: str | None = None
    size: int | None = None
    title: str | None = None
    artist: str | None = None
    album: str | None = None
    duration_seconds: float | None = None
    mime_type: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return the camelCase mapping persisted to disk and served by the API."""

        payload: dict[str, Any] = {
            "relativePath": self.relative_path,
            "contentId": self.content_id,
            "size": self.size,
            "title": self.title,
            "artist": self.artist,
            "album": self.album,
            "durationSeconds": self.duration_seconds,
            "mimeType": self.mime_type,
        }
        return {key: value for key, value in payload.items() if value is not None}

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any], *, key: str | None = None) -> CatalogEntry:
        """Decode a persisted entry, falling back to ``key`` for the relative path.

        Raises ``ValueError`` when the payload cannot describe an entry.
        """

        if not isinstance(payload, Mapping):
            raise ValueError("catalog entry must be a mapping")

        values: dict[str, Any] = {}
        for name, aliases in _FIELD_ALIASES.items():
            for alias in aliases:
                if payload.get(alias) is not None:
                    values[name] = payload[alias]
                    break

        relative_path = values.get("relative_path") or key
        if not isinstance(relative_path, str) or not relative_path.strip():
            raise ValueError("catalog entry is missing its relative path")

        size = values.get("size")
        if size is not None:
            if isinstance(size, bool) or not isinstance(size, (int, float)):
                raise ValueError(f"invalid size for {relative_path!r}: {size!r}")
            if isinstance(size, float) and not size.is_integer():
                raise ValueError(f"fractional size for {relative_path!r}: {size!r}")
            size = int(size)

        duration = values.get("duration_seconds")
        if duration is not None:
            try:
                duration = float(duration)
            except (TypeError, ValueError):
                duration = None

        return cls(
            relative_path=relative_path,
            content_id=_optional_text(values.get("content_id")),
            size=size,
            title=_optional_text(values.get("title")),
            artist=_optional_text(values.get("artist")),
            album=_optional_text(values.get("album")),
            duration_seconds=duration,
            mime_type=_optional_text(values.get("mime_type")),
        )


# Keyed by ``CatalogEntry.relative_path``.
Catalog = dict[str, CatalogEntry]


@dataclass(slots=True)
class SyncResult:
    total: int = 0
    added: int = 0
    failed: int = 0
    skipped: int = 0
    failures: list[str] = field(default_factory=list)

    def as_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "added": self.added,
            "failed": self.failed,
            "skipped": self.skipped,
        }


@dataclass(slots=True, frozen=True)
class StoreIdentity:
    id: str
    agent_version: str | None = None


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None
