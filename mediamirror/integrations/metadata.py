"""Best-effort tag extraction for audio files using :mod:`mutagen`."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import Any, Protocol

import mutagen

from mediamirror.logging import get_logger
from mediamirror.models import MediaMetadata

logger = get_logger(__name__)


class MetadataExtractor(Protocol):
    def extract(self, path: Path) -> MediaMetadata:
        """Return whatever metadata ``path`` carries. Must not raise."""


class MutagenMetadataExtractor:
    """Read title, artist, album and duration through mutagen's easy tags."""

    def extract(self, path: Path) -> MediaMetadata:
        try:
            audio = mutagen.File(path, easy=True)
        except Exception as exc:  # mutagen raises format specific errors
            logger.debug("Metadata extraction failed for %s: %s", path, exc)
            return MediaMetadata()
        if audio is None:
            return MediaMetadata()

        tags = getattr(audio, "tags", None)
        info = getattr(audio, "info", None)
        return MediaMetadata(
            title=_first_text(tags, "title"),
            artist=_joined_text(tags, "artist"),
            album=_first_text(tags, "album"),
            duration_seconds=_duration(info),
        )


def _tag_values(tags: Any, key: str) -> list[str]:
    if tags is None:
        return []
    try:
        raw = tags.get(key)
    except Exception:  # pragma: no cover - tag containers vary per format
        return []
    if raw is None:
        return []
    values: Iterable[Any] = raw if isinstance(raw, (list, tuple)) else [raw]
    cleaned: list[str] = []
    for value in values:
        text = str(value).strip()
        if text:
            cleaned.append(text)
    return cleaned


def _first_text(tags: Any, key: str) -> str | None:
    values = _tag_values(tags, key)
    return values[0] if values else None


def _joined_text(tags: Any, key: str) -> str | None:
    values = _tag_values(tags, key)
    return ", ".join(values) if values else None


def _duration(info: Any) -> float | None:
    length = getattr(info, "length", None)
    if isinstance(length, (int, float)) and length > 0:
        return float(length)
    return None


__all__ = ["MetadataExtractor", "MutagenMetadataExtractor"]
