"""Audio file extensions accepted by the library walker and their mime types."""

from __future__ import annotations

import mimetypes
from pathlib import Path

DEFAULT_MIME_TYPE = "application/octet-stream"

AUDIO_MIME_TYPES: dict[str, str] = {
    ".mp3": "audio/mpeg",
    ".flac": "audio/flac",
    ".m4a": "audio/mp4",
    ".aac": "audio/aac",
    ".wav": "audio/wav",
    ".ogg": "audio/ogg",
    ".opus": "audio/ogg",
}

AUDIO_EXTENSIONS = frozenset(AUDIO_MIME_TYPES)


def is_audio_file(path: Path | str) -> bool:
    return Path(path).suffix.lower() in AUDIO_EXTENSIONS


def mime_type_for(path: Path | str) -> str:
    """Return the mime type for ``path`` based on its extension."""

    suffix = Path(path).suffix.lower()
    known = AUDIO_MIME_TYPES.get(suffix)
    if known:
        return known
    guessed, _ = mimetypes.guess_type(str(path))
    return guessed or DEFAULT_MIME_TYPE
