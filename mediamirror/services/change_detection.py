"""Decide whether a file must be pushed to the content store again."""

from __future__ import annotations

from pathlib import Path

from mediamirror.models import CatalogEntry


def needs_ingest(path: Path | str, current_size: int, previous: CatalogEntry | None) -> bool:
    """Return ``False`` only for files recorded with a CID at exactly this size.

    Size is the only signal: a file rewritten with different bytes of the same
    length is not detected and keeps its previous content identifier.
    """

    if previous is None:
        return True
    if not previous.content_id:
        return True
    return previous.size != current_size
