"""JSON file persistence for the media catalog."""

from __future__ import annotations

from collections.abc import Mapping
import json
import logging
import os
from pathlib import Path
import tempfile

from mediamirror.logging import get_logger
from mediamirror.logging_events import log_event
from mediamirror.models import Catalog, CatalogEntry

logger = get_logger(__name__)


class CatalogStore:
    """Load and atomically replace the catalog file.

    Readers never observe a partially written catalog: ``save`` writes a
    sibling temporary file and renames it over the target. Concurrent writers
    are not coordinated.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Catalog:
        """Return the persisted catalog, or an empty one if it cannot be read."""

        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as exc:
            self._report_load_failure(f"unreadable: {exc.strerror or exc}")
            return {}

        try:
            payload = json.loads(raw)
        except ValueError as exc:
            self._report_load_failure(f"invalid JSON: {exc}")
            return {}
        if not isinstance(payload, dict):
            self._report_load_failure("top-level value is not an object")
            return {}

        catalog: Catalog = {}
        for key, value in payload.items():
            try:
                entry = CatalogEntry.from_dict(value, key=key)
            except ValueError as exc:
                logger.warning("Skipping catalog entry %r: %s", key, exc)
                continue
            catalog[entry.relative_path] = entry
        return catalog

    def save(self, catalog: Mapping[str, CatalogEntry]) -> None:
        """Persist ``catalog`` via write-to-temp and atomic rename."""

        payload = {key: entry.to_dict() for key, entry in sorted(catalog.items())}
        target = self._path
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=target.parent,
            prefix=f".{target.name}.",
            suffix=".tmp",
        )
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(payload, handle, ensure_ascii=False, indent=2)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_path, target)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise
        log_event(logger, "catalog.saved", path=str(target), entries=len(payload))

    def _report_load_failure(self, reason: str) -> None:
        log_event(
            logger,
            "catalog.load_failed",
            level=logging.WARNING,
            path=str(self._path),
            reason=reason,
        )


__all__ = ["CatalogStore"]
