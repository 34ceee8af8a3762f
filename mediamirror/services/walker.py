"""Enumerate audio files below the media root."""

from __future__ import annotations

from collections.abc import Iterator
import logging
import os
from pathlib import Path

from mediamirror.logging import get_logger
from mediamirror.logging_events import log_event
from mediamirror.utils.media_types import is_audio_file

logger = get_logger(__name__)


def iter_media_files(root: Path | str) -> Iterator[Path]:
    """Yield absolute paths of audio files nested anywhere below ``root``.

    Directories are walked depth-first with entries sorted by name, so the
    order is stable between calls on an unchanged tree. Symlinked directories
    are not followed. Entries that cannot be inspected are logged and skipped.
    """

    base = Path(root).expanduser().absolute()
    if not base.is_dir():
        log_event(
            logger,
            "walker.skip",
            level=logging.WARNING,
            path=str(base),
            reason="root is not a directory",
        )
        return

    pending: list[Path] = [base]
    while pending:
        directory = pending.pop()
        try:
            with os.scandir(directory) as iterator:
                entries = sorted(iterator, key=lambda entry: entry.name)
        except OSError as exc:
            _report_skip(directory, exc.strerror or exc.__class__.__name__)
            continue

        subdirectories: list[Path] = []
        for entry in entries:
            try:
                if entry.is_dir(follow_symlinks=False):
                    subdirectories.append(Path(entry.path))
                    continue
                if not entry.is_file():
                    # A dangling link reads as neither file nor directory.
                    if entry.is_symlink() and not entry.is_dir():
                        _report_skip(Path(entry.path), "broken symlink")
                    continue
            except OSError as exc:
                _report_skip(Path(entry.path), exc.strerror or exc.__class__.__name__)
                continue
            if is_audio_file(entry.name):
                yield Path(entry.path)
        # Reversed so the first subdirectory is popped first.
        pending.extend(reversed(subdirectories))


def relative_key(root: Path | str, path: Path | str) -> str:
    """Return the catalog key for ``path``: its POSIX path relative to ``root``."""

    base = Path(root).expanduser().absolute()
    return Path(path).absolute().relative_to(base).as_posix()


def _report_skip(path: Path, reason: str) -> None:
    log_event(
        logger,
        "walker.skip",
        level=logging.WARNING,
        path=str(path),
        reason=reason,
    )
