"""Logging configuration utilities."""

from __future__ import annotations

import logging
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_RECORD_ATTRIBUTES = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime", "event"}


class EventFieldFormatter(logging.Formatter):
    """Render the ``extra`` fields of structured events as ``key=value`` pairs."""

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        if getattr(record, "event", None) is None:
            return text
        fields = [
            f"{name}={value!r}"
            for name, value in vars(record).items()
            if name not in _RECORD_ATTRIBUTES and value is not None
        ]
        return f"{text} {' '.join(fields)}" if fields else text


def configure_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """Send process wide logs to stdout and, optionally, ``log_file``."""
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    formatter = EventFieldFormatter(LOG_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        handlers=handlers,
        force=True,
    )
    # httpx logs every request at INFO; sync runs issue one per file.
    logging.getLogger("httpx").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
