"""Structured logging helpers for MediaMirror services."""

from __future__ import annotations

import logging
import time
from typing import Any

_JSON_PRIMITIVES = (str, int, float, bool, type(None))

# Attributes reserved by ``logging.LogRecord``; passing them via ``extra`` raises.
_RESERVED_FIELDS = frozenset(
    {"name", "msg", "args", "levelname", "levelno", "pathname", "filename", "module",
     "exc_info", "exc_text", "stack_info", "lineno", "funcName", "created", "msecs",
     "relativeCreated", "thread", "threadName", "processName", "process", "message"}
)


def log_event(
    logger: logging.Logger | Any,
    event: str,
    /,
    *,
    level: int = logging.INFO,
    **fields: Any,
) -> None:
    """Emit ``event`` with flat JSON-compatible ``fields`` attached as ``extra``."""

    if not isinstance(event, str) or not event.strip():
        raise ValueError("event must be a non-empty string")

    extra: dict[str, Any] = {"event": event}
    for name, value in fields.items():
        if name in _RESERVED_FIELDS:
            raise ValueError(f"Field '{name}' collides with a LogRecord attribute")
        if not isinstance(value, _JSON_PRIMITIVES):
            raise TypeError(f"Field '{name}' must be a flat JSON-compatible value")
        extra[name] = value

    logger.log(level, event, extra=extra)


def elapsed_ms(start: float) -> float:
    """Return milliseconds since ``start`` (a ``time.perf_counter`` reading)."""

    return round((time.perf_counter() - start) * 1000, 3)
