"""Application middleware registration helpers."""

from __future__ import annotations

from fastapi import FastAPI

from .errors import setup_exception_handlers
from .logging import APILoggingMiddleware
from .request_id import RequestIDMiddleware


def install_middleware(app: FastAPI) -> None:
    """Install exception handlers and the request middleware stack."""

    setup_exception_handlers(app)
    # Added last so it runs first and the request id is set before logging.
    app.add_middleware(APILoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)


__all__ = ["install_middleware"]
