"""Structured API request logging middleware."""

from __future__ import annotations

import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response
from starlette.types import ASGIApp

from mediamirror.logging import get_logger
from mediamirror.logging_events import elapsed_ms, log_event


class APILoggingMiddleware(BaseHTTPMiddleware):
    """Emit one ``api.request`` event per handled request."""

    def __init__(self, app: ASGIApp) -> None:
        super().__init__(app)
        self._logger = get_logger(__name__)

    async def dispatch(  # type: ignore[override]
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start = time.perf_counter()
        status_code = 500
        error: str | None = None
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        except Exception as exc:
            error = exc.__class__.__name__
            raise
        finally:
            log_event(
                self._logger,
                "api.request",
                status="ok" if status_code < 400 else "error",
                method=request.method,
                path=request.url.path,
                status_code=status_code,
                duration_ms=elapsed_ms(start),
                request_id=getattr(request.state, "request_id", None),
                error=error,
            )
