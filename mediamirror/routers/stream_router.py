"""Stream stored objects by content identifier."""

from __future__ import annotations

import re

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from mediamirror.dependencies import get_stream_proxy
from mediamirror.errors import DependencyError, NotFoundError, ValidationAppError
from mediamirror.integrations.content_store import (
    ContentNotFoundError,
    ContentStoreError,
    ContentStoreUnavailableError,
)
from mediamirror.services.stream_proxy import StreamProxy

router = APIRouter(tags=["Stream"])

# Objects are addressed by content, so a response never changes for a CID.
STREAM_CACHE_CONTROL = "public, max-age=31536000, immutable"

_CONTENT_ID_PATTERN = re.compile(r"^[A-Za-z0-9]{1,128}$")


@router.get("/stream/{content_id}", response_class=StreamingResponse)
async def stream_content(
    content_id: str,
    proxy: StreamProxy = Depends(get_stream_proxy),
) -> StreamingResponse:
    if not _CONTENT_ID_PATTERN.match(content_id):
        raise ValidationAppError("Invalid content identifier.", meta={"content_id": content_id})

    try:
        handle = await proxy.stream(content_id)
    except ContentNotFoundError as exc:
        raise NotFoundError(str(exc), meta={"content_id": content_id}) from exc
    except ContentStoreUnavailableError as exc:
        raise DependencyError("Content store is unreachable.", meta={"error": str(exc)}) from exc
    except ContentStoreError as exc:
        raise DependencyError(
            "Content store returned an unexpected response.",
            status_code=502,
            meta={"error": str(exc)},
        ) from exc

    return StreamingResponse(
        handle.chunks,
        media_type=handle.mime_type,
        headers={"Cache-Control": STREAM_CACHE_CONTROL},
    )
