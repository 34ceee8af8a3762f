"""Async HTTP client for the IPFS RPC API backing the content store."""

from __future__ import annotations

from collections.abc import AsyncIterable, AsyncIterator
from dataclasses import dataclass
import json
from typing import Any, Protocol
from uuid import uuid4

import httpx

from mediamirror.logging import get_logger
from mediamirror.models import StoreIdentity

logger = get_logger(__name__)

_NOT_FOUND_STATUSES = frozenset({400, 404, 410, 500})
_UNAVAILABLE_STATUSES = frozenset({502, 503, 504})


class ContentStoreError(RuntimeError):
    """Base exception raised for content store failures."""


class ContentStoreUnavailableError(ContentStoreError):
    """Raised when the store cannot be reached at all."""


class ContentNotFoundError(ContentStoreError):
    """Raised when the store cannot deliver the requested content identifier."""

    def __init__(self, content_id: str, message: str | None = None) -> None:
        super().__init__(message or f"content {content_id} is not available")
        self.content_id = content_id


class ContentStoreResponseError(ContentStoreError):
    """Raised when the store answered with an unexpected status or payload."""

    def __init__(self, message: str, *, status_code: int | None = None, body: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ContentStore(Protocol):
    """Push and pull objects by content identifier."""

    async def add(self, name: str, chunks: AsyncIterable[bytes]) -> str:
        """Upload the bytes yielded by ``chunks`` and return their content identifier."""

    async def cat(self, content_id: str) -> AsyncIterator[bytes]:
        """Return an iterator over the bytes of ``content_id``.

        Failures must be raised by the call itself, before the first chunk.
        """

    async def identify(self) -> StoreIdentity:
        """Return the identity of the store node; raises when unreachable."""


@dataclass(slots=True)
class IpfsHttpClient:
    """HTTPX based client for a Kubo (go-ipfs) RPC endpoint."""

    base_url: str
    transport: httpx.AsyncBaseTransport | None = None
    timeout_ms: int = 30_000
    pin: bool = True
    cid_version: int = 0
    resolve_timeout_ms: int = 10_000
    chunk_size: int = 64 * 1024

    async def add(self, name: str, chunks: AsyncIterable[bytes]) -> str:
        params = {
            "pin": "true" if self.pin else "false",
            "cid-version": str(self.cid_version),
            "progress": "false",
        }
        # httpx only encodes synchronous file objects as multipart parts.
        boundary = uuid4().hex
        headers = {"Content-Type": f"multipart/form-data; boundary={boundary}"}
        async with self._client() as client:
            try:
                response = await client.post(
                    "/api/v0/add",
                    params=params,
                    headers=headers,
                    content=_multipart_file_body(boundary, name, chunks),
                )
            except httpx.TransportError as exc:
                raise ContentStoreUnavailableError(f"IPFS add failed: {exc}") from exc
        self._raise_for_status(response, action="add")
        content_id = self._parse_add_response(response.text)
        logger.debug("Added %s to IPFS as %s (pin=%s)", name, content_id, self.pin)
        return content_id

    async def cat(self, content_id: str) -> AsyncIterator[bytes]:
        client = self._client()
        # Kubo gives up on unresolvable content after ``timeout`` and answers 500.
        params = {"arg": content_id, "timeout": f"{self.resolve_timeout_ms}ms"}
        request = client.build_request("POST", "/api/v0/cat", params=params)
        try:
            response = await client.send(request, stream=True)
        except httpx.TransportError as exc:
            await client.aclose()
            raise ContentStoreUnavailableError(f"IPFS cat failed: {exc}") from exc

        if response.status_code != httpx.codes.OK:
            try:
                body = (await response.aread()).decode("utf-8", "replace")
            finally:
                await response.aclose()
                await client.aclose()
            message = _extract_error_message(body)
            if response.status_code in _UNAVAILABLE_STATUSES:
                raise ContentStoreUnavailableError(f"IPFS cat unavailable: {message}")
            if response.status_code in _NOT_FOUND_STATUSES:
                raise ContentNotFoundError(content_id, message or None)
            raise ContentStoreResponseError(
                "IPFS cat returned an unexpected status",
                status_code=response.status_code,
                body=body[:200],
            )

        return self._iter_body(client, response)

    async def identify(self) -> StoreIdentity:
        async with self._client() as client:
            try:
                response = await client.post("/api/v0/id")
            except httpx.TransportError as exc:
                raise ContentStoreUnavailableError(f"IPFS node unreachable: {exc}") from exc
        self._raise_for_status(response, action="id")
        payload = self._decode_json(response)
        node_id = payload.get("ID") if isinstance(payload, dict) else None
        if not isinstance(node_id, str) or not node_id:
            raise ContentStoreResponseError("IPFS id response did not include a node ID")
        agent = payload.get("AgentVersion")
        return StoreIdentity(id=node_id, agent_version=agent if isinstance(agent, str) else None)

    async def _iter_body(
        self, client: httpx.AsyncClient, response: httpx.Response
    ) -> AsyncIterator[bytes]:
        try:
            async for chunk in response.aiter_bytes(self.chunk_size):
                yield chunk
        finally:
            await response.aclose()
            await client.aclose()

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url.rstrip("/"),
            timeout=self._build_timeout(self.timeout_ms),
            transport=self.transport,
        )

    @staticmethod
    def _raise_for_status(response: httpx.Response, *, action: str) -> None:
        if response.status_code == httpx.codes.OK:
            return
        body_preview = response.text[:200]
        if response.status_code in _UNAVAILABLE_STATUSES:
            raise ContentStoreUnavailableError(
                f"IPFS {action} unavailable ({response.status_code})"
            )
        raise ContentStoreResponseError(
            f"IPFS {action} failed: {_extract_error_message(body_preview) or response.status_code}",
            status_code=response.status_code,
            body=body_preview,
        )

    @staticmethod
    def _parse_add_response(text: str) -> str:
        # One JSON object per line; the last entry describes the root object.
        content_id: str | None = None
        for line in text.splitlines():
            line = line.strip()
            if not line:
                continue
            try:
                payload = json.loads(line)
            except ValueError as exc:
                raise ContentStoreResponseError("IPFS add returned invalid JSON") from exc
            if isinstance(payload, dict) and isinstance(payload.get("Hash"), str):
                content_id = payload["Hash"]
        if not content_id:
            raise ContentStoreResponseError("IPFS add response did not include a hash")
        return content_id

    @staticmethod
    def _decode_json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise ContentStoreResponseError("IPFS returned invalid JSON") from exc

    @staticmethod
    def _build_timeout(timeout_ms: int) -> httpx.Timeout:
        timeout_seconds = max(timeout_ms, 100) / 1000
        connect_timeout = min(timeout_seconds, 5.0)
        return httpx.Timeout(
            timeout_seconds,
            connect=connect_timeout,
            read=timeout_seconds,
            write=timeout_seconds,
        )


async def _multipart_file_body(
    boundary: str, name: str, chunks: AsyncIterable[bytes]
) -> AsyncIterator[bytes]:
    filename = name.replace("\\", "\\\\").replace('"', "%22")
    yield (
        f"--{boundary}\r\n"
        f'Content-Disposition: form-data; name="file"; filename="{filename}"\r\n'
        "Content-Type: application/octet-stream\r\n\r\n"
    ).encode("utf-8")
    async for chunk in chunks:
        yield chunk
    yield f"\r\n--{boundary}--\r\n".encode("ascii")


def _extract_error_message(body: str) -> str:
    try:
        payload = json.loads(body)
    except ValueError:
        return body.strip()
    if isinstance(payload, dict):
        message = payload.get("Message") or payload.get("message")
        if isinstance(message, str):
            return message.strip()
    return body.strip()


__all__ = [
    "ContentNotFoundError",
    "ContentStore",
    "ContentStoreError",
    "ContentStoreResponseError",
    "ContentStoreUnavailableError",
    "IpfsHttpClient",
]
