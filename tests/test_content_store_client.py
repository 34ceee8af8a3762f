import json

import httpx
import pytest

from mediamirror.integrations.content_store import (
    ContentNotFoundError,
    ContentStoreResponseError,
    ContentStoreUnavailableError,
    IpfsHttpClient,
)


def _client(handler, **kwargs) -> IpfsHttpClient:
    return IpfsHttpClient(
        base_url="http://ipfs.test:5001/",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


async def _chunks(*parts: bytes):
    for part in parts:
        yield part


def _refused(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("connection refused", request=request)


@pytest.mark.asyncio
async def test_add_posts_multipart_and_returns_last_hash() -> None:
    seen: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["params"] = dict(request.url.params)
        seen["body"] = request.content
        seen["content_type"] = request.headers["content-type"]
        lines = [
            {"Name": "song.mp3", "Hash": "QmLeaf", "Size": "12"},
            {"Name": "", "Hash": "QmRoot", "Size": "20"},
        ]
        return httpx.Response(200, text="\n".join(json.dumps(line) for line in lines))

    client = _client(handler, pin=False, cid_version=1)

    content_id = await client.add("song.mp3", _chunks(b"ID3-", b"audio-", b"payload"))

    assert content_id == "QmRoot"
    assert seen["path"] == "/api/v0/add"
    assert seen["params"] == {"pin": "false", "cid-version": "1", "progress": "false"}
    body = seen["body"]
    assert isinstance(body, bytes)
    assert b'filename="song.mp3"' in body
    assert b"ID3-audio-payload" in body
    content_type = seen["content_type"]
    assert isinstance(content_type, str) and content_type.startswith("multipart/form-data; boundary=")
    boundary = content_type.split("boundary=", 1)[1].encode()
    assert body.startswith(b"--" + boundary + b"\r\n")
    assert body.endswith(b"\r\n--" + boundary + b"--\r\n")


@pytest.mark.asyncio
async def test_add_pins_by_default() -> None:
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(200, json={"Name": "a.mp3", "Hash": "QmPinned"})

    assert await _client(handler).add("a.mp3", _chunks(b"x")) == "QmPinned"
    assert captured[0].url.params["pin"] == "true"
    assert captured[0].url.params["cid-version"] == "0"


@pytest.mark.asyncio
async def test_add_connection_error_maps_to_unavailable() -> None:
    with pytest.raises(ContentStoreUnavailableError):
        await _client(_refused).add("a.mp3", _chunks(b"x"))


@pytest.mark.asyncio
async def test_add_invalid_body_raises_response_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>proxy</html>")

    with pytest.raises(ContentStoreResponseError):
        await _client(handler).add("a.mp3", _chunks(b"x"))


@pytest.mark.asyncio
async def test_add_rejection_carries_status_and_message() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"Message": "repo full", "Code": 0, "Type": "error"})

    with pytest.raises(ContentStoreResponseError) as excinfo:
        await _client(handler).add("a.mp3", _chunks(b"x"))

    assert excinfo.value.status_code == 500
    assert "repo full" in str(excinfo.value)


@pytest.mark.asyncio
async def test_cat_streams_object_bytes() -> None:
    payload = b"0123456789" * 20
    seen: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["path"] = request.url.path
        seen["arg"] = request.url.params.get("arg")
        seen["timeout"] = request.url.params.get("timeout")
        return httpx.Response(200, content=payload)

    chunks = await _client(handler, chunk_size=64).cat("QmStream")
    received = [chunk async for chunk in chunks]

    assert b"".join(received) == payload
    assert seen == {
        "method": "POST",
        "path": "/api/v0/cat",
        "arg": "QmStream",
        "timeout": "10000ms",
    }


@pytest.mark.asyncio
async def test_cat_unresolvable_content_maps_to_not_found() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            500, json={"Message": "invalid path \"QmBad\": invalid cid", "Code": 0, "Type": "error"}
        )

    with pytest.raises(ContentNotFoundError) as excinfo:
        await _client(handler).cat("QmBad")

    assert excinfo.value.content_id == "QmBad"
    assert "invalid cid" in str(excinfo.value)


@pytest.mark.asyncio
async def test_cat_gateway_errors_map_to_unavailable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="service unavailable")

    with pytest.raises(ContentStoreUnavailableError):
        await _client(handler).cat("QmAny")


@pytest.mark.asyncio
async def test_cat_connection_error_maps_to_unavailable() -> None:
    with pytest.raises(ContentStoreUnavailableError):
        await _client(_refused).cat("QmAny")


@pytest.mark.asyncio
async def test_identify_reads_node_id_and_agent() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/v0/id"
        return httpx.Response(
            200, json={"ID": "12D3KooWNode", "AgentVersion": "kubo/0.29.0/", "Addresses": []}
        )

    identity = await _client(handler).identify()

    assert identity.id == "12D3KooWNode"
    assert identity.agent_version == "kubo/0.29.0/"


@pytest.mark.asyncio
async def test_identify_unreachable_node_raises_unavailable() -> None:
    with pytest.raises(ContentStoreUnavailableError):
        await _client(_refused).identify()


@pytest.mark.asyncio
async def test_identify_without_node_id_is_a_response_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"AgentVersion": "kubo"})

    with pytest.raises(ContentStoreResponseError):
        await _client(handler).identify()


@pytest.mark.asyncio
async def test_cat_resolve_deadline_maps_to_not_found() -> None:
    seen: list[str | None] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.params.get("timeout"))
        return httpx.Response(
            500, json={"Message": "context deadline exceeded", "Code": 0, "Type": "error"}
        )

    with pytest.raises(ContentNotFoundError):
        await _client(handler, resolve_timeout_ms=1500).cat("bafyunreachablecontent")

    assert seen == ["1500ms"]
