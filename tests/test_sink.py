"""Tests for the Discord sink against a mocked Discord API."""

import json

import httpx
import pytest

from blotter.discord.messages import OutgoingMessage
from blotter.discord.sink import DiscordSink
from blotter.errors import SinkError


def _sink(handler) -> DiscordSink:
    return DiscordSink("tok", "123", timeout=5, base_url="https://discord.test/api", transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_post_returns_message_id():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"id": "998877"})

    sink = _sink(handler)
    assert await sink.post(OutgoingMessage("hello")) == "998877"
    await sink.aclose()

    [request] = seen
    assert request.method == "POST"
    assert request.url.path == "/api/channels/123/messages"
    assert request.headers["Authorization"] == "Bot tok"
    assert json.loads(request.content) == {"content": "hello"}


@pytest.mark.asyncio
async def test_post_with_attachment_is_multipart():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"id": "1"})

    sink = _sink(handler)
    await sink.post(OutgoingMessage("mugshot", files=[("mugshot.png", b"\x89PNG")]))
    await sink.aclose()

    assert seen[0].headers["content-type"].startswith("multipart/form-data")
    body = seen[0].read()
    assert b"payload_json" in body
    assert b"mugshot.png" in body


@pytest.mark.asyncio
async def test_post_rejected_raises():
    sink = _sink(lambda request: httpx.Response(403, json={"message": "Missing Access", "code": 50001}))
    with pytest.raises(SinkError) as exc:
        await sink.post(OutgoingMessage("x"))
    assert exc.value.status_code == 403
    await sink.aclose()


@pytest.mark.asyncio
async def test_transport_failure_raises_sink_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    sink = _sink(handler)
    with pytest.raises(SinkError):
        await sink.post(OutgoingMessage("x"))
    with pytest.raises(SinkError):
        await sink.retract("1")
    await sink.aclose()


@pytest.mark.asyncio
async def test_retract_deletes_message():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(204)

    sink = _sink(handler)
    await sink.retract("555")
    await sink.aclose()
    assert seen[0].method == "DELETE"
    assert seen[0].url.path == "/api/channels/123/messages/555"


@pytest.mark.asyncio
async def test_retract_is_idempotent_for_missing_messages():
    sink = _sink(lambda request: httpx.Response(404, json={"message": "Unknown Message", "code": 10008}))
    await sink.retract("555")
    await sink.retract("555")
    await sink.aclose()

    coded = _sink(lambda request: httpx.Response(400, json={"code": 10008}))
    await coded.retract("555")
    await coded.aclose()


@pytest.mark.asyncio
async def test_retract_failure_raises():
    sink = _sink(lambda request: httpx.Response(500, text="oops"))
    with pytest.raises(SinkError) as exc:
        await sink.retract("555")
    assert exc.value.status_code == 500
    await sink.aclose()


@pytest.mark.asyncio
async def test_rate_limit_is_retried_once():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if len(calls) == 1:
            return httpx.Response(429, json={"message": "You are being rate limited.", "retry_after": 0.01})
        return httpx.Response(200, json={"id": "42"})

    sink = _sink(handler)
    assert await sink.post(OutgoingMessage("x")) == "42"
    await sink.aclose()
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_persistent_rate_limit_fails():
    sink = _sink(lambda request: httpx.Response(429, json={"retry_after": 0}))
    with pytest.raises(SinkError) as exc:
        await sink.post(OutgoingMessage("x"))
    assert exc.value.status_code == 429
    await sink.aclose()


def test_from_settings_without_credentials_returns_none():
    assert DiscordSink.from_settings() is None
