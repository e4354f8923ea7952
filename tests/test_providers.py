"""Tests for the push gateway adapters."""

from __future__ import annotations

import json

import httpx
import pytest

from app.infrastructure.notifications import (
    NOT_CONFIGURED,
    FcmProvider,
    OneSignalProvider,
    ProviderDeliveryError,
)

pytestmark = pytest.mark.anyio


def _recording_client(status_code: int = 200, body: dict | None = None):
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(status_code, json=body or {"id": "ok"})

    return httpx.AsyncClient(transport=httpx.MockTransport(handler)), requests


async def test_onesignal_request_shape():
    client, requests = _recording_client()
    provider = OneSignalProvider("app-1", "rest-key", client=client)

    outcome = await provider.send(["p1", "p2", "p1"], "Hi", "There", {"kind": "news"})

    assert outcome.success is True
    assert outcome.provider == "onesignal"
    sent = json.loads(requests[0].content)
    assert sent == {
        "app_id": "app-1",
        "include_player_ids": ["p1", "p2"],
        "headings": {"en": "Hi"},
        "contents": {"en": "There"},
        "data": {"kind": "news"},
    }
    assert requests[0].headers["Authorization"] == "Basic rest-key"
    await client.aclose()


async def test_fcm_request_shape():
    client, requests = _recording_client(body={"success": 1, "failure": 0})
    provider = FcmProvider("server-key", client=client)

    outcome = await provider.send(["r1"], "Hi", "There")

    assert outcome.success is True
    sent = json.loads(requests[0].content)
    assert sent == {
        "registration_ids": ["r1"],
        "notification": {"title": "Hi", "body": "There"},
    }
    assert requests[0].headers["Authorization"] == "key=server-key"
    await client.aclose()


async def test_unconfigured_provider_does_not_call_the_gateway():
    client, requests = _recording_client()

    outcome = await FcmProvider(None, client=client).send(["r1"], "Hi", "There")

    assert outcome.success is False
    assert outcome.reason == NOT_CONFIGURED
    assert requests == []
    await client.aclose()


async def test_gateway_error_raises():
    client, _ = _recording_client(status_code=500, body={"errors": ["boom"]})
    provider = OneSignalProvider("app-1", "rest-key", client=client)

    with pytest.raises(ProviderDeliveryError) as info:
        await provider.send(["p1"], "Hi", "There")

    assert info.value.status_code == 500
    assert info.value.provider == "onesignal"
    await client.aclose()


async def test_transport_error_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    provider = FcmProvider("server-key", client=client)

    with pytest.raises(ProviderDeliveryError):
        await provider.send(["r1"], "Hi", "There")
    await client.aclose()


async def test_tokens_are_sent_in_batches():
    client, requests = _recording_client(body={"success": 1, "failure": 0})
    provider = FcmProvider("server-key", client=client)
    tokens = [f"r{index}" for index in range(2500)]

    await provider.send(tokens, "Hi", "There")

    sizes = [len(json.loads(request.content)["registration_ids"]) for request in requests]
    assert sizes == [1000, 1000, 500]
    await client.aclose()
