# This project was developed with assistance from AI tools.
"""Tests for the identity-provider admin client."""

import json

import httpx
import pytest

from dvsubmit.services.identity import IdentityAdminClient


def _client(handler, key: str | None = "service-key") -> IdentityAdminClient:
    return IdentityAdminClient(
        "http://supabase.test/", key, transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_update_app_metadata_sends_service_key():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["authorization"]
        seen["apikey"] = request.headers["apikey"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"id": "auth-102"})

    ok = await _client(handler).update_app_metadata("auth-102", {"role": "ADMIN"})

    assert ok is True
    assert seen == {
        "method": "PUT",
        "url": "http://supabase.test/auth/v1/admin/users/auth-102",
        "auth": "Bearer service-key",
        "apikey": "service-key",
        "body": {"app_metadata": {"role": "ADMIN"}},
    }


@pytest.mark.asyncio
async def test_http_error_is_reported_not_raised(caplog):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"msg": "boom"})

    ok = await _client(handler).update_app_metadata("auth-102", {"role": "ADMIN"})
    assert ok is False
    assert "Identity metadata sync failed" in caplog.text


@pytest.mark.asyncio
async def test_transport_error_is_reported_not_raised():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    assert await _client(handler).update_app_metadata("auth-102", {}) is False


@pytest.mark.asyncio
async def test_disabled_without_service_key():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200)

    client = _client(handler, key=None)
    assert client.enabled is False
    assert await client.update_app_metadata("auth-102", {"role": "ADMIN"}) is False
    assert calls == []
