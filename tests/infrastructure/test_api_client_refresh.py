"""Refresh-on-401 tests — one refresh, one replay, and a cleared session on failure.

Tests cover:
    - Expired access token: single refresh, single replay, caller sees the 2xx payload
    - A 401 surviving the replay: no second refresh, access token dropped
    - Rejected or unreachable refresh: session cleared, SessionExpiredError raised
    - Concurrent 401s: one shared refresh (single-flight)
    - Refresh procedure preconditions and token rotation fallback
"""

import asyncio

import httpx
import pytest

from ventures_client.core.errors import (
    ApiRequestError,
    NetworkError,
    NoRefreshTokenError,
    SessionExpiredError,
    TokenRefreshError,
)
from tests.fake_backend import json_response

PROFILE = "/api/profile"
REFRESH = "/api/auth/refresh"


def _expired_then_ok(payload):
    """401 for the stale token, 200 for anything else."""
    def respond(request):
        if request.bearer == "A1":
            return json_response(401, {"detail": "Token expired"})
        return json_response(200, payload)
    return respond


async def test_expired_token_refreshes_once_and_replays(api_client, backend, signed_in, memory_store):
    """The caller receives the replayed 2xx payload and never sees the 401."""
    backend.on("GET", PROFILE, _expired_then_ok({"id": 7}))
    backend.on("POST", REFRESH, json_response(200, {"access_token": "A2", "refresh_token": "R2"}))

    result = await api_client.execute(PROFILE)

    assert result == {"id": 7}
    assert len(backend.calls("POST", REFRESH)) == 1
    assert backend.calls("POST", REFRESH)[0].body == {"refresh_token": "R1"}
    assert backend.calls("POST", REFRESH)[0].bearer is None
    assert [r.bearer for r in backend.calls("GET", PROFILE)] == ["A1", "A2"]
    assert signed_in.access_token == "A2"
    assert memory_store.snapshot()["refresh_token"] == "R2"


async def test_refresh_without_rotation_keeps_refresh_token(api_client, backend, signed_in):
    backend.on("GET", PROFILE, _expired_then_ok({"id": 7}))
    backend.on("POST", REFRESH, json_response(200, {"access_token": "A2"}))

    await api_client.execute(PROFILE)

    assert signed_in.refresh_token == "R1"


async def test_second_401_after_replay_does_not_loop(api_client, backend, signed_in):
    backend.on("GET", PROFILE, json_response(401, {"detail": "Not authenticated"}))
    backend.on("POST", REFRESH, json_response(200, {"access_token": "A2", "refresh_token": "R2"}))

    with pytest.raises(ApiRequestError) as exc_info:
        await api_client.execute(PROFILE)

    assert exc_info.value.status_code == 401
    assert len(backend.calls("POST", REFRESH)) == 1
    assert len(backend.calls("GET", PROFILE)) == 2
    assert signed_in.access_token is None
    assert signed_in.refresh_token == "R2"


async def test_rejected_refresh_clears_session(api_client, backend, signed_in, memory_store):
    """A revoked refresh token ends with a cleared store and a session-expired error."""
    await signed_in.remember_user(1004, "ada@example.com")
    backend.on("GET", PROFILE, json_response(401, {"detail": "Token expired"}))
    backend.on("POST", REFRESH, json_response(401, {"detail": "Refresh token revoked"}))

    with pytest.raises(SessionExpiredError) as exc_info:
        await api_client.execute(PROFILE)

    assert exc_info.value.message == "Session expired. Please log in again."
    assert signed_in.is_authenticated() is False
    assert signed_in.refresh_token is None
    assert memory_store.snapshot() == {}
    assert len(backend.calls("GET", PROFILE)) == 1


async def test_refresh_network_failure_clears_session(api_client, backend, signed_in):
    def refuse(request):
        raise httpx.ConnectError("connection refused")

    backend.on("GET", PROFILE, json_response(401, {}))
    backend.on("POST", REFRESH, refuse)

    with pytest.raises(SessionExpiredError):
        await api_client.execute(PROFILE)

    assert signed_in.is_authenticated() is False
    assert signed_in.refresh_token is None


async def test_refresh_response_without_access_token_clears_session(api_client, backend, signed_in):
    backend.on("POST", REFRESH, json_response(200, {"refresh_token": "R2"}))

    with pytest.raises(TokenRefreshError):
        await api_client.refresh_access_token()

    assert signed_in.refresh_token is None


async def test_malformed_refresh_body_clears_session(api_client, backend, signed_in, memory_store):
    """A 200 refresh body with a non-string token is a failed refresh, not a crash."""
    backend.on("GET", PROFILE, json_response(401, {"detail": "expired"}))
    backend.on("POST", REFRESH, json_response(200, {"access_token": 123}))

    with pytest.raises(SessionExpiredError):
        await api_client.execute(PROFILE)

    assert signed_in.refresh_token is None
    assert memory_store.snapshot() == {}


async def test_fractional_expires_in_is_accepted(api_client, backend, signed_in):
    backend.on("POST", REFRESH, json_response(200, {"access_token": "A2", "expires_in": 3599.5}))

    assert await api_client.refresh_access_token() == "A2"
    assert signed_in.refresh_token == "R1"


async def test_401_without_refresh_token_is_surfaced(api_client, backend, token_store):
    backend.on("GET", PROFILE, json_response(401, {"detail": "Not authenticated"}))

    with pytest.raises(ApiRequestError, match="Not authenticated"):
        await api_client.execute(PROFILE)

    assert backend.calls("POST", REFRESH) == []


async def test_login_401_never_triggers_refresh(api_client, backend, signed_in):
    backend.on("POST", "/api/auth/token", json_response(401, {"detail": "Incorrect email or password"}))

    with pytest.raises(ApiRequestError, match="Incorrect email or password"):
        await api_client.execute("/api/auth/token", "POST", {"email": "a", "password": "b"})

    assert backend.calls("POST", REFRESH) == []
    assert signed_in.refresh_token == "R1"


async def test_refresh_without_refresh_token_makes_no_call(api_client, backend):
    with pytest.raises(NoRefreshTokenError, match="No refresh token available"):
        await api_client.refresh_access_token()

    assert backend.requests == []


async def test_refresh_reads_durable_token(api_client, backend, memory_store, token_store):
    await memory_store.set("refresh_token", "R5")
    backend.on("POST", REFRESH, json_response(200, {"access_token": "A6"}))

    assert await api_client.refresh_access_token() == "A6"
    assert token_store.is_authenticated() is True


async def test_refresh_network_error_propagates(api_client, backend, signed_in):
    def refuse(request):
        raise httpx.ConnectError("connection refused")

    backend.on("POST", REFRESH, refuse)

    with pytest.raises(NetworkError):
        await api_client.refresh_access_token()
    assert signed_in.refresh_token is None


# -- Single-flight refresh ----------------------------------------------------

async def test_concurrent_401s_share_one_refresh(api_client, backend, signed_in):
    release = asyncio.Event()

    async def slow_refresh(request):
        await release.wait()
        return json_response(200, {"access_token": "A2", "refresh_token": "R2"})

    backend.on("GET", PROFILE, _expired_then_ok({"id": 1}))
    backend.on("GET", "/api/investments", _expired_then_ok({"investments": []}))
    backend.on("POST", REFRESH, slow_refresh)

    first = asyncio.create_task(api_client.execute(PROFILE))
    second = asyncio.create_task(api_client.execute("/api/investments"))
    for _ in range(10):
        await asyncio.sleep(0)
    release.set()

    assert await first == {"id": 1}
    assert await second == {"investments": []}
    assert len(backend.calls("POST", REFRESH)) == 1


async def test_already_rotated_token_replays_without_refresh(api_client, backend, signed_in):
    """A 401 for a token another caller already replaced is replayed directly."""
    async def expire_after_rotation(request):
        if request.bearer == "A1":
            await signed_in.set_tokens("A2", "R2")
            return json_response(401, {})
        return json_response(200, {"ok": True})

    backend.on("GET", PROFILE, expire_after_rotation)

    assert await api_client.execute(PROFILE) == {"ok": True}
    assert backend.calls("POST", REFRESH) == []
