from __future__ import annotations

import json

import httpx
import pytest

from minigram_client.api import BackendClient
from minigram_client.auth import AuthFlow, AuthInputError, NotAuthorizedError
from minigram_client.errors import BackendHTTPError
from minigram_client.session import SessionStore


def _client(session: SessionStore, handler) -> BackendClient:
    return BackendClient(
        "https://backend.test", session, transport=httpx.MockTransport(handler)
    )


@pytest.mark.anyio
async def test_verify_updates_session(session_store: SessionStore, user_payload: dict) -> None:
    bodies: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"token": "tok-9", "user": user_payload})

    async with _client(session_store, handler) as client:
        auth = await AuthFlow(client, session_store).verify(
            " +15550001111 ", " 1234 ", " Alice "
        )

    assert bodies == [{"phone": "+15550001111", "code": "1234", "name": "Alice"}]
    assert session_store.is_authorized() is True
    assert session_store.current_token() == auth.token == "tok-9"
    assert session_store.current_user() == auth.user


@pytest.mark.anyio
async def test_failed_verify_leaves_session_untouched(session_store: SessionStore) -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"error": "bad code"})

    async with _client(session_store, handler) as client:
        with pytest.raises(BackendHTTPError):
            await AuthFlow(client, session_store).verify("+1", "0000", "")

    assert session_store.is_authorized() is False


@pytest.mark.anyio
async def test_blank_inputs_are_rejected_locally(session_store: SessionStore) -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    async with _client(session_store, handler) as client:
        flow = AuthFlow(client, session_store)
        with pytest.raises(AuthInputError):
            await flow.request_code("  ")
        with pytest.raises(AuthInputError):
            await flow.verify("+1", "", "Alice")
        with pytest.raises(AuthInputError) as excinfo:
            await flow.authorize_bot(" ", "Bot")

    assert excinfo.value.user_message == "Enter the bot code first."


@pytest.mark.anyio
async def test_bot_login_then_logout(session_store: SessionStore, user_payload: dict) -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"token": "bot-tok", "user": user_payload})

    async with _client(session_store, handler) as client:
        flow = AuthFlow(client, session_store)
        await flow.authorize_bot("CODE", "Bot")
        assert session_store.is_authorized() is True
        flow.logout()

    assert session_store.is_authorized() is False


@pytest.mark.anyio
async def test_refresh_profile_keeps_token(session_store: SessionStore, user_payload: dict) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/v1/me":
            return httpx.Response(200, json={**user_payload, "display_name": "Alice B."})
        return httpx.Response(200, json={"token": "tok-1", "user": user_payload})

    async with _client(session_store, handler) as client:
        flow = AuthFlow(client, session_store)
        with pytest.raises(NotAuthorizedError):
            await flow.refresh_profile()
        await flow.verify("+1", "1234", "Alice")
        user = await flow.refresh_profile()

    assert user.display_name == "Alice B."
    assert session_store.current_token() == "tok-1"
    assert session_store.current_user() == user


@pytest.mark.anyio
async def test_refresh_profile_does_not_revive_cleared_session(
    session_store: SessionStore, user_payload: dict
) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/v1/me":
            session_store.clear()
            return httpx.Response(200, json=user_payload)
        return httpx.Response(200, json={"token": "tok-1", "user": user_payload})

    async with _client(session_store, handler) as client:
        flow = AuthFlow(client, session_store)
        await flow.verify("+1", "1234", "Alice")
        with pytest.raises(NotAuthorizedError):
            await flow.refresh_profile()

    assert session_store.current_token() is None
    assert session_store.is_authorized() is False
