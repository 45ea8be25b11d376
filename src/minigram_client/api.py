from __future__ import annotations

import logging
from typing import Any, Callable, Optional, TypeVar
from urllib.parse import quote

import httpx

from .core.logging_utils import log_event
from .errors import (
    BackendDecodeError,
    BackendHTTPError,
    BackendInvalidResponseError,
    BackendTransportError,
)
from .models import (
    CHAT_KIND_DIRECT,
    AuthResult,
    CallJoin,
    Chat,
    Message,
    User,
    decode_chat_list,
    decode_error_message,
    decode_message_list,
    decode_sent_flag,
)
from .session import SessionStore


DEFAULT_MESSAGE_LIMIT = 50

T = TypeVar("T")


def normalize_path(path: str) -> str:
    return "/" + path.lstrip("/")


def _segment(value: str) -> str:
    return quote(value, safe="")


class BackendClient:
    """Async client for the minigram backend HTTP API.

    The client keeps no state beyond its configuration and is safe to share
    between tasks. The bearer token is read from the session store on every
    authenticated request and is never written back by the client; callers
    store an :class:`AuthResult` themselves after a successful login.

    No retries are attempted and no timeout is imposed beyond the
    ``timeout`` handed to the underlying transport.
    """

    def __init__(
        self,
        base_url: str,
        session: SessionStore,
        *,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._base_url = base_url
        self._session = session
        self._logger = logger or logging.getLogger(__name__)
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "BackendClient":
        return self

    async def __aexit__(self, *_exc_info: object) -> None:
        await self.close()

    def _headers(self, *, authorized: bool, has_body: bool) -> dict[str, str]:
        headers: dict[str, str] = {"Accept": "application/json"}
        if has_body:
            headers["Content-Type"] = "application/json"
        if authorized:
            token = self._session.current_token()
            if token is not None:
                headers["Authorization"] = f"Bearer {token}"
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        decode: Callable[[Any], T],
        *,
        authorized: bool,
        payload: Optional[dict[str, Any]] = None,
        params: Optional[dict[str, Any]] = None,
    ) -> T:
        path = normalize_path(path)
        headers = self._headers(authorized=authorized, has_body=payload is not None)
        try:
            response = await self._client.request(
                method,
                path,
                json=payload,
                params=params,
                headers=headers,
            )
        except (httpx.InvalidURL, httpx.UnsupportedProtocol) as exc:
            log_event(
                self._logger,
                logging.WARNING,
                "backend.request.bad_target",
                method=method,
                path=path,
                exc=exc,
            )
            raise BackendInvalidResponseError(
                f"Backend URL is unusable for {method} {path}: {exc}"
            ) from exc
        except (httpx.RemoteProtocolError, httpx.DecodingError) as exc:
            log_event(
                self._logger,
                logging.WARNING,
                "backend.response.invalid",
                method=method,
                path=path,
                exc=exc,
            )
            raise BackendInvalidResponseError(
                f"Backend returned an unusable response for {method} {path}: {exc}"
            ) from exc
        except httpx.TransportError as exc:
            log_event(
                self._logger,
                logging.WARNING,
                "backend.request.transport_error",
                method=method,
                path=path,
                exc=exc,
            )
            raise BackendTransportError(
                f"Backend network error for {method} {path}: {exc}"
            ) from exc
        except httpx.HTTPError as exc:
            raise BackendInvalidResponseError(
                f"Backend request failed for {method} {path}: {exc}"
            ) from exc

        status_code = response.status_code
        log_event(
            self._logger,
            logging.DEBUG,
            "backend.request.completed",
            method=method,
            path=path,
            status=status_code,
        )
        if status_code >= 400:
            server_message = self._read_error_message(response)
            log_event(
                self._logger,
                logging.WARNING,
                "backend.request.rejected",
                method=method,
                path=path,
                status=status_code,
                server_message=server_message,
            )
            raise BackendHTTPError(
                status_code, server_message, method=method, path=path
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise BackendDecodeError(
                f"Backend returned non-JSON success response for {method} {path}"
            ) from exc
        try:
            return decode(body)
        except BackendDecodeError as exc:
            log_event(
                self._logger,
                logging.WARNING,
                "backend.response.decode_failed",
                method=method,
                path=path,
                exc=exc,
            )
            raise

    @staticmethod
    def _read_error_message(response: httpx.Response) -> Optional[str]:
        try:
            return decode_error_message(response.json())
        except ValueError:
            return None

    async def request_auth_code(self, phone: str) -> bool:
        return await self._request(
            "POST",
            "/v1/auth/request",
            decode_sent_flag,
            authorized=False,
            payload={"phone": phone},
        )

    async def verify_code(self, phone: str, code: str, name: str) -> AuthResult:
        return await self._request(
            "POST",
            "/v1/auth/verify",
            AuthResult.from_payload,
            authorized=False,
            payload={"phone": phone, "code": code, "name": name},
        )

    async def authorize_bot(self, code: str, name: str) -> AuthResult:
        return await self._request(
            "POST",
            "/v1/auth/bot",
            AuthResult.from_payload,
            authorized=False,
            payload={"code": code, "name": name},
        )

    async def fetch_me(self) -> User:
        return await self._request("GET", "/v1/me", User.from_payload, authorized=True)

    async def list_chats(self) -> list[Chat]:
        return await self._request(
            "GET", "/v1/chats", decode_chat_list, authorized=True
        )

    async def create_direct_chat(self, user_id: str) -> Chat:
        return await self._request(
            "POST",
            "/v1/chats",
            Chat.from_payload,
            authorized=True,
            payload={"kind": CHAT_KIND_DIRECT, "user_id": user_id},
        )

    async def list_messages(
        self, chat_id: str, limit: int = DEFAULT_MESSAGE_LIMIT
    ) -> list[Message]:
        """Fetch recent messages in server order; callers re-sort for display."""
        return await self._request(
            "GET",
            f"/v1/chats/{_segment(chat_id)}/messages",
            decode_message_list,
            authorized=True,
            params={"limit": limit},
        )

    async def send_message(self, chat_id: str, body: str) -> Message:
        return await self._request(
            "POST",
            f"/v1/chats/{_segment(chat_id)}/messages",
            Message.from_payload,
            authorized=True,
            payload={"body": body},
        )

    async def create_call(self, chat_id: Optional[str] = None) -> CallJoin:
        payload: dict[str, Any] = {}
        if chat_id:
            payload["chat_id"] = chat_id
        return await self._request(
            "POST",
            "/v1/calls",
            CallJoin.from_payload,
            authorized=True,
            payload=payload,
        )

    async def join_call(self, call_id: str) -> CallJoin:
        return await self._request(
            "POST",
            "/v1/calls/join",
            CallJoin.from_payload,
            authorized=True,
            payload={"call_id": call_id},
        )


__all__ = ["BackendClient", "DEFAULT_MESSAGE_LIMIT", "normalize_path"]
