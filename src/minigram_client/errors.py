"""Typed failures surfaced by :class:`~minigram_client.api.BackendClient`.

Every backend operation either returns its decoded result or raises one of
these. Nothing is retried or suppressed; the only best-effort step is reading
the optional ``{"error": ...}`` envelope of a rejected request.
"""

from __future__ import annotations

from typing import Optional

from .core.exceptions import MinigramError


class BackendAPIError(MinigramError):
    """Base backend API request error."""


class BackendInvalidResponseError(BackendAPIError):
    """The exchange completed but the response or host was unusable."""

    def __init__(self, message: str, *, user_message: Optional[str] = None) -> None:
        if user_message is None:
            user_message = "The server returned an unusable response."
        super().__init__(message, user_message=user_message)


class BackendHTTPError(BackendAPIError):
    """The backend rejected the request with a status code >= 400."""

    def __init__(
        self,
        status_code: int,
        server_message: Optional[str] = None,
        *,
        method: Optional[str] = None,
        path: Optional[str] = None,
        user_message: Optional[str] = None,
    ) -> None:
        target = f" for {method} {path}" if method and path else ""
        detail = f": {server_message}" if server_message else ""
        super().__init__(
            f"Backend request failed{target} with status {status_code}{detail}",
            user_message=user_message or server_message,
        )
        self.status_code = status_code
        self.server_message = server_message

    @property
    def is_unauthorized(self) -> bool:
        return self.status_code == 401


class BackendDecodeError(BackendAPIError):
    """A successful response body did not match the expected schema."""


class BackendTransportError(BackendAPIError):
    """Connection-level failure before a response was received."""

    def __init__(self, message: str, *, user_message: Optional[str] = None) -> None:
        if user_message is None:
            user_message = "Could not reach the server."
        super().__init__(message, user_message=user_message)


__all__ = [
    "BackendAPIError",
    "BackendDecodeError",
    "BackendHTTPError",
    "BackendInvalidResponseError",
    "BackendTransportError",
]
