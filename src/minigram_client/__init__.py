"""Client-side access layer for the minigram messaging backend."""

from .api import BackendClient
from .errors import (
    BackendAPIError,
    BackendDecodeError,
    BackendHTTPError,
    BackendInvalidResponseError,
    BackendTransportError,
)
from .models import AuthResult, CallJoin, Chat, Message, User
from .session import Session, SessionStore

__all__ = [
    "AuthResult",
    "BackendAPIError",
    "BackendClient",
    "BackendDecodeError",
    "BackendHTTPError",
    "BackendInvalidResponseError",
    "BackendTransportError",
    "CallJoin",
    "Chat",
    "Message",
    "Session",
    "SessionStore",
    "User",
]
