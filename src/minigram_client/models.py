"""Value records exchanged with the backend.

Field names are snake_case both locally and on the wire. Decoding is strict:
a missing required field, a wrong JSON type or a malformed timestamp raises
:class:`~minigram_client.errors.BackendDecodeError` instead of falling back
to a default.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from .core.time_utils import format_iso8601, parse_iso8601
from .errors import BackendDecodeError

CHAT_KIND_DIRECT = "direct"
CHAT_KIND_GROUP = "group"


def _require_mapping(payload: Any, what: str) -> dict[str, Any]:
    if not isinstance(payload, dict):
        raise BackendDecodeError(
            f"Expected a JSON object for {what}, got {type(payload).__name__}"
        )
    return payload


def _required_str(payload: dict[str, Any], key: str, what: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str):
        raise BackendDecodeError(f"{what}.{key} must be a string")
    return value


def _optional_str(payload: dict[str, Any], key: str, what: str) -> Optional[str]:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise BackendDecodeError(f"{what}.{key} must be a string or null")
    return value


def _required_timestamp(payload: dict[str, Any], key: str, what: str) -> datetime:
    raw = _required_str(payload, key, what)
    parsed = parse_iso8601(raw)
    if parsed is None:
        raise BackendDecodeError(f"{what}.{key} is not an ISO-8601 timestamp: {raw!r}")
    return parsed


def _optional_timestamp(
    payload: dict[str, Any], key: str, what: str
) -> Optional[datetime]:
    if payload.get(key) is None:
        return None
    return _required_timestamp(payload, key, what)


def _required_list(payload: dict[str, Any], key: str, what: str) -> list[Any]:
    value = payload.get(key)
    if not isinstance(value, list):
        raise BackendDecodeError(f"{what}.{key} must be a list")
    return value


@dataclass(frozen=True)
class User:
    id: str
    phone: str
    display_name: str
    avatar_media_id: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "User":
        data = _require_mapping(payload, "user")
        return cls(
            id=_required_str(data, "id", "user"),
            phone=_required_str(data, "phone", "user"),
            display_name=_required_str(data, "display_name", "user"),
            avatar_media_id=_optional_str(data, "avatar_media_id", "user"),
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "phone": self.phone,
            "display_name": self.display_name,
            "avatar_media_id": self.avatar_media_id,
        }


@dataclass(frozen=True)
class AuthResult:
    token: str
    user: User

    @classmethod
    def from_payload(cls, payload: Any) -> "AuthResult":
        data = _require_mapping(payload, "auth response")
        return cls(
            token=_required_str(data, "token", "auth"),
            user=User.from_payload(data.get("user")),
        )


@dataclass(frozen=True)
class Chat:
    id: str
    kind: str
    title: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def is_direct(self) -> bool:
        return self.kind == CHAT_KIND_DIRECT

    @classmethod
    def from_payload(cls, payload: Any) -> "Chat":
        data = _require_mapping(payload, "chat")
        return cls(
            id=_required_str(data, "id", "chat"),
            kind=_required_str(data, "kind", "chat"),
            title=_optional_str(data, "title", "chat"),
            created_at=_optional_timestamp(data, "created_at", "chat"),
        )


@dataclass(frozen=True)
class Message:
    id: str
    chat_id: str
    sender_id: str
    created_at: datetime
    body: Optional[str] = None
    media_id: Optional[str] = None
    edited_at: Optional[datetime] = None

    @property
    def has_text(self) -> bool:
        return self.body is not None

    @classmethod
    def from_payload(cls, payload: Any) -> "Message":
        data = _require_mapping(payload, "message")
        return cls(
            id=_required_str(data, "id", "message"),
            chat_id=_required_str(data, "chat_id", "message"),
            sender_id=_required_str(data, "sender_id", "message"),
            created_at=_required_timestamp(data, "created_at", "message"),
            body=_optional_str(data, "body", "message"),
            media_id=_optional_str(data, "media_id", "message"),
            edited_at=_optional_timestamp(data, "edited_at", "message"),
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "chat_id": self.chat_id,
            "sender_id": self.sender_id,
            "body": self.body,
            "media_id": self.media_id,
            "created_at": format_iso8601(self.created_at),
            "edited_at": format_iso8601(self.edited_at) if self.edited_at else None,
        }


@dataclass(frozen=True)
class CallJoin:
    """Credentials needed to enter a call's media room."""

    call_id: str
    room: str
    token: str
    livekit_url: str

    @classmethod
    def from_payload(cls, payload: Any) -> "CallJoin":
        data = _require_mapping(payload, "call join")
        return cls(
            call_id=_required_str(data, "call_id", "call"),
            room=_required_str(data, "room", "call"),
            token=_required_str(data, "token", "call"),
            livekit_url=_required_str(data, "livekit_url", "call"),
        )


def decode_chat_list(payload: Any) -> list[Chat]:
    data = _require_mapping(payload, "chat list")
    return [Chat.from_payload(item) for item in _required_list(data, "chats", "chats")]


def decode_message_list(payload: Any) -> list[Message]:
    data = _require_mapping(payload, "message list")
    return [
        Message.from_payload(item)
        for item in _required_list(data, "messages", "messages")
    ]


def decode_sent_flag(payload: Any) -> bool:
    data = _require_mapping(payload, "auth code response")
    sent = data.get("sent")
    if not isinstance(sent, bool):
        raise BackendDecodeError("auth code response.sent must be a boolean")
    return sent


def decode_error_message(payload: Any) -> Optional[str]:
    """Best-effort read of ``{"error": "..."}``; never raises."""
    if not isinstance(payload, dict):
        return None
    error = payload.get("error")
    if isinstance(error, str):
        return error
    return None


__all__ = [
    "AuthResult",
    "CHAT_KIND_DIRECT",
    "CHAT_KIND_GROUP",
    "CallJoin",
    "Chat",
    "Message",
    "User",
    "decode_chat_list",
    "decode_error_message",
    "decode_message_list",
    "decode_sent_flag",
]
