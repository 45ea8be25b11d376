"""Local ordering rules for chat and message views.

The backend is polled on demand; these views hold what the shell renders.
A chat's timeline is sorted ascending by ``created_at`` after every fetch.
A message returned by ``send_message`` is appended to the end without
re-sorting, on the assumption that it carries the current server time.
A newly created chat goes to the head of the chat list regardless of its
``created_at``. Nothing here deduplicates; retrying a non-idempotent call
can produce duplicates.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from .api import DEFAULT_MESSAGE_LIMIT, BackendClient
from .core.exceptions import MinigramError
from .core.logging_utils import log_event
from .errors import BackendDecodeError
from .models import Chat, Message

logger = logging.getLogger(__name__)


class EmptyMessageError(MinigramError):
    """Refused to send a blank message."""


class EmptyUserIdError(MinigramError):
    """Refused to open a direct chat without a peer id."""


def sort_messages(messages: Iterable[Message]) -> list[Message]:
    return sorted(messages, key=lambda message: message.created_at)


class MessageTimeline:
    def __init__(self, chat_id: str) -> None:
        self.chat_id = chat_id
        self._messages: list[Message] = []

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def last(self) -> Optional[Message]:
        return self._messages[-1] if self._messages else None

    def replace(self, messages: Iterable[Message]) -> None:
        self._messages = sort_messages(messages)

    def append_sent(self, message: Message) -> None:
        if message.chat_id != self.chat_id:
            raise BackendDecodeError(
                f"message {message.id} belongs to chat {message.chat_id}, "
                f"not {self.chat_id}"
            )
        self._messages.append(message)


class ChatList:
    def __init__(self) -> None:
        self._chats: list[Chat] = []

    @property
    def chats(self) -> tuple[Chat, ...]:
        return tuple(self._chats)

    def __len__(self) -> int:
        return len(self._chats)

    def get(self, chat_id: str) -> Optional[Chat]:
        for chat in self._chats:
            if chat.id == chat_id:
                return chat
        return None

    def replace(self, chats: Iterable[Chat]) -> None:
        self._chats = list(chats)

    def insert_created(self, chat: Chat) -> None:
        self._chats.insert(0, chat)


class ChatSynchronizer:
    """Applies backend results to the local chat list and timelines."""

    def __init__(self, client: BackendClient) -> None:
        self._client = client
        self.chat_list = ChatList()
        self._timelines: dict[str, MessageTimeline] = {}

    def timeline(self, chat_id: str) -> MessageTimeline:
        timeline = self._timelines.get(chat_id)
        if timeline is None:
            timeline = MessageTimeline(chat_id)
            self._timelines[chat_id] = timeline
        return timeline

    async def refresh_chats(self) -> tuple[Chat, ...]:
        chats = await self._client.list_chats()
        self.chat_list.replace(chats)
        return self.chat_list.chats

    async def create_direct_chat(self, user_id: str) -> Chat:
        peer_id = user_id.strip()
        if not peer_id:
            raise EmptyUserIdError("user id is empty", user_message="Enter a user id.")
        chat = await self._client.create_direct_chat(peer_id)
        self.chat_list.insert_created(chat)
        log_event(logger, logging.INFO, "sync.chat.created", chat_id=chat.id)
        return chat

    async def load_messages(
        self, chat_id: str, limit: int = DEFAULT_MESSAGE_LIMIT
    ) -> tuple[Message, ...]:
        messages = await self._client.list_messages(chat_id, limit=limit)
        timeline = self.timeline(chat_id)
        timeline.replace(messages)
        return timeline.messages

    async def send_message(self, chat_id: str, body: str) -> Message:
        text = body.strip()
        if not text:
            raise EmptyMessageError(
                "message body is empty", user_message="Message is empty."
            )
        message = await self._client.send_message(chat_id, text)
        self.timeline(chat_id).append_sent(message)
        return message


__all__ = [
    "ChatList",
    "ChatSynchronizer",
    "EmptyMessageError",
    "EmptyUserIdError",
    "MessageTimeline",
    "sort_messages",
]
