"""Call provisioning: create a call or join an existing one.

Both endpoints return the same :class:`~minigram_client.models.CallJoin`
bundle. Entering the media room with it is left to a ``CallRoomLauncher``
supplied by the embedding application.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from .api import BackendClient
from .core.exceptions import MinigramError
from .core.logging_utils import log_event
from .models import CallJoin
from .session import SessionStore

logger = logging.getLogger(__name__)

CALL_ORIGIN_CREATED = "created"
CALL_ORIGIN_JOINED = "joined"


class CallPreconditionError(MinigramError):
    """A call action was refused locally."""


@dataclass(frozen=True)
class CallHandoff:
    join: CallJoin
    origin: str


class CallRoomLauncher(Protocol):
    def open(self, handoff: CallHandoff) -> None: ...


class CallCoordinator:
    def __init__(
        self,
        client: BackendClient,
        session: SessionStore,
        *,
        launcher: Optional[CallRoomLauncher] = None,
    ) -> None:
        self._client = client
        self._session = session
        self._launcher = launcher

    async def start_call(self, chat_id: Optional[str] = None) -> CallHandoff:
        self._require_authorized()
        chat_id = chat_id.strip() if chat_id else None
        join = await self._client.create_call(chat_id or None)
        return self._hand_off(join, CALL_ORIGIN_CREATED)

    async def join_call(self, call_id: str) -> CallHandoff:
        self._require_authorized()
        call_id = call_id.strip()
        if not call_id:
            raise CallPreconditionError(
                "call id is empty", user_message="Enter a Call ID."
            )
        join = await self._client.join_call(call_id)
        return self._hand_off(join, CALL_ORIGIN_JOINED)

    def _require_authorized(self) -> None:
        if not self._session.is_authorized():
            raise CallPreconditionError(
                "session is not authorized", user_message="Authorize first."
            )

    def _hand_off(self, join: CallJoin, origin: str) -> CallHandoff:
        handoff = CallHandoff(join=join, origin=origin)
        log_event(
            logger,
            logging.INFO,
            "calls.handoff",
            call_id=join.call_id,
            room=join.room,
            origin=origin,
        )
        if self._launcher is not None:
            self._launcher.open(handoff)
        return handoff


__all__ = [
    "CALL_ORIGIN_CREATED",
    "CALL_ORIGIN_JOINED",
    "CallCoordinator",
    "CallHandoff",
    "CallPreconditionError",
    "CallRoomLauncher",
]
