from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass
from typing import Optional

from .core.kv_store import KeyValueStore
from .core.logging_utils import log_event
from .errors import BackendDecodeError
from .models import AuthResult, User

logger = logging.getLogger(__name__)

TOKEN_KEY = "mini_backend_token"
USER_KEY = "mini_backend_user"


@dataclass(frozen=True)
class Session:
    token: Optional[str] = None
    user: Optional[User] = None

    @property
    def is_authorized(self) -> bool:
        return self.token is not None and self.user is not None


class SessionStore:
    """Persistent holder of the bearer token and the signed-in user.

    Token and user are stored under separate keys but always written and
    removed together in one transaction, so a reader never observes one
    without the other. A half-written pair, or a stored profile that no
    longer decodes, reads as an empty session: no token and no user.

    Create one instance per process (see :func:`minigram_client.runtime.build_runtime`)
    and pass it to the consumers that need it.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store
        self._lock = threading.Lock()

    def snapshot(self) -> Session:
        values = self._store.get_many([TOKEN_KEY, USER_KEY])
        token = values.get(TOKEN_KEY)
        user = self._decode_user(values.get(USER_KEY))
        if token is None or user is None:
            return Session()
        return Session(token=token, user=user)

    def current_token(self) -> Optional[str]:
        return self.snapshot().token

    def current_user(self) -> Optional[User]:
        return self.snapshot().user

    def is_authorized(self) -> bool:
        return self.snapshot().is_authorized

    def update(self, auth: AuthResult) -> None:
        user_blob = json.dumps(auth.user.to_payload(), separators=(",", ":"))
        with self._lock:
            self._store.write(set_values={TOKEN_KEY: auth.token, USER_KEY: user_blob})
        log_event(logger, logging.INFO, "session.updated", user_id=auth.user.id)

    def replace_user(self, token: str, user: User) -> bool:
        """Store a refreshed profile only while ``token`` is still current."""
        user_blob = json.dumps(user.to_payload(), separators=(",", ":"))
        with self._lock:
            if self.current_token() != token:
                return False
            self._store.write(set_values={TOKEN_KEY: token, USER_KEY: user_blob})
        log_event(logger, logging.INFO, "session.user.refreshed", user_id=user.id)
        return True

    def clear(self) -> None:
        with self._lock:
            self._store.write(delete_keys=[TOKEN_KEY, USER_KEY])
        log_event(logger, logging.INFO, "session.cleared")

    def _decode_user(self, blob: Optional[str]) -> Optional[User]:
        if blob is None:
            return None
        try:
            return User.from_payload(json.loads(blob))
        except (ValueError, BackendDecodeError) as exc:
            log_event(logger, logging.WARNING, "session.user.undecodable", exc=exc)
            return None


__all__ = ["Session", "SessionStore", "TOKEN_KEY", "USER_KEY"]
