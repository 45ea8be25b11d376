from __future__ import annotations

import logging

from .api import BackendClient
from .core.exceptions import MinigramError
from .core.logging_utils import log_event
from .models import AuthResult, User
from .session import SessionStore

logger = logging.getLogger(__name__)


class AuthInputError(MinigramError):
    """Login input was rejected before reaching the backend."""


class NotAuthorizedError(MinigramError):
    """An operation needs a signed-in session."""


class AuthFlow:
    """Drives phone and bot-code login and stores the result in the session."""

    def __init__(self, client: BackendClient, session: SessionStore) -> None:
        self._client = client
        self._session = session

    async def request_code(self, phone: str) -> bool:
        phone = _require(phone, "Phone required")
        sent = await self._client.request_auth_code(phone)
        log_event(logger, logging.INFO, "auth.code.requested", sent=sent)
        return sent

    async def verify(self, phone: str, code: str, name: str) -> AuthResult:
        phone = _require(phone, "Phone required")
        code = _require(code, "Code required")
        auth = await self._client.verify_code(phone, code, name.strip())
        self._session.update(auth)
        log_event(logger, logging.INFO, "auth.phone.verified", user_id=auth.user.id)
        return auth

    async def authorize_bot(self, code: str, name: str) -> AuthResult:
        code = _require(code, "Enter the bot code first.")
        auth = await self._client.authorize_bot(code, name.strip())
        self._session.update(auth)
        log_event(logger, logging.INFO, "auth.bot.authorized", user_id=auth.user.id)
        return auth

    async def refresh_profile(self) -> User:
        token = self._session.current_token()
        if token is None:
            raise NotAuthorizedError(
                "no session token", user_message="Authorize first."
            )
        user = await self._client.fetch_me()
        if not self._session.replace_user(token, user):
            log_event(logger, logging.INFO, "auth.profile.stale")
            raise NotAuthorizedError(
                "session changed while the profile was loading",
                user_message="Authorize first.",
            )
        return user

    def logout(self) -> None:
        self._session.clear()


def _require(value: str, user_message: str) -> str:
    cleaned = value.strip()
    if not cleaned:
        raise AuthInputError(user_message, user_message=user_message)
    return cleaned


__all__ = ["AuthFlow", "AuthInputError", "NotAuthorizedError"]
