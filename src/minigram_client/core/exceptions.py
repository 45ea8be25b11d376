from __future__ import annotations

from typing import Optional


class MinigramError(Exception):
    """Base error for the minigram client.

    ``user_message`` is the short, generic notice a rendering shell may show
    for the failed action; the exception message carries the detail.
    """

    def __init__(self, message: str, *, user_message: Optional[str] = None) -> None:
        super().__init__(message)
        self.user_message = user_message


class ConfigError(MinigramError):
    """Client configuration is invalid or unreadable."""
