import re
from datetime import datetime, timezone
from typing import Optional

_ISO8601_RE = re.compile(
    r"^(?P<date>\d{4}-\d{2}-\d{2})[Tt](?P<time>\d{2}:\d{2}:\d{2})"
    r"(?:\.(?P<fraction>\d+))?"
    r"(?P<offset>[Zz]|[+-]\d{2}:?\d{2})$"
)


def parse_iso8601(value: str) -> Optional[datetime]:
    """Parse an RFC 3339 timestamp into an aware datetime.

    A timezone designator is mandatory. Fractional seconds of any precision
    are accepted and truncated to microseconds. Returns ``None`` when the
    value does not match.
    """
    match = _ISO8601_RE.match(value.strip())
    if match is None:
        return None
    fraction = (match.group("fraction") or "").ljust(6, "0")[:6]
    offset = match.group("offset")
    if offset in ("Z", "z"):
        offset = "+00:00"
    elif ":" not in offset:
        offset = f"{offset[:3]}:{offset[3:]}"
    text = f"{match.group('date')}T{match.group('time')}.{fraction}{offset}"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def format_iso8601(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    if value.microsecond:
        return value.strftime("%Y-%m-%dT%H:%M:%S.%fZ")
    return value.strftime("%Y-%m-%dT%H:%M:%SZ")


__all__ = ["parse_iso8601", "format_iso8601"]
