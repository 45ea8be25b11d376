from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

_REDACTED_FIELDS = frozenset({"token", "code", "authorization", "password"})


@dataclass(frozen=True)
class LogConfig:
    path: Path
    max_bytes: int
    backup_count: int


def setup_rotating_logger(name: str, log_config: LogConfig) -> logging.Logger:
    logger = logging.getLogger(name)
    target = str(log_config.path.resolve())
    for handler in logger.handlers:
        if (
            isinstance(handler, RotatingFileHandler)
            and getattr(handler, "baseFilename", None) == target
        ):
            return logger
    log_config.path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_config.path,
        maxBytes=log_config.max_bytes,
        backupCount=log_config.backup_count,
        encoding="utf-8",
    )
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
    )
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    logger.propagate = False
    return logger


def _coerce(value: Any) -> Any:
    if isinstance(value, BaseException):
        return {"type": type(value).__name__, "message": str(value)}
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    if isinstance(value, (list, tuple)):
        return [_coerce(item) for item in value]
    if isinstance(value, dict):
        return {str(k): _coerce(v) for k, v in value.items()}
    return str(value)


def log_event(
    logger: logging.Logger, level: int, event: str, **fields: Any
) -> None:
    if not logger.isEnabledFor(level):
        return
    payload: dict[str, Any] = {"event": event}
    for key, value in fields.items():
        if key.lower() in _REDACTED_FIELDS and value is not None:
            payload[key] = "<redacted>"
            continue
        payload[key] = _coerce(value)
    logger.log(level, json.dumps(payload, sort_keys=False))


__all__ = ["LogConfig", "log_event", "setup_rotating_logger"]
