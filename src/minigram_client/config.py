from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import httpx
import yaml
from dotenv import load_dotenv

from .core.exceptions import ConfigError
from .core.kv_store import KeyValueStore
from .core.logging_utils import LogConfig

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://62.60.148.13:8080"

BASE_URL_ENV = "MINI_BACKEND_URL"
ENABLED_ENV = "MINI_BACKEND_MODE"
HOME_ENV = "MINIGRAM_HOME"
BACKEND_ENV_OVERRIDES = (BASE_URL_ENV, ENABLED_ENV)

BASE_URL_KEY = "mini_backend_base_url"
ENABLED_KEY = "mini_backend_enabled"

CONFIG_FILENAME = "minigram.yml"
DEFAULT_HOME_DIRNAME = ".minigram"
DEFAULT_STATE_FILE = "state.sqlite3"
DEFAULT_LOG_FILE = "logs/minigram.log"
DEFAULT_LOG_MAX_BYTES = 1_000_000
DEFAULT_LOG_BACKUP_COUNT = 3
DEFAULT_TIMEOUT_SECONDS = 30.0


def parse_base_url(raw: Optional[str]) -> Optional[str]:
    """Return ``raw`` normalized as an absolute http(s) URL, or ``None``."""
    if raw is None:
        return None
    value = raw.strip()
    if not value:
        return None
    try:
        url = httpx.URL(value)
    except (httpx.InvalidURL, TypeError, ValueError):
        return None
    if url.scheme not in ("http", "https") or not url.host:
        return None
    return str(url)


@dataclass(frozen=True)
class ResolvedSetting:
    value: Any
    source: str


class ConfigResolver:
    """Resolves backend endpoint and mode: env, then persisted, then default."""

    def __init__(
        self,
        store: KeyValueStore,
        *,
        env: Optional[Mapping[str, str]] = None,
        default_base_url: str = DEFAULT_BASE_URL,
    ) -> None:
        self._store = store
        self._env = env if env is not None else os.environ
        self._default_base_url = default_base_url

    def base_url(self) -> str:
        return str(self._resolve_base_url().value)

    def is_enabled(self) -> bool:
        return bool(self._resolve_enabled().value)

    def set_base_url(self, url: str) -> None:
        parsed = parse_base_url(url)
        if parsed is None:
            raise ConfigError(f"Not an absolute http(s) URL: {url!r}")
        self._store.set(BASE_URL_KEY, parsed)

    def clear_base_url(self) -> None:
        self._store.delete(BASE_URL_KEY)

    def set_enabled(self, enabled: bool) -> None:
        self._store.set(ENABLED_KEY, "1" if enabled else "0")

    def describe(self) -> Dict[str, ResolvedSetting]:
        return {
            "base_url": self._resolve_base_url(),
            "enabled": self._resolve_enabled(),
        }

    def _resolve_base_url(self) -> ResolvedSetting:
        from_env = parse_base_url(self._env.get(BASE_URL_ENV))
        if from_env is not None:
            return ResolvedSetting(from_env, "env")
        stored = parse_base_url(self._store.get(BASE_URL_KEY))
        if stored is not None:
            return ResolvedSetting(stored, "stored")
        return ResolvedSetting(self._default_base_url, "default")

    def _resolve_enabled(self) -> ResolvedSetting:
        raw_env = self._env.get(ENABLED_ENV)
        if raw_env is not None:
            return ResolvedSetting(raw_env != "0", "env")
        stored = self._store.get(ENABLED_KEY)
        if stored is not None:
            return ResolvedSetting(stored == "1", "stored")
        return ResolvedSetting(False, "default")


@dataclass(frozen=True)
class ClientConfig:
    root: Path
    state_path: Path
    timeout_seconds: Optional[float]
    log: LogConfig


def resolve_home(env: Optional[Mapping[str, str]] = None) -> Path:
    source = env if env is not None else os.environ
    raw = (source.get(HOME_ENV) or "").strip()
    if raw:
        return Path(raw).expanduser()
    return Path.home() / DEFAULT_HOME_DIRNAME


def load_dotenv_for_root(root: Path) -> None:
    """Best-effort load of ``<root>/.env`` into the process environment."""
    try:
        candidate = root.resolve() / ".env"
        if candidate.exists():
            load_dotenv(dotenv_path=candidate, override=False)
    except OSError as exc:
        logger.debug("Failed to load .env file: %s", exc)


def _load_yaml_dict(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Failed to read config file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config file must be a mapping: {path}")
    return data


def _resolve_path(root: Path, value: Any, *, key: str) -> Path:
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"{key} must be a non-empty string path")
    path = Path(value.strip()).expanduser()
    return path if path.is_absolute() else root / path


def _parse_positive_int(value: Any, *, default: int, key: str) -> int:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigError(f"{key} must be a positive integer")
    return value


def _parse_timeout(value: Any) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ConfigError("timeout_seconds must be a positive number or null")
    return float(value)


def load_client_config(
    root: Optional[Path] = None, env: Optional[Mapping[str, str]] = None
) -> ClientConfig:
    root = (root or resolve_home(env)).expanduser()
    load_dotenv_for_root(root)
    raw = _load_yaml_dict(root / CONFIG_FILENAME)

    log_raw = raw.get("log")
    if log_raw is not None and not isinstance(log_raw, dict):
        raise ConfigError("log must be a mapping")
    log_cfg: Dict[str, Any] = log_raw or {}
    log = LogConfig(
        path=_resolve_path(root, log_cfg.get("path", DEFAULT_LOG_FILE), key="log.path"),
        max_bytes=_parse_positive_int(
            log_cfg.get("max_bytes"), default=DEFAULT_LOG_MAX_BYTES, key="log.max_bytes"
        ),
        backup_count=_parse_positive_int(
            log_cfg.get("backup_count"),
            default=DEFAULT_LOG_BACKUP_COUNT,
            key="log.backup_count",
        ),
    )
    return ClientConfig(
        root=root,
        state_path=_resolve_path(
            root, raw.get("state_file", DEFAULT_STATE_FILE), key="state_file"
        ),
        timeout_seconds=_parse_timeout(
            raw.get("timeout_seconds", DEFAULT_TIMEOUT_SECONDS)
        ),
        log=log,
    )


def collect_env_overrides(env: Optional[Mapping[str, str]] = None) -> list[str]:
    source = env if env is not None else os.environ
    return [key for key in BACKEND_ENV_OVERRIDES if source.get(key) is not None]


__all__ = [
    "BASE_URL_ENV",
    "ClientConfig",
    "ConfigError",
    "ConfigResolver",
    "DEFAULT_BASE_URL",
    "ENABLED_ENV",
    "collect_env_overrides",
    "load_client_config",
    "parse_base_url",
    "resolve_home",
]
