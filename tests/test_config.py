from __future__ import annotations

from pathlib import Path

import pytest

from minigram_client.config import (
    BASE_URL_KEY,
    DEFAULT_BASE_URL,
    ConfigResolver,
    collect_env_overrides,
    load_client_config,
    parse_base_url,
)
from minigram_client.core.exceptions import ConfigError


def test_base_url_defaults_when_nothing_is_set(kv_store) -> None:
    resolver = ConfigResolver(kv_store, env={})

    assert resolver.base_url() == DEFAULT_BASE_URL
    assert resolver.describe()["base_url"].source == "default"


def test_persisted_base_url_beats_default(kv_store) -> None:
    resolver = ConfigResolver(kv_store, env={})
    resolver.set_base_url("https://stored.example.test/api")

    assert resolver.base_url() == "https://stored.example.test/api"
    assert resolver.describe()["base_url"].source == "stored"


def test_env_base_url_beats_persisted(kv_store) -> None:
    resolver = ConfigResolver(
        kv_store, env={"MINI_BACKEND_URL": "https://env.example.test/v"}
    )
    resolver.set_base_url("https://stored.example.test/api")

    assert resolver.base_url() == "https://env.example.test/v"


@pytest.mark.parametrize("raw", ["", "   ", "not a url", "ftp://files.test/x", "http://"])
def test_unparseable_env_override_is_skipped(kv_store, raw: str) -> None:
    resolver = ConfigResolver(kv_store, env={"MINI_BACKEND_URL": raw})
    assert resolver.base_url() == DEFAULT_BASE_URL

    resolver.set_base_url("https://stored.example.test/api")
    assert resolver.base_url() == "https://stored.example.test/api"


def test_unparseable_stored_override_falls_back_to_default(kv_store) -> None:
    kv_store.set(BASE_URL_KEY, "::garbage::")
    resolver = ConfigResolver(kv_store, env={})

    assert resolver.base_url() == DEFAULT_BASE_URL


def test_set_base_url_rejects_invalid_url(kv_store) -> None:
    resolver = ConfigResolver(kv_store, env={})
    with pytest.raises(ConfigError):
        resolver.set_base_url("nope")
    assert kv_store.get(BASE_URL_KEY) is None


def test_clear_base_url_restores_default(kv_store) -> None:
    resolver = ConfigResolver(kv_store, env={})
    resolver.set_base_url("https://stored.example.test/api")
    resolver.clear_base_url()

    assert resolver.base_url() == DEFAULT_BASE_URL


def test_enabled_defaults_to_false(kv_store) -> None:
    assert ConfigResolver(kv_store, env={}).is_enabled() is False


def test_enabled_uses_persisted_flag(kv_store) -> None:
    resolver = ConfigResolver(kv_store, env={})
    resolver.set_enabled(True)
    assert resolver.is_enabled() is True
    resolver.set_enabled(False)
    assert resolver.is_enabled() is False


@pytest.mark.parametrize(
    ("raw", "expected"), [("0", False), ("1", True), ("", True), ("off", True)]
)
def test_enabled_env_override(kv_store, raw: str, expected: bool) -> None:
    resolver = ConfigResolver(kv_store, env={"MINI_BACKEND_MODE": raw})
    resolver.set_enabled(not expected)

    assert resolver.is_enabled() is expected


def test_parse_base_url_requires_host_and_http_scheme() -> None:
    assert parse_base_url("https://api.example.test/base") == "https://api.example.test/base"
    assert parse_base_url("/relative/path") is None
    assert parse_base_url(None) is None


def test_collect_env_overrides_lists_present_keys() -> None:
    assert collect_env_overrides({"MINI_BACKEND_MODE": "1", "OTHER": "x"}) == [
        "MINI_BACKEND_MODE"
    ]


def test_load_client_config_defaults(tmp_path: Path) -> None:
    config = load_client_config(tmp_path)

    assert config.root == tmp_path
    assert config.state_path == tmp_path / "state.sqlite3"
    assert config.timeout_seconds == 30.0
    assert config.log.path == tmp_path / "logs" / "minigram.log"


def test_load_client_config_reads_yaml(tmp_path: Path) -> None:
    (tmp_path / "minigram.yml").write_text(
        "state_file: data/session.db\n"
        "timeout_seconds: null\n"
        "log:\n"
        "  path: /var/tmp/minigram.log\n"
        "  max_bytes: 2048\n"
        "  backup_count: 1\n",
        encoding="utf-8",
    )

    config = load_client_config(tmp_path)

    assert config.state_path == tmp_path / "data" / "session.db"
    assert config.timeout_seconds is None
    assert config.log.path == Path("/var/tmp/minigram.log")
    assert config.log.max_bytes == 2048
    assert config.log.backup_count == 1


def test_load_client_config_rejects_invalid_yaml(tmp_path: Path) -> None:
    (tmp_path / "minigram.yml").write_text("log: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_client_config(tmp_path)


def test_load_client_config_rejects_bad_types(tmp_path: Path) -> None:
    (tmp_path / "minigram.yml").write_text("timeout_seconds: fast\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_client_config(tmp_path)
