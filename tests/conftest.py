"""Test harness configuration.

This repo uses a `src/` layout. In some developer environments an older
installed `minigram_client` package can shadow the local sources.

Ensure tests always import the in-repo code.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

DEFAULT_NON_INTEGRATION_TIMEOUT_SECONDS = 60


def pytest_configure() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    src_path = str(repo_root / "src")
    if sys.path[:1] != [src_path] and src_path not in sys.path:
        sys.path.insert(0, src_path)


def pytest_collection_modifyitems(
    session: pytest.Session, config: pytest.Config, items: list[pytest.Item]
) -> None:
    """
    Apply a default per-test timeout to non-integration tests.

    This relies on `pytest-timeout` when installed; if it isn't installed, the
    marker is inert but still documents the intent.
    """
    _ = session, config
    for item in items:
        if item.get_closest_marker("integration") is not None:
            continue
        item.add_marker(pytest.mark.timeout(DEFAULT_NON_INTEGRATION_TIMEOUT_SECONDS))


@pytest.fixture()
def kv_store(tmp_path: Path):
    from minigram_client.core.kv_store import KeyValueStore

    return KeyValueStore(tmp_path / "state.sqlite3")


@pytest.fixture()
def session_store(kv_store):
    from minigram_client.session import SessionStore

    return SessionStore(kv_store)


@pytest.fixture()
def user_payload() -> dict:
    return {
        "id": "user-1",
        "phone": "+15550001111",
        "display_name": "Alice",
        "avatar_media_id": None,
    }
