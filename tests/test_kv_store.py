from __future__ import annotations

from pathlib import Path

from minigram_client.core.kv_store import KeyValueStore, connect_sqlite


def test_set_get_delete_roundtrip(tmp_path: Path) -> None:
    store = KeyValueStore(tmp_path / "state.sqlite3")
    assert store.get("missing") is None

    store.set("alpha", "1")
    store.set("alpha", "2")
    assert store.get("alpha") == "2"
    assert store.get_many(["alpha"]) == {"alpha": "2"}

    store.delete("alpha")
    assert store.get("alpha") is None
    store.delete("alpha")


def test_write_applies_sets_and_deletes_together(tmp_path: Path) -> None:
    store = KeyValueStore(tmp_path / "state.sqlite3")
    store.write(set_values={"a": "1", "b": "2", "c": "3"})
    store.write(set_values={"a": "10"}, delete_keys=["b", "c"])

    assert store.get_many(["a", "b", "c"]) == {"a": "10"}


def test_values_survive_a_new_instance(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "state.sqlite3"
    KeyValueStore(path).set("token", "abc")

    assert KeyValueStore(path).get("token") == "abc"


def test_connect_sqlite_durable_pragma(tmp_path: Path) -> None:
    conn = connect_sqlite(tmp_path / "test.db", durable=True)
    try:
        synchronous = conn.execute("PRAGMA synchronous;").fetchone()[0]
    finally:
        conn.close()
    assert synchronous == 2  # 2 = FULL in SQLite
