from __future__ import annotations

import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Iterator, Mapping, Optional

from .exceptions import MinigramError

KV_STORE_SCHEMA_VERSION = 1

SQLITE_PRAGMAS = (
    "PRAGMA journal_mode=WAL;",
    "PRAGMA synchronous=NORMAL;",
    "PRAGMA busy_timeout=5000;",
    "PRAGMA temp_store=MEMORY;",
)

SQLITE_PRAGMAS_DURABLE = (
    "PRAGMA journal_mode=WAL;",
    "PRAGMA synchronous=FULL;",
    "PRAGMA busy_timeout=5000;",
    "PRAGMA temp_store=MEMORY;",
)


class KeyValueStoreError(MinigramError):
    """Local state database could not be read or written."""


def connect_sqlite(path: Path, durable: bool = False) -> sqlite3.Connection:
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(path)
    conn.row_factory = sqlite3.Row
    pragmas = SQLITE_PRAGMAS_DURABLE if durable else SQLITE_PRAGMAS
    for pragma in pragmas:
        conn.execute(pragma)
    return conn


class KeyValueStore:
    """Process-local string key-value store backed by sqlite.

    Every call opens its own connection, so one instance may be shared by
    threads of the same process. ``write`` applies all of its sets and
    deletes in a single transaction.
    """

    def __init__(self, db_path: Path, *, durable: bool = True) -> None:
        self._db_path = db_path
        self._durable = durable
        self._schema_lock = threading.Lock()
        self._schema_ready = False

    def get(self, key: str) -> Optional[str]:
        return self.get_many([key]).get(key)

    def get_many(self, keys: Iterable[str]) -> dict[str, str]:
        wanted = list(dict.fromkeys(keys))
        if not wanted:
            return {}
        placeholders = ", ".join("?" for _ in wanted)
        with self._open() as conn:
            rows = conn.execute(
                f"SELECT key, value FROM kv WHERE key IN ({placeholders})",
                wanted,
            ).fetchall()
        return {str(row["key"]): str(row["value"]) for row in rows}

    def set(self, key: str, value: str) -> None:
        self.write(set_values={key: value})

    def delete(self, key: str) -> None:
        self.write(delete_keys=[key])

    def write(
        self,
        *,
        set_values: Optional[Mapping[str, str]] = None,
        delete_keys: Iterable[str] = (),
    ) -> None:
        set_values = dict(set_values or {})
        delete_list = [key for key in delete_keys if key not in set_values]
        if not set_values and not delete_list:
            return
        with self._open() as conn:
            with conn:
                for key, value in set_values.items():
                    conn.execute(
                        """
                        INSERT INTO kv(key, value) VALUES (?, ?)
                        ON CONFLICT(key) DO UPDATE SET value = excluded.value
                        """,
                        (key, value),
                    )
                for key in delete_list:
                    conn.execute("DELETE FROM kv WHERE key = ?", (key,))

    @contextmanager
    def _open(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = connect_sqlite(self._db_path, durable=self._durable)
        except (OSError, sqlite3.Error) as exc:
            raise KeyValueStoreError(
                f"Failed to open state database {self._db_path}: {exc}"
            ) from exc
        try:
            self._ensure_schema(conn)
            yield conn
        except sqlite3.Error as exc:
            raise KeyValueStoreError(
                f"State database error in {self._db_path}: {exc}"
            ) from exc
        finally:
            conn.close()

    def _ensure_schema(self, conn: sqlite3.Connection) -> None:
        with self._schema_lock:
            if self._schema_ready:
                return
            with conn:
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS schema_info (
                        version INTEGER NOT NULL
                    )
                    """
                )
                row = conn.execute(
                    "SELECT version FROM schema_info ORDER BY version DESC LIMIT 1"
                ).fetchone()
                if row is None:
                    conn.execute(
                        "INSERT INTO schema_info(version) VALUES (?)",
                        (KV_STORE_SCHEMA_VERSION,),
                    )
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS kv (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL
                    )
                    """
                )
            self._schema_ready = True


__all__ = ["KeyValueStore", "KeyValueStoreError", "connect_sqlite"]
