"""Durable key-value store backing the mirror cache.

Values are JSON documents in a single ``kv`` table. Prefix invalidation
compares exact leading bytes so ``_`` and ``%`` in folder or file names
never over-match the way ``LIKE`` would.
"""

from __future__ import annotations

import json
import sqlite3
import threading
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Protocol

from platformdirs import user_cache_dir

from ..log import APP_NAME, get_logger

DEFAULT_CACHE_PATH = Path(user_cache_dir(APP_NAME, appauthor=False)) / "cache.db"

logger = get_logger("cache.store")


class KeyValueStore(Protocol):
    """Narrow persistence interface consumed by the mirror and batch writer."""

    def get(self, key: str) -> object | None: ...

    def put(self, key: str, value: object) -> None: ...

    def put_many(self, items: Iterable[tuple[str, object]]) -> None: ...

    def invalidate(self, key: str) -> None: ...

    def invalidate_prefix(self, prefix: str) -> int: ...


class SQLiteStore:
    """``KeyValueStore`` over one SQLite connection in WAL mode."""

    def __init__(self, db_path: Path | str = DEFAULT_CACHE_PATH) -> None:
        self.db_path = str(db_path)
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._init_schema()

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Cursor]:
        with self._lock:
            cursor = self._conn.cursor()
            try:
                yield cursor
                self._conn.commit()
            except Exception:
                self._conn.rollback()
                raise
            finally:
                cursor.close()

    def _init_schema(self) -> None:
        with self._transaction() as cursor:
            if self.db_path != ":memory:":
                cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
                """
            )

    def get(self, key: str) -> object | None:
        with self._transaction() as cursor:
            row = cursor.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        if row is None:
            return None
        try:
            return json.loads(row[0])
        except ValueError:
            logger.warning("Dropping undecodable cache value for %s", key)
            self.invalidate(key)
            return None

    def put(self, key: str, value: object) -> None:
        self.put_many([(key, value)])

    def put_many(self, items: Iterable[tuple[str, object]]) -> None:
        rows = [(key, json.dumps(value)) for key, value in items]
        if not rows:
            return
        with self._transaction() as cursor:
            cursor.executemany(
                "INSERT INTO kv (key, value) VALUES (?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                rows,
            )

    def invalidate(self, key: str) -> None:
        with self._transaction() as cursor:
            cursor.execute("DELETE FROM kv WHERE key = ?", (key,))

    def invalidate_prefix(self, prefix: str) -> int:
        """Delete every key starting with ``prefix``; returns the number removed."""
        if not prefix:
            with self._transaction() as cursor:
                cursor.execute("DELETE FROM kv")
                return cursor.rowcount
        with self._transaction() as cursor:
            cursor.execute(
                "DELETE FROM kv WHERE substr(key, 1, ?) = ?",
                (len(prefix), prefix),
            )
            return cursor.rowcount

    def keys(self, prefix: str = "") -> list[str]:
        with self._transaction() as cursor:
            rows = cursor.execute(
                "SELECT key FROM kv WHERE substr(key, 1, ?) = ? ORDER BY key",
                (len(prefix), prefix),
            ).fetchall()
        return [row[0] for row in rows]

    def close(self) -> None:
        with self._lock:
            self._conn.close()


__all__ = ["DEFAULT_CACHE_PATH", "KeyValueStore", "SQLiteStore"]
