"""SQLite connection helpers and the flat key/value store used for persisted state."""

from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

from lime_streamcore.backend.common.logging import get_logger
from lime_streamcore.config.settings import get_database_path

log = get_logger(__name__)


def _resolve_path(path: Optional[Path]) -> Path:
    db_path = Path(path or get_database_path())
    db_path.parent.mkdir(parents=True, exist_ok=True)
    return db_path


def connect(path: Optional[Path] = None, *, apply_migrations: bool = True) -> sqlite3.Connection:
    """Create a SQLite connection and ensure the schema exists."""

    db_path = _resolve_path(path)
    connection = sqlite3.connect(str(db_path))
    connection.row_factory = sqlite3.Row
    connection.execute("PRAGMA journal_mode = WAL")
    if apply_migrations:
        migrate(connection)
    return connection


@contextmanager
def connection(path: Optional[Path] = None) -> Iterator[sqlite3.Connection]:
    conn = connect(path)
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def migrate(connection: sqlite3.Connection) -> None:
    """Create required tables if they are missing."""

    connection.executescript(
        """
        CREATE TABLE IF NOT EXISTS settings (
            k TEXT PRIMARY KEY,
            v TEXT NOT NULL
        );
        """
    )


def get_setting(connection: sqlite3.Connection, key: str) -> Optional[str]:
    row = connection.execute("SELECT v FROM settings WHERE k = ?", (key,)).fetchone()
    return None if row is None else str(row["v"])


def set_setting(connection: sqlite3.Connection, key: str, value: str) -> None:
    connection.execute(
        """
        INSERT INTO settings(k, v) VALUES (?, ?)
        ON CONFLICT(k) DO UPDATE SET v = excluded.v
        """,
        (key, value),
    )


def delete_setting(connection: sqlite3.Connection, key: str) -> None:
    connection.execute("DELETE FROM settings WHERE k = ?", (key,))


def list_settings(connection: sqlite3.Connection, prefix: str = "") -> Dict[str, str]:
    rows = connection.execute(
        "SELECT k, v FROM settings WHERE k LIKE ? ORDER BY k",
        (f"{prefix}%",),
    ).fetchall()
    return {str(row["k"]): str(row["v"]) for row in rows}


class KeyValueStore:
    """String key/value persistence on top of the ``settings`` table.

    Every call opens its own short-lived connection, so a store instance can be
    shared freely; concurrent writers resolve as last-writer-wins.
    """

    def __init__(self, path: Optional[Path] = None) -> None:
        self._path = _resolve_path(path)

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str) -> Optional[str]:
        with connection(self._path) as conn:
            return get_setting(conn, key)

    def set(self, key: str, value: str) -> None:
        with connection(self._path) as conn:
            set_setting(conn, key, value)

    def delete(self, key: str) -> None:
        with connection(self._path) as conn:
            delete_setting(conn, key)

    def items(self, prefix: str = "") -> Dict[str, str]:
        with connection(self._path) as conn:
            return list_settings(conn, prefix)

    def get_json(self, key: str, default: Any = None) -> Any:
        raw = self.get(key)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except ValueError:
            log.warning("setting_invalid_json", extra={"key": key})
            return default

    def set_json(self, key: str, value: Any) -> None:
        self.set(key, json.dumps(value, ensure_ascii=False))


__all__ = [
    "KeyValueStore",
    "connect",
    "connection",
    "delete_setting",
    "get_setting",
    "list_settings",
    "migrate",
    "set_setting",
]
