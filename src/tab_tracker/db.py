"""SQLite key-value layer for persisted tracker snapshots."""

from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, Iterator, Mapping


DATETIME_FMT = "%Y-%m-%d %H:%M:%S.%f"


def open_database(path: Path, *, check_same_thread: bool = True) -> sqlite3.Connection:
    """Open (and initialize) the SQLite database."""
    conn = sqlite3.connect(
        path,
        isolation_level=None,
        check_same_thread=check_same_thread,
    )
    conn.row_factory = sqlite3.Row
    initialize_schema(conn)
    return conn


@contextmanager
def database_connection(
    path: Path, *, check_same_thread: bool = True
) -> Iterator[sqlite3.Connection]:
    conn = open_database(path, check_same_thread=check_same_thread)
    try:
        yield conn
    finally:
        conn.close()


def initialize_schema(conn: sqlite3.Connection) -> None:
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS kv_store (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );
        """
    )


def fetch_values(conn: sqlite3.Connection, keys: Iterable[str]) -> dict[str, Any]:
    """Return decoded values for the requested keys that exist."""
    wanted = list(keys)
    if not wanted:
        return {}
    placeholders = ", ".join("?" for _ in wanted)
    rows = conn.execute(
        f"SELECT key, value FROM kv_store WHERE key IN ({placeholders})",
        wanted,
    )
    return {row["key"]: json.loads(row["value"]) for row in rows}


def store_values(conn: sqlite3.Connection, values: Mapping[str, Any]) -> None:
    """Replace the stored value of every key in ``values``."""
    stamp = datetime.now().strftime(DATETIME_FMT)
    with _transaction(conn):
        conn.executemany(
            """
            INSERT INTO kv_store (key, value, updated_at)
            VALUES (?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET
                value = excluded.value,
                updated_at = excluded.updated_at
            """,
            [(key, json.dumps(value), stamp) for key, value in values.items()],
        )


def fetch_updated_at(conn: sqlite3.Connection, key: str) -> datetime | None:
    row = conn.execute(
        "SELECT updated_at FROM kv_store WHERE key = ?", (key,)
    ).fetchone()
    if row is None:
        return None
    return datetime.strptime(row["updated_at"], DATETIME_FMT)


@contextmanager
def _transaction(conn: sqlite3.Connection) -> Iterator[None]:
    conn.execute("BEGIN")
    try:
        yield
    except BaseException:
        conn.execute("ROLLBACK")
        raise
    else:
        conn.execute("COMMIT")
