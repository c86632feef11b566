"""Key-value persistence backends used by the tracker stores."""

from __future__ import annotations

import copy
import json
import logging
import sqlite3
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional, Protocol

from .db import fetch_values, open_database, store_values

logger = logging.getLogger(__name__)

TIMING_KEY = "tabTiming"
INFO_KEY = "tabInfo"
CLOSED_TABS_KEY = "closedTabs"
CLOSED_TABS_DAY_KEY = "closedTabsDay"

ALL_KEYS = (TIMING_KEY, INFO_KEY, CLOSED_TABS_KEY, CLOSED_TABS_DAY_KEY)


@dataclass(frozen=True, slots=True)
class WriteResult:
    ok: bool
    error: Optional[str] = None


class StorageBackend(Protocol):
    """Asynchronous-in-spirit, last-write-wins key-value storage."""

    def get_all(self, keys: Iterable[str]) -> dict[str, Any]: ...

    def set_all(self, values: Mapping[str, Any]) -> WriteResult: ...


class MemoryStorage:
    """Process-local storage, mostly useful for tests and dry runs."""

    def __init__(self, initial: Optional[Mapping[str, Any]] = None) -> None:
        self._data: dict[str, Any] = copy.deepcopy(dict(initial or {}))
        self.writes = 0

    def get_all(self, keys: Iterable[str]) -> dict[str, Any]:
        return {key: copy.deepcopy(self._data[key]) for key in keys if key in self._data}

    def set_all(self, values: Mapping[str, Any]) -> WriteResult:
        # Round-trip through JSON so stored values look like a real backend's.
        try:
            encoded = json.loads(json.dumps(dict(values)))
        except (TypeError, ValueError) as exc:
            return WriteResult(ok=False, error=str(exc))
        self._data.update(encoded)
        self.writes += 1
        return WriteResult(ok=True)

    def raw(self, key: str) -> Any:
        return self._data.get(key)


class SqliteStorage:
    """Storage backed by a single SQLite key-value table."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path)
        self._conn = open_database(self.db_path, check_same_thread=False)
        self._lock = threading.Lock()

    def get_all(self, keys: Iterable[str]) -> dict[str, Any]:
        with self._lock:
            try:
                return fetch_values(self._conn, keys)
            except (sqlite3.Error, ValueError):
                logger.exception("Failed to read %s", self.db_path)
                return {}

    def set_all(self, values: Mapping[str, Any]) -> WriteResult:
        with self._lock:
            try:
                store_values(self._conn, values)
            except (sqlite3.Error, TypeError, ValueError) as exc:
                return WriteResult(ok=False, error=str(exc))
        return WriteResult(ok=True)

    def close(self) -> None:
        with self._lock:
            self._conn.close()


def persist(storage: StorageBackend, values: Mapping[str, Any]) -> bool:
    """Write ``values`` and log, rather than raise, on failure."""
    result = storage.set_all(values)
    if not result.ok:
        logger.warning("Failed to persist %s: %s", ", ".join(values), result.error)
    return result.ok
