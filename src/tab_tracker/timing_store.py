"""Per-tab accumulated timing, persisted as a full map on every change."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from .models import TimingRecord
from .storage import TIMING_KEY, StorageBackend, persist

logger = logging.getLogger(__name__)


class TimingStore:
    """Holds ``{openedAt, totalActiveTime}`` for every live tab."""

    def __init__(
        self,
        storage: StorageBackend,
        records: Optional[Mapping[int, TimingRecord]] = None,
    ) -> None:
        self._storage = storage
        self._records: dict[int, TimingRecord] = dict(records or {})

    @classmethod
    def load(cls, storage: StorageBackend, snapshot: Mapping[str, Any]) -> "TimingStore":
        records: dict[int, TimingRecord] = {}
        for raw_id, payload in (snapshot.get(TIMING_KEY) or {}).items():
            try:
                records[int(raw_id)] = TimingRecord.from_payload(payload)
            except (KeyError, TypeError, ValueError):
                logger.warning("Skipping malformed timing entry for tab %s", raw_id)
        logger.info("Loaded timing data for %d tabs.", len(records))
        return cls(storage, records)

    def get(self, tab_id: int) -> Optional[TimingRecord]:
        return self._records.get(tab_id)

    def __contains__(self, tab_id: object) -> bool:
        return tab_id in self._records

    def __len__(self) -> int:
        return len(self._records)

    def upsert(self, tab_id: int, record: TimingRecord) -> None:
        self._records[tab_id] = record
        self._save()

    def remove(self, tab_id: int) -> Optional[TimingRecord]:
        record = self._records.pop(tab_id, None)
        self._save()
        return record

    def snapshot_all(self) -> dict[int, TimingRecord]:
        # TimingRecord is mutable; hand out copies so callers cannot edit state.
        return {
            tab_id: TimingRecord(record.opened_at, record.total_active_time)
            for tab_id, record in self._records.items()
        }

    def _save(self) -> None:
        persist(
            self._storage,
            {TIMING_KEY: {str(tab_id): r.to_payload() for tab_id, r in self._records.items()}},
        )
