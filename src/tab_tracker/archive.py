"""Bounded, day-scoped history of closed tabs."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Mapping, Optional

from .info_store import TabInfoStore
from .models import UNKNOWN_URL, UNTITLED, ClosedTabRecord
from .storage import CLOSED_TABS_DAY_KEY, CLOSED_TABS_KEY, StorageBackend, persist
from .timing_store import TimingStore
from .tracker import ActiveTimeTracker

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 100


def day_marker(now_ms: int) -> str:
    """Local calendar day for an epoch-millisecond timestamp."""
    return datetime.fromtimestamp(now_ms / 1000).date().isoformat()


class ClosedArchive:
    """Newest-first log of closed tabs, cleared when the calendar day changes."""

    def __init__(
        self,
        storage: StorageBackend,
        timing: TimingStore,
        infos: TabInfoStore,
        tracker: ActiveTimeTracker,
        *,
        day: str,
        records: Optional[list[ClosedTabRecord]] = None,
        limit: int = DEFAULT_LIMIT,
    ) -> None:
        self._storage = storage
        self._timing = timing
        self._infos = infos
        self._tracker = tracker
        self._day = day
        self._limit = limit
        self._records: list[ClosedTabRecord] = list(records or [])[:limit]

    @classmethod
    def load(
        cls,
        storage: StorageBackend,
        snapshot: Mapping[str, Any],
        timing: TimingStore,
        infos: TabInfoStore,
        tracker: ActiveTimeTracker,
        *,
        now: int,
        limit: int = DEFAULT_LIMIT,
    ) -> "ClosedArchive":
        today = day_marker(now)
        records: list[ClosedTabRecord] = []
        if snapshot.get(CLOSED_TABS_DAY_KEY) == today:
            for payload in snapshot.get(CLOSED_TABS_KEY) or []:
                try:
                    records.append(ClosedTabRecord.from_payload(payload))
                except (KeyError, TypeError, ValueError):
                    logger.warning("Skipping malformed closed tab entry: %r", payload)
            logger.info("Loaded %d closed tabs for %s.", len(records), today)
        return cls(
            storage, timing, infos, tracker, day=today, records=records, limit=limit
        )

    @property
    def day(self) -> str:
        return self._day

    def __len__(self) -> int:
        return len(self._records)

    def list(self) -> tuple[ClosedTabRecord, ...]:
        return tuple(self._records)

    def archive(self, tab_id: int, now: int) -> Optional[ClosedTabRecord]:
        """Record the final accounting for a closing tab."""
        if self._timing.get(tab_id) is None:
            logger.debug("Tab %s closed without timing data; nothing to archive.", tab_id)
            return None

        if self._tracker.is_active(tab_id):
            self._tracker.stop_tracking(now)
        timing = self._timing.get(tab_id)
        if timing is None:
            return None

        self.rollover_if_new_day(now)
        info = self._infos.get(tab_id)
        record = ClosedTabRecord(
            id=tab_id,
            closed_at=now,
            opened_at=timing.opened_at,
            total_active_time=timing.total_active_time,
            title=info.title if info else UNTITLED,
            url=info.url if info else UNKNOWN_URL,
            fav_icon_url=info.fav_icon_url if info else None,
        )
        self._records.insert(0, record)
        del self._records[self._limit :]
        self._save()
        return record

    def rollover_if_new_day(self, now: int) -> bool:
        today = day_marker(now)
        if today == self._day:
            return False
        logger.info("New day detected (%s), clearing %d closed tabs.", today, len(self._records))
        self._day = today
        self._records = []
        self._save()
        return True

    def _save(self) -> None:
        persist(
            self._storage,
            {
                CLOSED_TABS_KEY: [record.to_payload() for record in self._records],
                CLOSED_TABS_DAY_KEY: self._day,
            },
        )
