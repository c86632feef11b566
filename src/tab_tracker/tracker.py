"""Active-tab time accounting."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from .models import TimingRecord
from .timing_store import TimingStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TimingView:
    """Read-only timing for one tab, including any in-progress interval."""

    opened_at: int
    total_active_time: int
    current_active_time: Optional[int] = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "openedAt": self.opened_at,
            "totalActiveTime": self.total_active_time,
        }
        if self.current_active_time is not None:
            payload["currentActiveTime"] = self.current_active_time
        return payload


class ActiveTimeTracker:
    """Tracks which single tab is active and since when.

    Activation notifications are points in time, so durations are rebuilt by
    bracketing consecutive activations: every change of the active tab closes
    the open interval into the previous tab's total before opening a new one.
    """

    def __init__(self, timing: TimingStore) -> None:
        self._timing = timing
        self._active_id: Optional[int] = None
        self._active_since: Optional[int] = None

    @property
    def active_id(self) -> Optional[int]:
        return self._active_id

    @property
    def active_since(self) -> Optional[int]:
        return self._active_since

    def is_active(self, tab_id: int) -> bool:
        return self._active_id is not None and self._active_id == tab_id

    def start_tracking(self, tab_id: int, now: int) -> None:
        self._close_interval(now)
        # Re-activating the active tab re-bases the interval start; the time
        # up to ``now`` was folded in above so nothing is counted twice.
        self._active_id = tab_id
        self._active_since = now
        if self._timing.get(tab_id) is None:
            self._timing.upsert(tab_id, TimingRecord(opened_at=now))
        logger.debug("Tracking tab %s since %s", tab_id, now)

    def stop_tracking(self, now: int) -> None:
        self._close_interval(now)
        if self._active_id is not None:
            logger.debug("Stopped tracking tab %s", self._active_id)
        self._active_id = None
        self._active_since = None

    def flush(self, now: int) -> bool:
        """Fold the in-progress interval into storage and restart it at ``now``."""
        if self._active_id is None or self._active_since is None:
            return False
        self._close_interval(now)
        self._active_since = now
        return True

    def current_snapshot(self, now: int) -> dict[int, TimingView]:
        views: dict[int, TimingView] = {}
        for tab_id, record in self._timing.snapshot_all().items():
            current: Optional[int] = None
            if self.is_active(tab_id) and self._active_since is not None:
                current = max(now - self._active_since, 0)
            views[tab_id] = TimingView(
                opened_at=record.opened_at,
                total_active_time=record.total_active_time,
                current_active_time=current,
            )
        return views

    def _close_interval(self, now: int) -> None:
        if self._active_id is None or self._active_since is None:
            return
        elapsed = max(now - self._active_since, 0)
        record = self._timing.get(self._active_id) or TimingRecord(opened_at=now)
        self._timing.upsert(self._active_id, record.with_elapsed(elapsed))
