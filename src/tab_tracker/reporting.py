"""Simple reporting utilities for CLI output."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, Optional

from .archive import day_marker
from .db import database_connection, fetch_updated_at, fetch_values
from .models import ClosedTabRecord, TimingRecord
from .storage import CLOSED_TABS_DAY_KEY, CLOSED_TABS_KEY, INFO_KEY, TIMING_KEY

logger = logging.getLogger(__name__)


class SummaryPrinter:
    """Render human-readable summaries of the persisted snapshot."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path)
        self.last_saved: Optional[datetime] = None

    def _snapshot(self) -> dict[str, Any]:
        with database_connection(self.db_path) as conn:
            snapshot = fetch_values(
                conn, (TIMING_KEY, INFO_KEY, CLOSED_TABS_KEY, CLOSED_TABS_DAY_KEY)
            )
            self.last_saved = fetch_updated_at(conn, TIMING_KEY)
        return snapshot

    def print_summary(self, now: int) -> None:
        snapshot = self._snapshot()
        timing = open_tab_timing(snapshot)
        infos = snapshot.get(INFO_KEY) or {}
        closed = todays_closed_tabs(snapshot, now)

        if not timing and not closed:
            print("No tab activity recorded yet.")
            return

        open_active = sum(record.total_active_time for record in timing.values())
        closed_active = total_active_ms(closed)

        print(f"Summary for {day_marker(now)}")
        print("-" * 40)
        print(f"Open tabs:          {len(timing)}")
        print(f"Closed today:       {len(closed)}")
        print(f"Active (open tabs): {format_duration(open_active / 1000)}")
        print(f"Active (closed):    {format_duration(closed_active / 1000)}")
        if self.last_saved:
            print(f"Last saved:         {self.last_saved:%H:%M:%S}")

        if timing:
            print()
            print("Open tabs by active time:")
            for tab_id, record in top_tabs(timing):
                info = infos.get(str(tab_id))
                title = (info.get("title") if isinstance(info, dict) else None) or "Untitled"
                print(
                    f"  {tab_id:<8} {title[:45]:<45} "
                    f"{format_duration(record.total_active_time / 1000)}"
                )

    def print_closed_tabs(self, now: int, limit: Optional[int] = None) -> None:
        records = todays_closed_tabs(self._snapshot(), now)
        if not records:
            print("No tabs closed today.")
            return
        for record in records[:limit]:
            print(
                f"  {record.title[:40]:<40} "
                f"active {format_duration(record.total_active_time / 1000)}  "
                f"open {format_duration(record.total_time_open / 1000)}  "
                f"{record.url}"
            )


def todays_closed_tabs(snapshot: dict[str, Any], now: int) -> list[ClosedTabRecord]:
    if snapshot.get(CLOSED_TABS_DAY_KEY) != day_marker(now):
        return []
    records: list[ClosedTabRecord] = []
    for payload in snapshot.get(CLOSED_TABS_KEY) or []:
        try:
            records.append(ClosedTabRecord.from_payload(payload))
        except (KeyError, TypeError, ValueError):
            logger.warning("Skipping malformed closed tab entry: %r", payload)
    return records


def open_tab_timing(snapshot: dict[str, Any]) -> dict[int, TimingRecord]:
    timing: dict[int, TimingRecord] = {}
    for raw_id, payload in (snapshot.get(TIMING_KEY) or {}).items():
        try:
            timing[int(raw_id)] = TimingRecord.from_payload(payload)
        except (KeyError, TypeError, ValueError):
            logger.warning("Skipping malformed timing entry for tab %s", raw_id)
    return timing


def top_tabs(timing: dict[int, TimingRecord]) -> list[tuple[int, TimingRecord]]:
    return sorted(timing.items(), key=lambda item: item[1].total_active_time, reverse=True)


def total_active_ms(records: Iterable[ClosedTabRecord]) -> int:
    return sum(record.total_active_time for record in records)


def format_duration(seconds: float) -> str:
    total_seconds = int(round(seconds))
    hours, remainder = divmod(total_seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"
