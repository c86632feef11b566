"""Configuration models and helpers for the tab tracker."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

DEFAULT_IGNORED_PREFIXES: tuple[str, ...] = (
    "chrome://",
    "chrome-extension://",
    "edge://",
    "about:",
    "devtools://",
)


@dataclass(slots=True)
class TrackerSettings:
    """Runtime configuration for the tracking service."""

    flush_interval: timedelta = timedelta(seconds=30)
    day_check_interval: timedelta = timedelta(minutes=1)
    closed_tab_limit: int = 100
    ignored_url_prefixes: tuple[str, ...] = DEFAULT_IGNORED_PREFIXES

    @classmethod
    def from_intervals(
        cls,
        flush_seconds: float | None = None,
        day_check_seconds: float | None = None,
        closed_tab_limit: int | None = None,
    ) -> "TrackerSettings":
        flush = flush_seconds if flush_seconds is not None else 30.0
        day_check = day_check_seconds if day_check_seconds is not None else 60.0
        return cls(
            flush_interval=timedelta(seconds=flush),
            day_check_interval=timedelta(seconds=day_check),
            closed_tab_limit=closed_tab_limit if closed_tab_limit is not None else 100,
        )
