"""Domain models for tracked tabs and their timing."""

from __future__ import annotations

import time
from dataclasses import dataclass, field, replace
from typing import Any, Optional

UNTITLED = "Untitled"
UNKNOWN_URL = "Unknown"


def current_time_ms() -> int:
    """Return wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


@dataclass(slots=True)
class Tab:
    """A live tab as reported by the host."""

    id: int
    window_id: int = 0
    active: bool = False
    url: Optional[str] = None
    title: Optional[str] = None
    fav_icon_url: Optional[str] = None
    status: Optional[str] = None


@dataclass(slots=True)
class TabChange:
    """Fields the host reports as changed in an update notification."""

    status: Optional[str] = None
    url: Optional[str] = None
    title: Optional[str] = None
    fav_icon_url: Optional[str] = None

    @property
    def touches_info(self) -> bool:
        return bool(self.title or self.url or self.fav_icon_url)

    @property
    def completed(self) -> bool:
        return self.status == "complete"


@dataclass(slots=True)
class TimingRecord:
    """Accumulated timing for one live tab."""

    opened_at: int
    total_active_time: int = 0

    def with_elapsed(self, elapsed: int) -> "TimingRecord":
        return replace(self, total_active_time=self.total_active_time + elapsed)

    def to_payload(self) -> dict[str, Any]:
        return {"openedAt": self.opened_at, "totalActiveTime": self.total_active_time}

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "TimingRecord":
        return cls(
            opened_at=int(payload["openedAt"]),
            total_active_time=int(payload.get("totalActiveTime", 0)),
        )


@dataclass(frozen=True, slots=True)
class TabInfo:
    """Descriptive metadata last seen for a tab."""

    title: str
    url: str
    fav_icon_url: Optional[str]
    last_updated: int

    def to_payload(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "url": self.url,
            "favIconUrl": self.fav_icon_url,
            "lastUpdated": self.last_updated,
        }

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "TabInfo":
        return cls(
            title=payload.get("title") or UNTITLED,
            url=payload["url"],
            fav_icon_url=payload.get("favIconUrl"),
            last_updated=int(payload.get("lastUpdated", 0)),
        )


@dataclass(frozen=True, slots=True)
class ClosedTabRecord:
    """Final accounting for a tab after it was closed."""

    id: int
    closed_at: int
    opened_at: int
    total_active_time: int
    title: str = UNTITLED
    url: str = UNKNOWN_URL
    fav_icon_url: Optional[str] = None
    total_time_open: int = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "total_time_open", self.closed_at - self.opened_at)

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "closedAt": self.closed_at,
            "openedAt": self.opened_at,
            "totalActiveTime": self.total_active_time,
            "totalTimeOpen": self.total_time_open,
            "title": self.title,
            "url": self.url,
            "favIconUrl": self.fav_icon_url,
        }

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "ClosedTabRecord":
        return cls(
            id=int(payload["id"]),
            closed_at=int(payload["closedAt"]),
            opened_at=int(payload["openedAt"]),
            total_active_time=int(payload["totalActiveTime"]),
            title=payload.get("title") or UNTITLED,
            url=payload.get("url") or UNKNOWN_URL,
            fav_icon_url=payload.get("favIconUrl"),
        )
