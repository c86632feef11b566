"""Shared fixtures for tab tracker tests."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

import pytest

from tab_tracker.config import TrackerSettings
from tab_tracker.host import HostError
from tab_tracker.models import Tab
from tab_tracker.router import EventRouter
from tab_tracker.storage import MemoryStorage

# 09:00 local time, so a few hours of offsets stay on the same calendar day.
BASE_MS = int(datetime(2025, 3, 10, 9, 0, 0).timestamp() * 1000)
NEXT_DAY_MS = int(datetime(2025, 3, 11, 0, 0, 1).timestamp() * 1000)


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, start: int = BASE_MS) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def set(self, offset_ms: int) -> None:
        self.now = BASE_MS + offset_ms

    def advance(self, delta_ms: int) -> None:
        self.now += delta_ms


class FakeHost:
    """Host double that records calls and rejects internal pages."""

    def __init__(self) -> None:
        self.active_tabs: dict[int, Tab] = {}
        self.created: list[Tab] = []
        self.query_error: Optional[str] = None
        self._next_id = 500

    def query_active_tab(self, window_id: int) -> Optional[Tab]:
        if self.query_error:
            raise HostError(self.query_error)
        return self.active_tabs.get(window_id)

    def create_tab(self, url: str, *, active: bool = False) -> Tab:
        if url.startswith("chrome://"):
            raise HostError("Cannot access a chrome:// URL")
        tab = Tab(id=self._next_id, url=url, active=active)
        self._next_id += 1
        self.created.append(tab)
        return tab


def make_tab(
    tab_id: int,
    *,
    url: Optional[str] = None,
    title: Optional[str] = None,
    active: bool = False,
    window_id: int = 1,
    status: Optional[str] = None,
) -> Tab:
    return Tab(
        id=tab_id,
        window_id=window_id,
        active=active,
        url=url if url is not None else f"https://example.com/{tab_id}",
        title=title if title is not None else f"Page {tab_id}",
        fav_icon_url=f"https://example.com/{tab_id}/favicon.ico",
        status=status,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def host() -> FakeHost:
    return FakeHost()


@pytest.fixture
def router(storage: MemoryStorage, host: FakeHost, clock: FakeClock) -> EventRouter:
    return EventRouter.from_storage(storage, host, TrackerSettings(), clock)
