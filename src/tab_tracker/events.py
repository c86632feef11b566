"""Host lifecycle events and timer ticks consumed by the router."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Union

from .models import Tab, TabChange

WINDOW_ID_NONE = -1


@dataclass(frozen=True, slots=True)
class TabCreated:
    tab: Tab


@dataclass(frozen=True, slots=True)
class TabUpdated:
    tab_id: int
    change: TabChange
    tab: Tab


@dataclass(frozen=True, slots=True)
class TabActivated:
    tab_id: int
    window_id: int = 0


@dataclass(frozen=True, slots=True)
class TabRemoved:
    tab_id: int
    window_id: Optional[int] = None
    is_window_closing: bool = False


@dataclass(frozen=True, slots=True)
class WindowFocusChanged:
    """``window_id`` of None or WINDOW_ID_NONE means every window lost focus."""

    window_id: Optional[int]

    @property
    def focus_lost(self) -> bool:
        return self.window_id is None or self.window_id == WINDOW_ID_NONE


@dataclass(frozen=True, slots=True)
class BrowserStarted:
    """Host startup or extension install, with every tab currently open."""

    tabs: tuple[Tab, ...] = field(default_factory=tuple)


@dataclass(frozen=True, slots=True)
class FlushTick:
    pass


@dataclass(frozen=True, slots=True)
class DayCheckTick:
    pass


HostEvent = Union[
    TabCreated,
    TabUpdated,
    TabActivated,
    TabRemoved,
    WindowFocusChanged,
    BrowserStarted,
    FlushTick,
    DayCheckTick,
]
