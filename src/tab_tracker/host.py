"""Host binding: the tab source the router queries and commands."""

from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import replace
from typing import Callable, Iterable, Optional, Protocol
from urllib.parse import urlsplit

from .events import (
    BrowserStarted,
    HostEvent,
    TabActivated,
    TabCreated,
    TabRemoved,
    TabUpdated,
)
from .models import Tab

logger = logging.getLogger(__name__)

_CREATABLE_SCHEMES = ("http", "https", "file", "ftp")


class HostError(Exception):
    """A host call failed (tab not found, permission denied, bad address)."""


class TabHost(Protocol):
    def query_active_tab(self, window_id: int) -> Optional[Tab]: ...

    def create_tab(self, url: str, *, active: bool = False) -> Tab: ...


EventListener = Callable[[HostEvent], None]


class TabMirror:
    """In-process view of the browser's tabs, fed by bridged host events.

    Events posted by the browser extension are applied here first and then
    forwarded to subscribers, so queries such as "active tab in window" see
    the same state the router does. Tabs created through :meth:`create_tab`
    are announced to subscribers as a ``TabCreated`` event.
    """

    def __init__(self, *, first_created_id: int = 1_000_000) -> None:
        self._tabs: dict[int, Tab] = {}
        self._listeners: list[EventListener] = []
        self._ids = itertools.count(first_created_id)
        self._lock = threading.Lock()
        # Held across delivery so subscribers see events in publish order.
        self._publish_lock = threading.RLock()

    def subscribe(self, listener: EventListener) -> None:
        self._listeners.append(listener)

    def publish(self, event: HostEvent) -> None:
        with self._publish_lock:
            with self._lock:
                self._apply(event)
            for listener in self._listeners:
                listener(event)

    def tabs(self) -> list[Tab]:
        with self._lock:
            return list(self._tabs.values())

    def query_active_tab(self, window_id: int) -> Optional[Tab]:
        with self._lock:
            for tab in self._tabs.values():
                if tab.window_id == window_id and tab.active:
                    return tab
        return None

    def create_tab(self, url: str, *, active: bool = False) -> Tab:
        address = (url or "").strip()
        if not address:
            raise HostError("No URL provided.")
        scheme = urlsplit(address).scheme.lower()
        if scheme not in _CREATABLE_SCHEMES:
            raise HostError(f"Cannot open URL with scheme '{scheme or address}'.")
        with self._lock:
            tab_id = next(self._ids)
            while tab_id in self._tabs:
                tab_id = next(self._ids)
            window_id = self._focused_window()
        tab = Tab(id=tab_id, window_id=window_id, active=active, url=address, status="loading")
        logger.info("Created tab %s for %s", tab_id, address)
        self.publish(TabCreated(tab=tab))
        return tab

    def _focused_window(self) -> int:
        windows = [tab.window_id for tab in self._tabs.values() if tab.active]
        return windows[0] if windows else 0

    def _apply(self, event: HostEvent) -> None:
        if isinstance(event, BrowserStarted):
            self._replace_all(event.tabs)
        elif isinstance(event, TabCreated):
            self._tabs[event.tab.id] = event.tab
        elif isinstance(event, TabUpdated):
            self._tabs[event.tab_id] = event.tab
        elif isinstance(event, TabActivated):
            for tab_id, tab in list(self._tabs.items()):
                if tab.window_id == event.window_id and tab.active and tab_id != event.tab_id:
                    self._tabs[tab_id] = replace(tab, active=False)
            current = self._tabs.get(event.tab_id)
            if current is not None:
                self._tabs[event.tab_id] = replace(current, active=True, window_id=event.window_id)
            else:
                self._tabs[event.tab_id] = Tab(id=event.tab_id, window_id=event.window_id, active=True)
        elif isinstance(event, TabRemoved):
            self._tabs.pop(event.tab_id, None)

    def _replace_all(self, tabs: Iterable[Tab]) -> None:
        self._tabs = {tab.id: tab for tab in tabs}
