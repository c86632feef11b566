"""Dispatch of host events to the stores and the query surface."""

from __future__ import annotations

import logging
import threading
from collections import deque
from typing import Any, Callable, Optional

from .archive import ClosedArchive
from .config import TrackerSettings
from .events import (
    BrowserStarted,
    DayCheckTick,
    FlushTick,
    HostEvent,
    TabActivated,
    TabCreated,
    TabRemoved,
    TabUpdated,
    WindowFocusChanged,
)
from .host import HostError, TabHost
from .info_store import TabInfoStore
from .models import current_time_ms
from .storage import ALL_KEYS, StorageBackend
from .timing_store import TimingStore
from .tracker import ActiveTimeTracker

logger = logging.getLogger(__name__)

Clock = Callable[[], int]


class EventRouter:
    """Owns the tracker state and applies host events one at a time.

    ``dispatch`` is the only way state changes: events are queued and drained
    by a single consumer under a lock, and an event dispatched while a handler
    is running on the same thread is queued behind it instead of re-entering.
    """

    def __init__(
        self,
        *,
        timing: TimingStore,
        infos: TabInfoStore,
        tracker: ActiveTimeTracker,
        archive: ClosedArchive,
        host: TabHost,
        clock: Clock = current_time_ms,
    ) -> None:
        self.timing = timing
        self.infos = infos
        self.tracker = tracker
        self.archive = archive
        self._host = host
        self._clock = clock
        self._queue: deque[HostEvent] = deque()
        self._lock = threading.Lock()
        self._local = threading.local()

    @classmethod
    def from_storage(
        cls,
        storage: StorageBackend,
        host: TabHost,
        settings: Optional[TrackerSettings] = None,
        clock: Clock = current_time_ms,
    ) -> "EventRouter":
        """Build the router from the last persisted snapshot."""
        settings = settings or TrackerSettings()
        snapshot = storage.get_all(ALL_KEYS)
        timing = TimingStore.load(storage, snapshot)
        infos = TabInfoStore.load(
            storage, snapshot, ignored_url_prefixes=settings.ignored_url_prefixes
        )
        tracker = ActiveTimeTracker(timing)
        archive = ClosedArchive.load(
            storage,
            snapshot,
            timing,
            infos,
            tracker,
            now=clock(),
            limit=settings.closed_tab_limit,
        )
        return cls(
            timing=timing,
            infos=infos,
            tracker=tracker,
            archive=archive,
            host=host,
            clock=clock,
        )

    def dispatch(self, event: HostEvent) -> None:
        self._queue.append(event)
        if getattr(self._local, "draining", False):
            return
        with self._lock:
            self._local.draining = True
            try:
                while True:
                    try:
                        pending = self._queue.popleft()
                    except IndexError:
                        break
                    self._handle(pending)
            finally:
                self._local.draining = False

    def _handle(self, event: HostEvent) -> None:
        now = self._clock()
        if isinstance(event, TabActivated):
            logger.debug("Tab activated: %s", event.tab_id)
            self.tracker.start_tracking(event.tab_id, now)
        elif isinstance(event, TabCreated):
            logger.debug("Tab created: %s", event.tab.id)
            self.infos.record_info(event.tab.id, event.tab, now)
        elif isinstance(event, TabUpdated):
            self._on_updated(event, now)
        elif isinstance(event, TabRemoved):
            self._on_removed(event.tab_id, now)
        elif isinstance(event, WindowFocusChanged):
            self._on_focus_changed(event, now)
        elif isinstance(event, BrowserStarted):
            self._on_started(event, now)
        elif isinstance(event, FlushTick):
            if self.tracker.flush(now):
                logger.debug("Flushed active time for tab %s", self.tracker.active_id)
        elif isinstance(event, DayCheckTick):
            self.archive.rollover_if_new_day(now)
        else:
            logger.warning("Ignoring unknown event %r", event)

    def _on_updated(self, event: TabUpdated, now: int) -> None:
        if event.change.touches_info:
            logger.debug("Tab info updated: %s", event.tab_id)
            self.infos.record_info(event.tab_id, event.tab, now)
        if event.change.completed and event.tab.active:
            self.tracker.start_tracking(event.tab_id, now)

    def _on_removed(self, tab_id: int, now: int) -> None:
        logger.debug("Tab removed: %s", tab_id)
        if self.tracker.is_active(tab_id):
            self.tracker.stop_tracking(now)
        self.archive.archive(tab_id, now)
        self.timing.remove(tab_id)
        self.infos.remove(tab_id)

    def _on_focus_changed(self, event: WindowFocusChanged, now: int) -> None:
        if event.focus_lost:
            self.tracker.stop_tracking(now)
            return
        try:
            tab = self._host.query_active_tab(event.window_id)
        except HostError as exc:
            logger.warning("Could not query active tab in window %s: %s", event.window_id, exc)
            return
        if tab is not None:
            self.tracker.start_tracking(tab.id, now)

    def _on_started(self, event: BrowserStarted, now: int) -> None:
        for tab in event.tabs:
            self.infos.record_info(tab.id, tab, now)
        active = next((tab for tab in event.tabs if tab.active), None)
        if active is not None:
            self.tracker.start_tracking(active.id, now)

    def get_timing_data(self) -> dict[str, Any]:
        with self._lock:
            views = self.tracker.current_snapshot(self._clock())
            active_id = self.tracker.active_id
        return {
            "timingData": {tab_id: view.to_payload() for tab_id, view in views.items()},
            "activeId": active_id,
        }

    def get_closed_tabs(self) -> dict[str, Any]:
        with self._lock:
            records = self.archive.list()
        return {"closedTabs": [record.to_payload() for record in records]}

    def reopen_tab(self, url: str, title: Optional[str] = None) -> dict[str, Any]:
        # The host announces the new tab through dispatch, so it is called
        # without holding the lock.
        try:
            tab = self._host.create_tab(url, active=False)
        except HostError as exc:
            logger.info("Could not reopen %r (%s): %s", title, url, exc)
            return {"success": False, "error": str(exc)}
        return {"success": True, "newId": tab.id}
