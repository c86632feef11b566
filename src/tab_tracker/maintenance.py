"""Background timers that keep persisted timing fresh and roll the archive over."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

from .config import TrackerSettings
from .events import DayCheckTick, FlushTick, HostEvent

logger = logging.getLogger(__name__)


class MaintenanceRunner:
    """Emit periodic flush and day-check ticks from a background thread.

    There is no flush on shutdown: up to one flush interval of active time is
    lost when the process exits.
    """

    def __init__(
        self,
        dispatch: Callable[[HostEvent], None],
        settings: TrackerSettings,
        *,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self._dispatch = dispatch
        self._settings = settings
        self._monotonic = monotonic
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._stop_event: Optional[threading.Event] = None
        self._next_flush = 0.0
        self._next_day_check = 0.0

    def start(self) -> None:
        with self._lock:
            if self._thread and self._thread.is_alive():
                return
            stop_event = threading.Event()
            self._schedule_from(self._monotonic())
            thread = threading.Thread(
                target=self._run_loop,
                args=(stop_event,),
                name="tab-tracker-maintenance",
                daemon=True,
            )
            self._thread = thread
            self._stop_event = stop_event
            thread.start()
            logger.info("Maintenance thread started.")

    def stop(self) -> None:
        thread: Optional[threading.Thread] = None
        with self._lock:
            if not self._thread or not self._thread.is_alive() or not self._stop_event:
                return
            self._stop_event.set()
            thread = self._thread
            self._thread = None
            self._stop_event = None
        if thread:
            thread.join(timeout=10)
            logger.info("Maintenance thread stopped.")

    def is_running(self) -> bool:
        with self._lock:
            return bool(self._thread and self._thread.is_alive())

    def run_pending(self) -> list[HostEvent]:
        """Dispatch every tick that is due and return what was dispatched."""
        now = self._monotonic()
        due: list[HostEvent] = []
        if now >= self._next_flush:
            due.append(FlushTick())
            self._next_flush = now + self._settings.flush_interval.total_seconds()
        if now >= self._next_day_check:
            due.append(DayCheckTick())
            self._next_day_check = now + self._settings.day_check_interval.total_seconds()
        for tick in due:
            try:
                self._dispatch(tick)
            except Exception:
                # Timers run for the lifetime of the process; the next tick retries.
                logger.exception("Maintenance tick %s failed.", type(tick).__name__)
        return due

    def _schedule_from(self, now: float) -> None:
        self._next_flush = now + self._settings.flush_interval.total_seconds()
        self._next_day_check = now + self._settings.day_check_interval.total_seconds()

    def _seconds_until_due(self) -> float:
        remaining = min(self._next_flush, self._next_day_check) - self._monotonic()
        return max(remaining, 0.0)

    def _run_loop(self, stop_event: threading.Event) -> None:
        while not stop_event.is_set():
            # Sleep in an interruptible manner.
            if stop_event.wait(self._seconds_until_due()):
                break
            self.run_pending()
