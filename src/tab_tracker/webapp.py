"""FastAPI application bridging browser tab events and presentation queries."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field

from .config import TrackerSettings
from .events import (
    BrowserStarted,
    TabActivated,
    TabCreated,
    TabRemoved,
    TabUpdated,
    WindowFocusChanged,
)
from .host import TabMirror
from .maintenance import MaintenanceRunner
from .models import Tab, TabChange, current_time_ms
from .paths import get_db_path
from .router import Clock, EventRouter
from .storage import SqliteStorage, StorageBackend

logger = logging.getLogger(__name__)


class _CamelModel(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class TabPayload(BaseModel):
    id: int
    window_id: int = Field(0, alias="windowId")
    active: bool = False
    url: Optional[str] = None
    title: Optional[str] = None
    fav_icon_url: Optional[str] = Field(None, alias="favIconUrl")
    status: Optional[str] = None

    # Hosts send many more tab fields (index, pinned, incognito, ...).
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    def to_tab(self) -> Tab:
        return Tab(
            id=self.id,
            window_id=self.window_id,
            active=self.active,
            url=self.url,
            title=self.title,
            fav_icon_url=self.fav_icon_url,
            status=self.status,
        )


class ChangeInfoPayload(BaseModel):
    status: Optional[str] = None
    url: Optional[str] = None
    title: Optional[str] = None
    fav_icon_url: Optional[str] = Field(None, alias="favIconUrl")

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    def to_change(self) -> TabChange:
        return TabChange(
            status=self.status,
            url=self.url,
            title=self.title,
            fav_icon_url=self.fav_icon_url,
        )


class StartupPayload(_CamelModel):
    tabs: list[TabPayload] = Field(default_factory=list)


class UpdatedPayload(_CamelModel):
    tab_id: int = Field(alias="tabId")
    change_info: ChangeInfoPayload = Field(alias="changeInfo")
    tab: TabPayload


class ActivatedPayload(_CamelModel):
    tab_id: int = Field(alias="tabId")
    window_id: int = Field(0, alias="windowId")


class RemovedPayload(_CamelModel):
    tab_id: int = Field(alias="tabId")
    window_id: Optional[int] = Field(None, alias="windowId")
    is_window_closing: bool = Field(False, alias="isWindowClosing")


class FocusPayload(_CamelModel):
    window_id: Optional[int] = Field(None, alias="windowId")


class ReopenPayload(_CamelModel):
    url: str
    title: Optional[str] = None


def create_app(
    *,
    db_path: Optional[Path] = None,
    settings: Optional[TrackerSettings] = None,
    storage: Optional[StorageBackend] = None,
    clock: Clock = current_time_ms,
    run_maintenance: bool = True,
) -> FastAPI:
    """Instantiate the FastAPI application."""
    resolved_settings = settings or TrackerSettings()
    resolved_db_path: Optional[Path] = None
    if storage is None:
        resolved_db_path = Path(db_path or get_db_path())
        storage = SqliteStorage(resolved_db_path)

    mirror = TabMirror()
    router = EventRouter.from_storage(storage, mirror, resolved_settings, clock)
    mirror.subscribe(router.dispatch)
    runner = MaintenanceRunner(router.dispatch, resolved_settings)

    app = FastAPI(title="Tab Tracker", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.db_path = resolved_db_path
    app.state.router = router
    app.state.mirror = mirror
    app.state.maintenance_runner = runner

    @app.on_event("startup")
    async def _startup() -> None:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s %(levelname)s %(name)s %(message)s",
        )
        if run_maintenance:
            runner.start()

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        runner.stop()

    @app.get("/api/status")
    def status(request: Request) -> Dict[str, Any]:
        db = request.app.state.db_path
        return {
            "maintenance_running": request.app.state.maintenance_runner.is_running(),
            "database_path": str(db) if db else None,
            "flush_seconds": resolved_settings.flush_interval.total_seconds(),
            "day_check_seconds": resolved_settings.day_check_interval.total_seconds(),
            "active_tab_id": request.app.state.router.tracker.active_id,
        }

    @app.post("/api/events/startup")
    def browser_started(payload: StartupPayload, request: Request) -> Dict[str, Any]:
        tabs = tuple(tab.to_tab() for tab in payload.tabs)
        request.app.state.mirror.publish(BrowserStarted(tabs=tabs))
        return {"accepted": True, "tabs": len(tabs)}

    @app.post("/api/events/created")
    def tab_created(payload: TabPayload, request: Request) -> Dict[str, Any]:
        request.app.state.mirror.publish(TabCreated(tab=payload.to_tab()))
        return {"accepted": True}

    @app.post("/api/events/updated")
    def tab_updated(payload: UpdatedPayload, request: Request) -> Dict[str, Any]:
        event = TabUpdated(
            tab_id=payload.tab_id,
            change=payload.change_info.to_change(),
            tab=payload.tab.to_tab(),
        )
        request.app.state.mirror.publish(event)
        return {"accepted": True}

    @app.post("/api/events/activated")
    def tab_activated(payload: ActivatedPayload, request: Request) -> Dict[str, Any]:
        request.app.state.mirror.publish(
            TabActivated(tab_id=payload.tab_id, window_id=payload.window_id)
        )
        return {"accepted": True}

    @app.post("/api/events/removed")
    def tab_removed(payload: RemovedPayload, request: Request) -> Dict[str, Any]:
        request.app.state.mirror.publish(
            TabRemoved(
                tab_id=payload.tab_id,
                window_id=payload.window_id,
                is_window_closing=payload.is_window_closing,
            )
        )
        return {"accepted": True}

    @app.post("/api/events/focus")
    def focus_changed(payload: FocusPayload, request: Request) -> Dict[str, Any]:
        request.app.state.mirror.publish(WindowFocusChanged(window_id=payload.window_id))
        return {"accepted": True}

    @app.get("/api/timing")
    def timing(request: Request) -> Dict[str, Any]:
        return request.app.state.router.get_timing_data()

    @app.get("/api/closed-tabs")
    def closed_tabs(request: Request) -> Dict[str, Any]:
        return request.app.state.router.get_closed_tabs()

    @app.post("/api/reopen")
    def reopen(payload: ReopenPayload, request: Request) -> Dict[str, Any]:
        return request.app.state.router.reopen_tab(payload.url, payload.title)

    return app
