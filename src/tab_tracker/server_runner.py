"""Helpers to launch the local tracking service."""

from __future__ import annotations

import logging
import threading
import time
import webbrowser
from pathlib import Path
from typing import Optional

import uvicorn

from .config import TrackerSettings
from .paths import get_db_path
from .webapp import create_app

logger = logging.getLogger(__name__)


def run_service(
    *,
    host: str = "127.0.0.1",
    port: int = 8765,
    db_path: Optional[Path] = None,
    settings: Optional[TrackerSettings] = None,
    open_browser: bool = False,
    log_level: str = "info",
) -> None:
    """Serve the tracker API until interrupted."""
    resolved_db_path = db_path or get_db_path()
    resolved_settings = settings or TrackerSettings()
    app = create_app(db_path=resolved_db_path, settings=resolved_settings)
    logger.info(
        "Serving on %s:%d with database %s (flush every %ss)",
        host,
        port,
        resolved_db_path,
        resolved_settings.flush_interval.total_seconds(),
    )

    if open_browser:
        threading.Thread(
            target=_open_docs_after_delay, args=(f"http://{host}:{port}/docs",), daemon=True
        ).start()

    logging.getLogger("uvicorn.error").setLevel(log_level.upper())
    uvicorn.run(app, host=host, port=port, log_level=log_level)


def _open_docs_after_delay(url: str, delay: float = 1.0) -> None:
    time.sleep(delay)
    try:
        webbrowser.open(url)
    except webbrowser.Error:
        logger.exception("Failed to launch browser for %s", url)
