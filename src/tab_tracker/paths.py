"""Helpers for locating the tracker's data directory."""

from __future__ import annotations

import os
from pathlib import Path

from platformdirs import PlatformDirs


APP_NAME = "TabTracker"
APP_AUTHOR = "TabTracker"
DATA_DIR_ENV = "TAB_TRACKER_DATA_DIR"


def get_data_dir() -> Path:
    """Return the directory holding the tracker database.

    ``TAB_TRACKER_DATA_DIR`` overrides the per-user platform location.
    """
    override = os.environ.get(DATA_DIR_ENV)
    if override:
        path = Path(override).expanduser()
    else:
        path = Path(PlatformDirs(appname=APP_NAME, appauthor=APP_AUTHOR).user_data_path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_db_path() -> Path:
    return get_data_dir() / "tabs.sqlite3"
