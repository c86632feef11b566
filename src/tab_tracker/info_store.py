"""Descriptive metadata (title, address, icon) for live tabs."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Optional

from .config import DEFAULT_IGNORED_PREFIXES
from .models import UNTITLED, Tab, TabInfo
from .normalization import is_trackable_url, normalize_tab_title
from .storage import INFO_KEY, StorageBackend, persist

logger = logging.getLogger(__name__)


class TabInfoStore:
    def __init__(
        self,
        storage: StorageBackend,
        infos: Optional[Mapping[int, TabInfo]] = None,
        *,
        ignored_url_prefixes: Iterable[str] = DEFAULT_IGNORED_PREFIXES,
    ) -> None:
        self._storage = storage
        self._infos: dict[int, TabInfo] = dict(infos or {})
        self._ignored = tuple(ignored_url_prefixes)

    @classmethod
    def load(
        cls,
        storage: StorageBackend,
        snapshot: Mapping[str, Any],
        *,
        ignored_url_prefixes: Iterable[str] = DEFAULT_IGNORED_PREFIXES,
    ) -> "TabInfoStore":
        infos: dict[int, TabInfo] = {}
        for raw_id, payload in (snapshot.get(INFO_KEY) or {}).items():
            try:
                infos[int(raw_id)] = TabInfo.from_payload(payload)
            except (KeyError, TypeError, ValueError):
                logger.warning("Skipping malformed info entry for tab %s", raw_id)
        logger.info("Loaded tab info for %d tabs.", len(infos))
        return cls(storage, infos, ignored_url_prefixes=ignored_url_prefixes)

    def record_info(self, tab_id: int, tab: Tab, now: int) -> Optional[TabInfo]:
        """Capture the tab's current metadata; internal pages are ignored."""
        if not is_trackable_url(tab.url, self._ignored):
            logger.debug("Ignoring info for tab %s with url %r", tab_id, tab.url)
            return None
        info = TabInfo(
            title=normalize_tab_title(tab.title) or UNTITLED,
            url=tab.url.strip(),
            fav_icon_url=tab.fav_icon_url,
            last_updated=now,
        )
        self._infos[tab_id] = info
        self._save()
        return info

    def get(self, tab_id: int) -> Optional[TabInfo]:
        return self._infos.get(tab_id)

    def remove(self, tab_id: int) -> Optional[TabInfo]:
        info = self._infos.pop(tab_id, None)
        self._save()
        return info

    def snapshot_all(self) -> dict[int, TabInfo]:
        return dict(self._infos)

    def _save(self) -> None:
        persist(
            self._storage,
            {INFO_KEY: {str(tab_id): info.to_payload() for tab_id, info in self._infos.items()}},
        )
