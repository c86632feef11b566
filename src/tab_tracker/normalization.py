"""Utilities to normalize tab titles and filter tab addresses."""

from __future__ import annotations

import re
from typing import Iterable, Optional

from .config import DEFAULT_IGNORED_PREFIXES

_WHITESPACE_PATTERN = re.compile(r"\s{2,}")


def is_trackable_url(
    url: Optional[str], ignored_prefixes: Iterable[str] = DEFAULT_IGNORED_PREFIXES
) -> bool:
    """Return True for addresses that point at regular web content."""
    if not url:
        return False
    lowered = url.strip().lower()
    if not lowered:
        return False
    return not any(lowered.startswith(prefix) for prefix in ignored_prefixes)


def normalize_tab_title(title: Optional[str]) -> Optional[str]:
    """Collapse runs of whitespace; the page title is otherwise kept as-is."""
    if not title:
        return None
    normalized = _WHITESPACE_PATTERN.sub(" ", title.strip()).strip()
    return normalized or None
