"""Availability of optional external helper programs.

One ``ToolRegistry`` is built at startup and handed to the find and preview
engines. Lookups hit ``shutil.which`` once per tool and are cached on the
instance.
"""

from __future__ import annotations

import shutil
import threading
from collections.abc import Callable

FIND_HELPERS: tuple[str, ...] = ("fd", "fdfind")
PREVIEW_HELPERS: tuple[str, ...] = ("bat", "batcat")


class ToolRegistry:
    """Lazily resolved, cached executable paths for helper tools."""

    def __init__(self, which: Callable[[str], str | None] = shutil.which) -> None:
        self._which = which
        self._lock = threading.Lock()
        self._cache: dict[tuple[str, ...], str | None] = {}

    def _resolve(self, candidates: tuple[str, ...]) -> str | None:
        with self._lock:
            if candidates in self._cache:
                return self._cache[candidates]
            found: str | None = None
            for name in candidates:
                found = self._which(name)
                if found:
                    break
            self._cache[candidates] = found
            return found

    def find_helper(self) -> str | None:
        """Executable path of ``fd`` (or Debian's ``fdfind``), if installed."""
        return self._resolve(FIND_HELPERS)

    def preview_helper(self) -> str | None:
        """Executable path of ``bat`` (or ``batcat``), if installed."""
        return self._resolve(PREVIEW_HELPERS)


__all__ = [
    "FIND_HELPERS",
    "PREVIEW_HELPERS",
    "ToolRegistry",
]
