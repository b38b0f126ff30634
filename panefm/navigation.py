"""Navigation/session state for the main pane.

``NavigationState`` owns the current directory's entries plus everything the
user layers on top of them: per-directory filters, the selection cursor,
markers and the clipboard. It is mutated only by the dispatcher thread.

Entries are replaced in a single assignment inside ``apply_listing``; asking
for a new path only records the pending target, so the previous listing stays
visible until the new one has been read.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from .entries import Entry, Listing


class ClipboardMode(str, Enum):
    COPY = "copy"
    CUT = "cut"


@dataclass(frozen=True)
class Clipboard:
    """Yanked paths plus whether paste should copy or move them."""

    mode: ClipboardMode
    paths: frozenset[Path]


class NavigationState:
    """Directory listing, filter, selection, markers and clipboard."""

    def __init__(self, current_path: Path, *, case_insensitive: bool = True) -> None:
        self.current_path = current_path
        self.entries: tuple[Entry, ...] = ()
        self.selection_index = 0
        self.markers: set[Path] = set()
        self.clipboard: Clipboard | None = None
        self.pending_path: Path | None = None
        self.loaded = False
        self.case_insensitive = case_insensitive
        self._filters: dict[Path, str] = {}
        self._positions: dict[Path, Path] = {}
        self._visible: tuple[Entry, ...] = ()

    # Listing

    @property
    def filter(self) -> str:
        return self._filters.get(self.current_path, "")

    @property
    def visible_entries(self) -> tuple[Entry, ...]:
        return self._visible

    def selected_entry(self) -> Entry | None:
        if not self._visible:
            return None
        return self._visible[self.selection_index]

    def selected_path(self) -> Path | None:
        entry = self.selected_entry()
        return entry.path if entry is not None else None

    def set_path(self, path: Path) -> bool:
        """Record ``path`` as the navigation target.

        Returns ``True`` when a directory read must be issued. Entries and
        selection are left untouched until ``apply_listing`` runs.
        """
        if self.pending_path is not None:
            if path == self.pending_path:
                return False
        elif path == self.current_path and self.loaded:
            return False
        self.pending_path = path
        return True

    def navigation_failed(self, path: Path) -> None:
        """Drop the pending target after a failed read; stay where we are."""
        if self.pending_path == path:
            self.pending_path = None

    def apply_listing(self, listing: Listing, focus: Path | None = None) -> None:
        """Replace entries with ``listing`` and restore the cursor.

        Cursor priority: explicit ``focus`` path, the entry selected before a
        same-directory refresh, the remembered position for the directory,
        and finally the clamped previous index.
        """
        previous_selection = self.selected_path()
        same_directory = listing.path == self.current_path and self.loaded
        if not same_directory and previous_selection is not None:
            self._positions[self.current_path] = previous_selection

        self.current_path = listing.path
        self.entries = listing.entries
        self.loaded = True
        if self.pending_path == listing.path:
            self.pending_path = None
        self._recompute_visible()
        if not same_directory:
            self.selection_index = 0

        if focus is not None:
            target = focus
        elif same_directory:
            target = previous_selection
        else:
            target = self._positions.get(listing.path)
        if target is None or not self._select_path(target):
            self._clamp_selection()

    def _recompute_visible(self) -> None:
        text = self.filter
        if not text:
            self._visible = self.entries
            return
        if self.case_insensitive:
            needle = text.casefold()
            self._visible = tuple(entry for entry in self.entries if needle in entry.folded_name)
        else:
            self._visible = tuple(entry for entry in self.entries if text in entry.display_name)

    def _select_path(self, path: Path) -> bool:
        for idx, entry in enumerate(self._visible):
            if entry.path == path:
                self.selection_index = idx
                return True
        return False

    def _clamp_selection(self) -> None:
        count = len(self._visible)
        if count == 0:
            self.selection_index = 0
            return
        self.selection_index = max(0, min(self.selection_index, count - 1))

    # Selection

    def move_selection(self, delta: int, wrap: bool = True) -> bool:
        """Move the cursor by ``delta`` visible rows.

        Stepping past either end wraps to the opposite end when ``wrap`` is
        set and the cursor already sits on the edge; larger jumps stop at
        the edge first. Returns whether the selection changed.
        """
        count = len(self._visible)
        if count == 0 or delta == 0:
            return False
        current = self.selection_index
        target = current + delta
        if target >= count:
            target = 0 if wrap and current == count - 1 else count - 1
        elif target < 0:
            target = count - 1 if wrap and current == 0 else 0
        self.selection_index = target
        return target != current

    def go_to_top(self) -> bool:
        previous = self.selection_index
        self.selection_index = 0
        return previous != 0 and bool(self._visible)

    def go_to_bottom(self) -> bool:
        if not self._visible:
            return False
        previous = self.selection_index
        self.selection_index = len(self._visible) - 1
        return previous != self.selection_index

    def select_path(self, path: Path) -> bool:
        return self._select_path(path)

    # Filter

    def apply_filter(self, text: str) -> None:
        """Set the current directory's filter, keeping the selected path."""
        selected = self.selected_path()
        if text:
            self._filters[self.current_path] = text
        else:
            self._filters.pop(self.current_path, None)
        self._recompute_visible()
        if selected is None or not self._select_path(selected):
            self.selection_index = 0
            self._clamp_selection()

    def clear_filter(self) -> None:
        self.apply_filter("")

    # Markers

    def toggle_marker(self, path: Path) -> None:
        """Flip ``path``'s marker; a clipboard path is reclaimed as a marker."""
        if self.clipboard is not None and path in self.clipboard.paths:
            remaining = self.clipboard.paths - {path}
            self.clipboard = Clipboard(self.clipboard.mode, remaining) if remaining else None
            self.markers.add(path)
            return
        if path in self.markers:
            self.markers.discard(path)
        else:
            self.markers.add(path)

    def toggle_marker_advance(self, jump: bool = False) -> None:
        """Toggle the selected entry's marker then step the cursor down.

        On the last visible row the cursor stays put, or wraps to the first
        row when ``jump`` is enabled.
        """
        entry = self.selected_entry()
        if entry is None:
            return
        self.toggle_marker(entry.path)
        count = len(self._visible)
        if self.selection_index == count - 1:
            if jump and count > 1:
                self.selection_index = 0
        else:
            self.selection_index += 1

    def clear_markers(self) -> None:
        self.markers.clear()

    def action_targets(self) -> list[Path]:
        """Marked paths, or the selected entry when nothing is marked."""
        if self.markers:
            return sorted(self.markers)
        selected = self.selected_path()
        return [selected] if selected is not None else []

    # Clipboard

    def set_clipboard(self, mode: ClipboardMode, paths: list[Path] | set[Path] | frozenset[Path]) -> None:
        if not paths:
            return
        self.clipboard = Clipboard(mode=mode, paths=frozenset(paths))

    def clear_clipboard(self) -> None:
        self.clipboard = None


__all__ = [
    "ClipboardMode",
    "Clipboard",
    "NavigationState",
]
