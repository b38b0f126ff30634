"""Immutable filesystem entry snapshots used by listings and previews."""

from __future__ import annotations

import stat
import time
from dataclasses import dataclass
from functools import cached_property
from pathlib import Path


@dataclass(frozen=True)
class Entry:
    """One directory child observed at listing time.

    Entries are never patched in place: a refresh rebuilds the whole listing.
    For symlinks ``is_directory`` reflects the link target so that the entry
    can be entered like a directory.
    """

    path: Path
    display_name: str
    is_directory: bool
    is_symlink: bool = False
    symlink_target: Path | None = None
    symlink_broken: bool = False
    size_bytes: int | None = None
    modified_time: float | None = None
    permission_bits: int = 0
    is_executable: bool = False

    @property
    def is_hidden(self) -> bool:
        return self.display_name.startswith(".")

    @cached_property
    def folded_name(self) -> str:
        """Case-folded name used for case-insensitive sort and filter."""
        return self.display_name.casefold()

    def mode_string(self) -> str:
        """Return a unix ``ls -l`` style permission string."""
        if self.is_symlink:
            first = "l"
        elif self.is_directory:
            first = "d"
        else:
            first = "-"
        return first + stat.filemode(self.permission_bits)[1:]


SIZE_UNITS = ("B", "kB", "MB", "GB", "TB", "PB")


def format_size(size_bytes: int | None) -> str:
    """Decimal human-readable size, ``-`` when unknown."""
    if size_bytes is None:
        return "-"
    value = float(size_bytes)
    for unit in SIZE_UNITS:
        if value < 1000 or unit == SIZE_UNITS[-1]:
            break
        value /= 1000
    if unit == "B":
        return f"{size_bytes} B"
    return f"{value:.2f} {unit}"


def format_mtime(modified_time: float | None) -> str:
    if modified_time is None:
        return "-"
    return time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(modified_time))


def entry_info(entry: Entry) -> list[tuple[str, str]]:
    """Label/value rows describing ``entry`` for the file-info overlay."""
    if entry.is_symlink:
        kind = "Symlink"
    elif entry.is_directory:
        kind = "Directory"
    else:
        kind = "File"
    rows = [
        ("Name", entry.display_name),
        ("Type", kind),
        ("Size", "-" if entry.is_directory else format_size(entry.size_bytes)),
        ("Modified", format_mtime(entry.modified_time)),
        ("Perms", entry.mode_string()),
    ]
    if entry.is_symlink:
        target = str(entry.symlink_target) if entry.symlink_target is not None else "?"
        rows.append(("Target", target + (" (broken)" if entry.symlink_broken else "")))
    return rows


@dataclass(frozen=True)
class Listing:
    """Result of one successful directory read.

    An empty ``entries`` tuple means the directory really is empty; failed
    reads are reported as errors and never produce a ``Listing``.
    """

    path: Path
    entries: tuple[Entry, ...]


__all__ = [
    "Entry",
    "Listing",
    "entry_info",
    "format_mtime",
    "format_size",
]
