"""Filesystem scanning into sorted, filtered ``Entry`` tuples."""

from __future__ import annotations

import os
import stat
from dataclasses import dataclass
from pathlib import Path

from ..errors import classify_os_error
from .types import Entry, Listing


@dataclass(frozen=True)
class ListingOptions:
    """Visibility and ordering rules applied to every directory read."""

    show_hidden: bool = False
    dirs_first: bool = True
    case_insensitive: bool = True
    always_show: frozenset[str] = frozenset()

    def is_always_shown(self, name: str) -> bool:
        if not self.always_show:
            return False
        if self.case_insensitive:
            return name.casefold() in {item.casefold() for item in self.always_show}
        return name in self.always_show


def _entry_from_dir_entry(child: os.DirEntry) -> Entry:
    path = Path(child.path)
    try:
        is_symlink = child.is_symlink()
    except OSError:
        is_symlink = False

    permission_bits = 0
    size_bytes: int | None = None
    modified_time: float | None = None
    try:
        lstat_result = child.stat(follow_symlinks=False)
        permission_bits = stat.S_IMODE(lstat_result.st_mode)
        size_bytes = int(lstat_result.st_size)
        modified_time = float(lstat_result.st_mtime)
    except OSError:
        pass

    symlink_target: Path | None = None
    symlink_broken = False
    if is_symlink:
        try:
            symlink_target = Path(os.readlink(child.path))
        except OSError:
            symlink_target = None
        try:
            target_stat = child.stat(follow_symlinks=True)
            size_bytes = int(target_stat.st_size)
            permission_bits = stat.S_IMODE(target_stat.st_mode)
        except OSError:
            symlink_broken = True

    try:
        is_directory = child.is_dir(follow_symlinks=True)
    except OSError:
        is_directory = False
    if is_directory:
        size_bytes = None

    return Entry(
        path=path,
        display_name=child.name,
        is_directory=is_directory,
        is_symlink=is_symlink,
        symlink_target=symlink_target,
        symlink_broken=symlink_broken,
        size_bytes=size_bytes,
        modified_time=modified_time,
        permission_bits=permission_bits,
        is_executable=(not is_directory) and bool(permission_bits & 0o111),
    )


def sort_entries(entries: list[Entry], options: ListingOptions) -> None:
    """Sort ``entries`` in place honoring dirs-first and case rules."""
    if options.case_insensitive:
        entries.sort(key=lambda item: (options.dirs_first and not item.is_directory, item.folded_name))
    else:
        entries.sort(key=lambda item: (options.dirs_first and not item.is_directory, item.display_name))


def read_directory(directory: Path, options: ListingOptions) -> Listing:
    """Read ``directory`` into a fresh ``Listing``.

    Raises a ``FileManagerError`` when the directory itself cannot be read so
    callers can tell a denied directory apart from an empty one. Metadata
    failures on individual children are tolerated.
    """
    entries: list[Entry] = []
    try:
        with os.scandir(directory) as children:
            for child in children:
                name = child.name
                if not options.show_hidden and name.startswith(".") and not options.is_always_shown(name):
                    continue
                entries.append(_entry_from_dir_entry(child))
    except OSError as exc:
        raise classify_os_error(exc, directory) from exc

    sort_entries(entries, options)
    return Listing(path=directory, entries=tuple(entries))


__all__ = [
    "ListingOptions",
    "sort_entries",
    "read_directory",
]
