"""Bounded preview reading for files and directories.

Resolution order for a selected path:
1. directory -> listing preview built from the ``Entry`` model
2. size above ``max_bytes`` -> "too large" notice, file is never opened
3. non-regular file -> notice
4. NUL byte or PDF header in the first KiB -> binary notice
5. text through the requested ``PreviewMethod``, falling back to the
   internal reader when a highlighter is unavailable or fails

Only ``visible_lines`` lines are materialized and each line read is capped,
so memory stays bounded regardless of file size.
"""

from __future__ import annotations

import logging
import os
import stat
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from ..entries import ListingOptions, read_directory
from ..errors import ErrorKind, FileManagerError, classify_os_error
from .bat import run_bat
from .syntax import DEFAULT_STYLE, highlight_lines
from .text import fit_ansi_to_width, fit_to_width

logger = logging.getLogger(__name__)

MIN_PREVIEW_LINES = 3
DEFAULT_PREVIEW_LINES = 50
DEFAULT_MAX_PREVIEW_BYTES = 5 * 1024 * 1024 * 1024
BINARY_PROBE_BYTES = 1024
PDF_SIGNATURE = b"%PDF-"
LINE_READ_FACTOR = 4


class PreviewMethod(str, Enum):
    """How file contents are turned into preview lines."""

    INTERNAL = "internal"
    PYGMENTS = "pygments"
    BAT = "bat"

    @classmethod
    def parse(cls, value: object) -> PreviewMethod:
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.INTERNAL


class PreviewKind(str, Enum):
    TEXT = "text"
    DIRECTORY = "directory"
    EMPTY = "empty"
    TOO_LARGE = "too_large"
    BINARY = "binary"
    NOT_REGULAR = "not_regular"
    ERROR = "error"


@dataclass(frozen=True)
class PreviewResult:
    """Width-fitted preview lines plus what kind of preview they are."""

    kind: PreviewKind
    lines: tuple[str, ...]
    styled: bool = False
    truncated: bool = False
    error_kind: ErrorKind | None = None

    @classmethod
    def notice(cls, kind: PreviewKind, message: str, width: int) -> PreviewResult:
        return cls(kind=kind, lines=(fit_to_width(message, width),))

    @classmethod
    def too_large(cls, width: int) -> PreviewResult:
        return cls.notice(PreviewKind.TOO_LARGE, "[File too large for preview]", width)

    @classmethod
    def binary(cls, width: int) -> PreviewResult:
        return cls.notice(PreviewKind.BINARY, "[Binary file - preview hidden]", width)

    @classmethod
    def empty_file(cls, width: int) -> PreviewResult:
        return cls.notice(PreviewKind.EMPTY, "[Empty file]", width)

    @classmethod
    def not_regular(cls, width: int) -> PreviewResult:
        return cls.notice(PreviewKind.NOT_REGULAR, "[Not a regular file]", width)

    @classmethod
    def failure(cls, error: FileManagerError, width: int) -> PreviewResult:
        if error.kind == ErrorKind.PERMISSION_DENIED:
            message = "[Error: Permission Denied]"
        elif error.kind == ErrorKind.NOT_FOUND:
            message = "[Error: File Not Found]"
        else:
            message = f"[Error reading file: {error.message}]"
        return cls(kind=PreviewKind.ERROR, lines=(fit_to_width(message, width),), error_kind=error.kind)

    @classmethod
    def text(cls, lines: list[str], *, styled: bool, truncated: bool) -> PreviewResult:
        return cls(kind=PreviewKind.TEXT, lines=tuple(lines), styled=styled, truncated=truncated)


def preview_directory(path: Path, visible_lines: int, width: int, options: ListingOptions) -> PreviewResult:
    """Listing-style preview of a directory, ``...`` marking truncation."""
    try:
        listing = read_directory(path, options)
    except FileManagerError as exc:
        return PreviewResult.failure(exc, width)

    entries = listing.entries
    if not entries:
        return PreviewResult(
            kind=PreviewKind.DIRECTORY,
            lines=(fit_to_width("[empty directory]", width),),
        )

    lines = [
        fit_to_width(entry.display_name + ("/" if entry.is_directory else ""), width)
        for entry in entries[:visible_lines]
    ]
    truncated = len(entries) > visible_lines
    if truncated:
        lines[-1] = fit_to_width("...", width)
    return PreviewResult(kind=PreviewKind.DIRECTORY, lines=tuple(lines), truncated=truncated)


def looks_binary(sample: bytes) -> bool:
    if sample.startswith(PDF_SIGNATURE):
        return True
    return b"\x00" in sample[:BINARY_PROBE_BYTES]


def read_head_lines(path: Path, max_lines: int, max_line_chars: int) -> tuple[list[str], bool]:
    """Read at most ``max_lines`` lines, each capped at ``max_line_chars``.

    The remainder of an over-long line is skipped without being kept. Returns
    ``(lines, truncated)`` where ``truncated`` means more lines follow.
    """
    lines: list[str] = []
    with path.open("r", encoding="utf-8", errors="replace", newline=None) as handle:
        while len(lines) < max_lines:
            line = handle.readline(max_line_chars)
            if not line:
                return lines, False
            if not line.endswith("\n"):
                while True:
                    rest = handle.readline(max_line_chars)
                    if not rest or rest.endswith("\n"):
                        break
            lines.append(line.rstrip("\r\n"))
        return lines, bool(handle.read(1))


def read_preview(
    path: Path,
    *,
    visible_lines: int = DEFAULT_PREVIEW_LINES,
    max_bytes: int = DEFAULT_MAX_PREVIEW_BYTES,
    width: int,
    method: PreviewMethod = PreviewMethod.INTERNAL,
    options: ListingOptions = ListingOptions(),
    bat_executable: str | None = None,
    bat_args: tuple[str, ...] = (),
    pygments_style: str = DEFAULT_STYLE,
) -> PreviewResult:
    """Build the preview for ``path`` fitted to ``width`` columns."""
    visible_lines = max(visible_lines, MIN_PREVIEW_LINES)
    width = max(1, width)

    try:
        st = os.stat(path)
    except OSError as exc:
        return PreviewResult.failure(classify_os_error(exc, path), width)

    if stat.S_ISDIR(st.st_mode):
        return preview_directory(path, visible_lines, width, options)
    if st.st_size > max_bytes:
        return PreviewResult.too_large(width)
    if not stat.S_ISREG(st.st_mode):
        return PreviewResult.not_regular(width)

    try:
        with path.open("rb") as handle:
            sample = handle.read(BINARY_PROBE_BYTES)
    except OSError as exc:
        return PreviewResult.failure(classify_os_error(exc, path), width)
    if not sample:
        return PreviewResult.empty_file(width)
    if looks_binary(sample):
        return PreviewResult.binary(width)

    if method == PreviewMethod.BAT:
        try:
            raw = run_bat(bat_executable, path, bat_args, visible_lines)
        except FileManagerError as exc:
            logger.debug("bat preview unavailable for %s: %s", path, exc)
        else:
            return PreviewResult.text([fit_ansi_to_width(line, width) for line in raw], styled=True, truncated=False)

    try:
        raw, truncated = read_head_lines(path, visible_lines, max(width, 1) * LINE_READ_FACTOR)
    except OSError as exc:
        return PreviewResult.failure(classify_os_error(exc, path), width)
    if not raw:
        return PreviewResult.empty_file(width)

    if method == PreviewMethod.PYGMENTS:
        colored = highlight_lines(raw, path, pygments_style)
        if colored is not None:
            return PreviewResult.text(
                [fit_ansi_to_width(line, width) for line in colored],
                styled=True,
                truncated=truncated,
            )

    return PreviewResult.text([fit_to_width(line, width) for line in raw], styled=False, truncated=truncated)


__all__ = [
    "MIN_PREVIEW_LINES",
    "DEFAULT_PREVIEW_LINES",
    "DEFAULT_MAX_PREVIEW_BYTES",
    "BINARY_PROBE_BYTES",
    "PreviewMethod",
    "PreviewKind",
    "PreviewResult",
    "preview_directory",
    "looks_binary",
    "read_head_lines",
    "read_preview",
]
