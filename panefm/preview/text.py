"""Exact-width line shaping for preview output.

Every preview line leaves the worker already fitted to the pane: control
characters removed, tabs expanded, wide characters measured, then clipped
or padded. ANSI colour sequences produced by highlighters are kept intact
and do not count toward the width.
"""

from __future__ import annotations

import re
import unicodedata

ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-9;?]*[ -/]*[@-~]")
TAB_STOP = 4
RESET = "\033[0m"


def char_display_width(ch: str, col: int = 0) -> int:
    """Return terminal column width for one character at visual column ``col``.

    Tabs expand to the next 4-column stop, control characters and combining
    marks consume no columns, East Asian wide/fullwidth characters consume two.
    """
    if ch == "\t":
        return TAB_STOP - (col % TAB_STOP)
    if unicodedata.category(ch) in {"Cc", "Cf"}:
        return 0
    if unicodedata.combining(ch):
        return 0
    if unicodedata.east_asian_width(ch) in {"W", "F"}:
        return 2
    return 1


def display_width(text: str) -> int:
    """Visible width of ``text`` ignoring ANSI escape sequences."""
    col = 0
    for ch in ANSI_ESCAPE_RE.sub("", text):
        col += char_display_width(ch, col)
    return col


def fit_to_width(text: str, width: int) -> str:
    """Sanitize ``text`` and return it padded/truncated to exactly ``width`` columns."""
    if width <= 0:
        return ""
    out: list[str] = []
    col = 0
    for ch in text:
        if ch == "\t":
            spaces = TAB_STOP - (col % TAB_STOP)
            if col + spaces > width:
                break
            out.append(" " * spaces)
            col += spaces
            continue
        if unicodedata.category(ch) == "Cc":
            continue
        w = char_display_width(ch, col)
        if col + w > width:
            break
        out.append(ch)
        col += w
    if col < width:
        out.append(" " * (width - col))
    return "".join(out)


def fit_ansi_to_width(text: str, width: int) -> str:
    """Like ``fit_to_width`` but passes SGR colour sequences through.

    Non-SGR escape sequences are dropped. Lines that carried styling are
    terminated with a reset so colour never bleeds into the next pane.
    """
    if width <= 0:
        return ""
    out: list[str] = []
    col = 0
    styled = False
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == "\x1b":
            match = ANSI_ESCAPE_RE.match(text, i)
            if match:
                seq = match.group(0)
                if seq.endswith("m"):
                    out.append(seq)
                    styled = True
                i = match.end()
                continue
            i += 1
            continue
        if ch == "\t":
            spaces = TAB_STOP - (col % TAB_STOP)
            if col + spaces > width:
                break
            out.append(" " * spaces)
            col += spaces
            i += 1
            continue
        if unicodedata.category(ch) == "Cc":
            i += 1
            continue
        w = char_display_width(ch, col)
        if col + w > width:
            break
        out.append(ch)
        col += w
        i += 1
    if styled:
        out.append(RESET)
    if col < width:
        out.append(" " * (width - col))
    return "".join(out)


__all__ = [
    "ANSI_ESCAPE_RE",
    "TAB_STOP",
    "RESET",
    "char_display_width",
    "display_width",
    "fit_to_width",
    "fit_ansi_to_width",
]
