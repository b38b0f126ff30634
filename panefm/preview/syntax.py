"""Pygments-backed syntax colouring for file previews.

Pygments is imported lazily on first use so that startup and listing-only
sessions stay fast.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_STYLE = "monokai"


@lru_cache(maxsize=None)
def _style_name(style: str) -> str:
    """Return ``style`` if Pygments knows it, else the default style."""
    from pygments.styles import get_style_by_name
    from pygments.util import ClassNotFound

    try:
        get_style_by_name(style)
    except ClassNotFound:
        logger.warning("unknown pygments style %r, using %s", style, DEFAULT_STYLE)
        return DEFAULT_STYLE
    return style


@lru_cache(maxsize=None)
def _formatter(style: str):
    from pygments.formatters import Terminal256Formatter

    return Terminal256Formatter(style=_style_name(style))


def _lexer_for(path: Path, source: str):
    from pygments.lexers import TextLexer, get_lexer_for_filename
    from pygments.util import ClassNotFound

    try:
        return get_lexer_for_filename(path.name, source, stripnl=False, ensurenl=False)
    except ClassNotFound:
        return TextLexer(stripnl=False, ensurenl=False)


def highlight_lines(lines: list[str], path: Path, style: str = DEFAULT_STYLE) -> list[str] | None:
    """Colour ``lines`` for ``path`` and return one ANSI string per input line.

    Returns ``None`` when highlighting fails, so the caller can fall back to
    plain text.
    """
    if not lines:
        return []
    from pygments import highlight

    source = "\n".join(lines) + "\n"
    try:
        rendered = highlight(source, _lexer_for(path, source), _formatter(style))
    except Exception:
        logger.debug("pygments failed on %s", path, exc_info=True)
        return None

    out = rendered.split("\n")[: len(lines)]
    out.extend("" for _ in range(len(lines) - len(out)))
    return out


__all__ = [
    "DEFAULT_STYLE",
    "highlight_lines",
]
