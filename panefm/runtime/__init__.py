"""Public runtime entry points.

The terminal-facing pieces (raw mode, key decoding, frame painting) are
imported lazily so that the core can be used without a tty.
"""

from __future__ import annotations


def run_app(*args, **kwargs):
    """Lazily import the app entrypoint to keep ``termios`` off the import path."""
    from .loop import run_app as _run_app

    return _run_app(*args, **kwargs)


def run_main_loop(*args, **kwargs):
    """Lazily import loop runner to avoid package-import cycles."""
    from .loop import run_main_loop as _run_main_loop

    return _run_main_loop(*args, **kwargs)


__all__ = [
    "run_app",
    "run_main_loop",
]
