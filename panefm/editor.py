"""External editor launch for the open action on files.

Runs the configured editor command while the TUI is suspended. Returns an
error message string instead of raising so the session can show it on the
status line.
"""

from __future__ import annotations

import logging
import os
import shlex
import shutil
import subprocess
from collections.abc import Callable, Mapping
from pathlib import Path

logger = logging.getLogger(__name__)

FALLBACK_EDITOR = "vi"


def default_editor_command(environ: Mapping[str, str] | None = None) -> str:
    """``$VISUAL``, then ``$EDITOR``, then plain ``vi``."""
    env = os.environ if environ is None else environ
    for name in ("VISUAL", "EDITOR"):
        value = env.get(name, "").strip()
        if value:
            return value
    return FALLBACK_EDITOR


def launch_editor(
    command: str,
    target: Path,
    suspend: Callable[[], None],
    resume: Callable[[], None],
    *,
    which: Callable[[str], str | None] = shutil.which,
    run: Callable[..., object] = subprocess.run,
) -> str | None:
    try:
        argv = shlex.split(command)
    except ValueError as exc:
        return f"Bad editor command {command!r}: {exc}"
    if not argv:
        return "No editor configured"
    if which(argv[0]) is None:
        return f"Editor '{argv[0]}' not found"

    suspend()
    try:
        run([*argv, str(target)], check=False)
    except OSError as exc:
        logger.warning("editor %s failed: %s", argv[0], exc)
        return f"Failed to launch editor: {exc}"
    finally:
        resume()
    return None


__all__ = ["FALLBACK_EDITOR", "default_editor_command", "launch_editor"]
