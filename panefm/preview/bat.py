"""Invocation contract for the ``bat`` preview helper."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from ..errors import ExternalToolMissingError, FileIOError

logger = logging.getLogger(__name__)

BAT_TIMEOUT_SECONDS = 2.0
_STYLES = {"plain", "numbers", "full"}


def bat_arguments(*, style: str, theme: str, wrap: bool, width: int) -> tuple[str, ...]:
    """Build the ``bat`` flag list for one preview pane configuration."""
    if style not in _STYLES:
        style = "plain"
    return (
        "--color=always",
        "--paging=never",
        f"--terminal-width={max(1, width)}",
        f"--style={style}",
        f"--theme={theme}",
        "--wrap=character" if wrap else "--wrap=never",
    )


def run_bat(executable: str | None, path: Path, args: tuple[str, ...], max_lines: int) -> list[str]:
    """Run ``bat`` on ``path`` and return at most ``max_lines`` output lines.

    Raises ``ExternalToolMissingError`` when no executable was found and
    ``FileIOError`` when the helper fails; callers fall back to the internal
    reader on either.
    """
    if executable is None:
        raise ExternalToolMissingError("bat is not installed", path)

    cmd = [executable, *args, f"--line-range=:{max(1, max_lines)}", "--", str(path)]
    try:
        proc = subprocess.run(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=BAT_TIMEOUT_SECONDS,
            check=False,
        )
    except (OSError, subprocess.SubprocessError) as exc:
        raise FileIOError(f"failed to run bat: {exc}", path) from exc

    if proc.returncode != 0:
        err = proc.stderr.strip() or f"bat failed with exit code {proc.returncode}"
        logger.debug("bat failed for %s: %s", path, err)
        raise FileIOError(err, path)

    return proc.stdout.splitlines()[:max_lines]


__all__ = [
    "BAT_TIMEOUT_SECONDS",
    "bat_arguments",
    "run_bat",
]
