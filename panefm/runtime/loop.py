"""Main interactive event loop for the terminal UI.

Each iteration ticks the session, repaints when something changed, and
waits briefly for a key. The short key timeout is what lets debounced
previews and finds fire without any timer thread.
"""

from __future__ import annotations

import logging
import shutil
import sys
from dataclasses import dataclass
from pathlib import Path

from ..config import Settings
from ..editor import launch_editor
from ..session import Session
from .actions import handle_normal_key
from .input import read_key
from .prompt import Prompt, handle_prompt_key
from .render import PaneGeometry, compose_frame, render_frame
from .terminal import TerminalController

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RuntimeLoopTiming:
    """Timing constants controlling interactive loop behavior."""

    key_timeout_ms: int = 15


def run_main_loop(
    session: Session,
    terminal: TerminalController,
    stdin_fd: int,
    timing: RuntimeLoopTiming = RuntimeLoopTiming(),
) -> None:
    """Run until a quit action occurs."""
    keymap = session.settings.keymap
    prompt: Prompt | None = None
    main_start = 0
    last_size: tuple[int, int] | None = None

    while True:
        term = shutil.get_terminal_size((80, 24))
        geometry = PaneGeometry.for_terminal(session, term.columns, term.lines)
        session.resize_preview(geometry.preview, geometry.rows)
        if (term.columns, term.lines) != last_size:
            last_size = (term.columns, term.lines)
            session.dirty = True

        session.tick()
        if session.dirty:
            rows, main_start = compose_frame(session, prompt, term.columns, term.lines, main_start)
            render_frame(terminal.write, rows)
            session.dirty = False

        try:
            key = read_key(stdin_fd, timeout_ms=timing.key_timeout_ms)
        except KeyboardInterrupt:
            continue
        if key == "":
            continue

        if prompt is not None:
            prompt = handle_prompt_key(session, prompt, key)
            session.dirty = True
            continue

        outcome = handle_normal_key(session, keymap, key, page_rows=geometry.rows)
        if outcome.quit:
            break
        if outcome.prompt is not None:
            prompt = outcome.prompt
            session.dirty = True


def run_app(start_path: Path, settings: Settings) -> None:
    """Start workers, take over the terminal, and run the main loop."""
    stdin_fd = sys.stdin.fileno()
    terminal = TerminalController(stdin_fd, sys.stdout.fileno())
    session = Session(
        start_path,
        settings,
        editor=lambda target: launch_editor(settings.editor.command, target, terminal.leave, terminal.enter),
    )
    session.start()
    try:
        with terminal.raw_mode():
            run_main_loop(session, terminal, stdin_fd)
    finally:
        session.shutdown()
        logger.info("session ended in %s", session.nav.current_path)


__all__ = ["RuntimeLoopTiming", "run_app", "run_main_loop"]
