"""Raw-mode and alternate-screen handling for one interactive run."""

from __future__ import annotations

import contextlib
import os
import termios
import tty

ENTER_SCREEN = b"\x1b[?1049h\x1b[?25l\x1b[2J"
LEAVE_SCREEN = b"\x1b[0m\x1b[?25h\x1b[?1049l"


class TerminalController:
    """Owns the tty settings of ``stdin_fd`` and the screen on ``stdout_fd``."""

    def __init__(self, stdin_fd: int, stdout_fd: int) -> None:
        self.stdin_fd = stdin_fd
        self.stdout_fd = stdout_fd
        self._saved_attrs = termios.tcgetattr(stdin_fd)

    def enter(self) -> None:
        tty.setraw(self.stdin_fd, termios.TCSAFLUSH)
        os.write(self.stdout_fd, ENTER_SCREEN)

    def leave(self) -> None:
        """Reset colours, show the cursor and give the terminal back as found."""
        os.write(self.stdout_fd, LEAVE_SCREEN)
        termios.tcsetattr(self.stdin_fd, termios.TCSAFLUSH, self._saved_attrs)

    def write(self, frame: str) -> None:
        os.write(self.stdout_fd, frame.encode("utf-8", errors="replace"))

    @contextlib.contextmanager
    def raw_mode(self):
        self.enter()
        try:
            yield self
        finally:
            self.leave()


__all__ = ["TerminalController"]
