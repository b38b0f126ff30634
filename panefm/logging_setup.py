"""Log file configuration.

The TUI owns the terminal, so log records only ever go to a rotating file.
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from platformdirs import user_log_dir

DEFAULT_LOG_PATH = Path(user_log_dir("panefm", appauthor=False)) / "panefm.log"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(threadName)s - %(name)s - %(message)s"
LOG_MAX_BYTES = 2 * 1024 * 1024
LOG_BACKUP_COUNT = 3


def parse_log_level(value: str) -> int:
    level = logging.getLevelName(str(value).strip().upper())
    if not isinstance(level, int):
        raise ValueError(f"unknown log level: {value!r}")
    return level


def configure_logging(log_file: Path | None = None, level: int = logging.WARNING) -> Path | None:
    """Attach a rotating file handler to the root logger.

    Returns the log path, or ``None`` when the file could not be opened (in
    which case records are dropped rather than written to the screen).
    """
    path = log_file if log_file is not None else DEFAULT_LOG_PATH
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = RotatingFileHandler(
            path,
            maxBytes=LOG_MAX_BYTES,
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
    except OSError:
        root.addHandler(logging.NullHandler())
        return None
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    return path


__all__ = ["DEFAULT_LOG_PATH", "configure_logging", "parse_log_level"]
