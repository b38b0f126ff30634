"""Command-line front door for panefm.

Parses CLI options, handles the one-shot config/keybinding commands, then
resolves the start directory and hands over to the interactive runtime.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from . import __version__
from .config import CONFIG_HELP, discover_config_path, format_keybinds, load_settings, write_default_config
from .logging_setup import configure_logging, parse_log_level
from .runtime import run_app

logger = logging.getLogger(__name__)


def _log_level(value: str) -> int:
    """argparse type for logging level names."""
    try:
        return parse_log_level(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="panefm",
        description="Terminal file manager with parent, listing and preview panes.",
    )
    parser.add_argument("path", nargs="?", default=None, help="Start directory. Defaults to current directory.")
    parser.add_argument("--init", action="store_true", help="Write a minimal config file and exit.")
    parser.add_argument("--init-full", action="store_true", help="Write a fully commented config file and exit.")
    parser.add_argument("--config-help", action="store_true", help="Describe every configuration key and exit.")
    parser.add_argument("--keybinds", action="store_true", help="Print the active key bindings and exit.")
    parser.add_argument("-v", "--version", action="version", version=f"panefm {__version__}")
    parser.add_argument("--log-file", type=Path, default=None, help="Write diagnostics to this file.")
    parser.add_argument(
        "--log-level",
        type=_log_level,
        default=logging.WARNING,
        help="Log level name (default: WARNING).",
    )
    return parser


def resolve_start_path(raw: str | None, default_path: Path) -> Path:
    """Return the absolute start directory; a file argument starts in its parent."""
    path = Path(raw).expanduser() if raw else default_path
    if not path.exists():
        raise SystemExit(f"Path not found: {path}")
    path = path.resolve()
    return path if path.is_dir() else path.parent


def main(default_path: Path | None = None, argv: list[str] | None = None) -> None:
    """Parse CLI arguments and launch panefm.

    ``default_path`` and ``argv`` are primarily for tests; when omitted the
    current working directory and ``sys.argv`` are used.
    """
    args = build_parser().parse_args(argv)

    if args.config_help:
        sys.stdout.write(CONFIG_HELP)
        return
    if args.init or args.init_full:
        target = discover_config_path()
        try:
            written = write_default_config(target, full=args.init_full)
        except FileExistsError as exc:
            raise SystemExit(str(exc)) from exc
        sys.stdout.write(f"Wrote {written}\n")
        return

    configure_logging(args.log_file, args.log_level)
    settings = load_settings()
    if args.keybinds:
        sys.stdout.write(format_keybinds(settings.keymap))
        return

    start = resolve_start_path(args.path, default_path if default_path is not None else Path.cwd())
    logger.info("starting in %s (config: %s)", start, settings.source)
    run_app(start, settings)


__all__ = ["build_parser", "main", "resolve_start_path"]
