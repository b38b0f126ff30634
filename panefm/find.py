"""Recursive fuzzy find below a root directory.

Candidates come from ``fd`` when the tool registry knows of one, otherwise
from an ``os.walk`` fallback that prunes the same directories. Each candidate
relative path is fuzzy-scored against the query and the best
``max_results`` are kept. Scanning reports intermediate results through a
progress callback and stops early once the caller says the search is stale.
"""

from __future__ import annotations

import heapq
import logging
import os
import subprocess
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from pathlib import Path

from .tools import ToolRegistry

logger = logging.getLogger(__name__)

DEFAULT_MAX_FIND_RESULTS = 2_000
MIN_FIND_RESULTS = 15
MAX_FIND_RESULTS = 1_000_000
SCAN_CAP = 1_000_000
PROGRESS_INTERVAL_SECONDS = 0.15
CANCEL_CHECK_EVERY = 256

FIND_EXCLUDES: tuple[str, ...] = (
    ".git",
    ".hg",
    ".svn",
    ".rustup",
    ".cargo",
    "target",
    "node_modules",
    "dist",
    ".local",
    "venv",
    ".venv",
    "__pycache__",
    ".DS_Store",
    "build",
    "out",
    "bin",
    "obj",
    ".cache",
)


@dataclass(frozen=True)
class FindMatch:
    path: Path
    relative: str
    score: int
    is_directory: bool


def clamp_find_results(value: object, default: int = DEFAULT_MAX_FIND_RESULTS) -> int:
    """Coerce a configured result cap into ``[15, 1_000_000]``."""
    if isinstance(value, bool):
        return default
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if not isinstance(value, int):
        return default
    return max(MIN_FIND_RESULTS, min(MAX_FIND_RESULTS, value))


def fuzzy_score(query: str, candidate: str) -> int | None:
    """Score ``candidate`` against ``query``; ``None`` when it does not match.

    Consecutive runs and matches at word starts score higher, long
    candidates and gaps between matched characters score lower.
    """
    if not query:
        return 0
    query_folded = query.casefold()
    candidate_folded = candidate.casefold()

    score = 0
    prev_idx = -1
    run = 0
    for needle in query_folded:
        idx = candidate_folded.find(needle, prev_idx + 1)
        if idx < 0:
            return None
        if idx == prev_idx + 1:
            run += 1
            score += 20 + min(16, run * 4)
        else:
            gap = idx - prev_idx - 1
            run = 0
            score -= min(40, gap * 2)
        if idx == 0 or candidate_folded[idx - 1] in "/_- .":
            score += 35
        prev_idx = idx

    score -= len(candidate_folded) // 5
    return score


def _is_hidden_relative(relative: str) -> bool:
    return any(part.startswith(".") for part in relative.split("/"))


def walk_candidates(root: Path, show_hidden: bool) -> Iterator[tuple[str, bool]]:
    """Yield ``(relative_path, is_directory)`` for everything below ``root``."""
    excluded = set(FIND_EXCLUDES)
    for dirpath, dirnames, filenames in os.walk(root, followlinks=False):
        base = Path(dirpath)
        dirnames[:] = sorted(
            name
            for name in dirnames
            if name not in excluded and (show_hidden or not name.startswith("."))
        )
        try:
            relative_base = base.relative_to(root).as_posix()
        except ValueError:
            continue
        prefix = "" if relative_base == "." else relative_base + "/"
        for name in dirnames:
            yield prefix + name, True
        for name in sorted(filenames):
            if name in excluded or (not show_hidden and name.startswith(".")):
                continue
            yield prefix + name, False


def fd_command(executable: str, root: Path, show_hidden: bool, scan_cap: int = SCAN_CAP) -> list[str]:
    cmd = [executable, ".", str(root), "--type", "f", "--type", "d"]
    if show_hidden:
        cmd.append("--hidden")
    for name in FIND_EXCLUDES:
        cmd.extend(["--exclude", name])
    cmd.extend(["--color", "never", "--max-results", str(scan_cap)])
    return cmd


def _relative_label(raw: str, root: Path) -> str:
    text = raw.strip().rstrip("/")
    if not text:
        return ""
    root_text = str(root).rstrip("/")
    if text == root_text:
        return ""
    if text.startswith(root_text + "/"):
        text = text[len(root_text) + 1:]
    elif text.startswith("./"):
        text = text[2:]
    return text


class FindEngine:
    """Fuzzy path search with an external helper and a walking fallback."""

    def __init__(
        self,
        tools: ToolRegistry,
        popen: Callable[..., subprocess.Popen] = subprocess.Popen,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._tools = tools
        self._popen = popen
        self._clock = clock

    def _fd_candidates(
        self,
        executable: str,
        root: Path,
        show_hidden: bool,
        should_stop: Callable[[], bool],
    ) -> Iterator[tuple[str, bool | None]]:
        proc = self._popen(
            fd_command(executable, root, show_hidden),
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            text=True,
            encoding="utf-8",
            errors="replace",
        )
        stopped = False
        try:
            assert proc.stdout is not None
            for raw in proc.stdout:
                if should_stop():
                    stopped = True
                    break
                label = _relative_label(raw, root)
                if label:
                    # fd marks directories with a trailing separator.
                    yield label, True if raw.rstrip("\r\n").endswith("/") else None
        finally:
            if proc.poll() is None:
                proc.kill()
            proc.communicate()
        if not stopped and proc.returncode not in (0, None):
            logger.warning("fd exited with status %s in %s", proc.returncode, root)

    def search(
        self,
        root: Path,
        query: str,
        max_results: int,
        *,
        show_hidden: bool = False,
        is_cancelled: Callable[[], bool] | None = None,
        on_progress: Callable[[list[FindMatch]], None] | None = None,
    ) -> tuple[list[FindMatch], bool]:
        """Return ``(matches, stopped_early)`` best-first.

        ``on_progress`` receives the current best-first snapshot roughly every
        ``PROGRESS_INTERVAL_SECONDS`` while scanning.
        """
        if not query:
            return [], False
        max_results = clamp_find_results(max_results)
        cancelled = is_cancelled if is_cancelled is not None else (lambda: False)

        heap: list[tuple[int, int, str, bool | None]] = []
        seen = 0
        stopped = False
        last_progress = self._clock()

        executable = self._tools.find_helper()
        candidates: Iterator[tuple[str, bool | None]]
        if executable is not None:
            try:
                candidates = self._fd_candidates(executable, root, show_hidden, cancelled)
                first = next(candidates, None)
            except OSError:
                logger.warning("failed to run %s, falling back to directory walk", executable, exc_info=True)
                executable = None
            else:
                candidates = _chain_first(first, candidates)
        if executable is None:
            candidates = walk_candidates(root, show_hidden)

        for label, is_dir in candidates:
            seen += 1
            if seen % CANCEL_CHECK_EVERY == 0 and cancelled():
                stopped = True
                break
            if seen > SCAN_CAP:
                stopped = True
                break
            score = fuzzy_score(query, label)
            if score is None:
                continue
            item = (score, -seen, label, is_dir)
            if len(heap) < max_results:
                heapq.heappush(heap, item)
            elif item > heap[0]:
                heapq.heapreplace(heap, item)
            if on_progress is not None and self._clock() - last_progress >= PROGRESS_INTERVAL_SECONDS:
                last_progress = self._clock()
                on_progress(self._materialize(root, heap))

        if cancelled():
            stopped = True
        return self._materialize(root, heap), stopped

    @staticmethod
    def _materialize(root: Path, heap: list[tuple[int, int, str, bool | None]]) -> list[FindMatch]:
        ordered = sorted(heap, reverse=True)
        out: list[FindMatch] = []
        for score, _order, label, is_dir in ordered:
            path = root / label
            out.append(
                FindMatch(
                    path=path,
                    relative=label,
                    score=score,
                    is_directory=path.is_dir() if is_dir is None else is_dir,
                )
            )
        return out


def _chain_first(
    first: tuple[str, bool | None] | None,
    rest: Iterator[tuple[str, bool | None]],
) -> Iterator[tuple[str, bool | None]]:
    if first is None:
        return
    yield first
    yield from rest


__all__ = [
    "DEFAULT_MAX_FIND_RESULTS",
    "MIN_FIND_RESULTS",
    "MAX_FIND_RESULTS",
    "SCAN_CAP",
    "FIND_EXCLUDES",
    "FindMatch",
    "FindEngine",
    "clamp_find_results",
    "fd_command",
    "fuzzy_score",
    "walk_candidates",
]
