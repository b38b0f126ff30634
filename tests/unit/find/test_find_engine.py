"""Fuzzy find tests covering the fd path, the walking fallback and cancellation."""

from __future__ import annotations

import io
import itertools
import tempfile
import unittest
from pathlib import Path

from panefm.find import (
    DEFAULT_MAX_FIND_RESULTS,
    FindEngine,
    clamp_find_results,
    fd_command,
    fuzzy_score,
    walk_candidates,
)
from panefm.tools import ToolRegistry


class _FakeProcess:
    def __init__(self, lines: list[str], returncode: int = 0) -> None:
        self.stdout = io.StringIO("".join(lines))
        self.returncode: int | None = None
        self._final = returncode
        self.killed = False

    def poll(self) -> int | None:
        return self.returncode

    def kill(self) -> None:
        self.killed = True
        self.returncode = -9

    def communicate(self):
        if self.returncode is None:
            self.returncode = self._final
        return "", ""


def _no_tools() -> ToolRegistry:
    return ToolRegistry(which=lambda _name: None)


def _fd_tools() -> ToolRegistry:
    return ToolRegistry(which=lambda name: "/usr/bin/fd" if name == "fd" else None)


class ClampTests(unittest.TestCase):
    def test_result_cap_is_clamped(self) -> None:
        self.assertEqual(clamp_find_results(1), 15)
        self.assertEqual(clamp_find_results(5_000_000), 1_000_000)
        self.assertEqual(clamp_find_results(300), 300)
        self.assertEqual(clamp_find_results("many"), DEFAULT_MAX_FIND_RESULTS)
        self.assertEqual(clamp_find_results(True), DEFAULT_MAX_FIND_RESULTS)


class FuzzyScoreTests(unittest.TestCase):
    def test_non_matching_candidate_is_rejected(self) -> None:
        self.assertIsNone(fuzzy_score("xyz", "src/app.py"))

    def test_word_start_and_consecutive_matches_rank_higher(self) -> None:
        self.assertGreater(fuzzy_score("fb", "foo_bar"), fuzzy_score("fb", "fxxxxb"))
        self.assertGreater(fuzzy_score("app", "src/app.py"), fuzzy_score("app", "src/a_long_path_p.py"))

    def test_matching_is_case_insensitive(self) -> None:
        self.assertIsNotNone(fuzzy_score("READ", "docs/readme.md"))


class WalkCandidatesTests(unittest.TestCase):
    def test_walker_prunes_excluded_and_hidden_directories(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            (root / "src").mkdir()
            (root / "src" / "app.py").write_text("", encoding="utf-8")
            (root / "node_modules" / "pkg").mkdir(parents=True)
            (root / "node_modules" / "pkg" / "index.js").write_text("", encoding="utf-8")
            (root / ".config").mkdir()
            (root / ".config" / "settings.toml").write_text("", encoding="utf-8")

            hidden_off = dict(walk_candidates(root, show_hidden=False))
            hidden_on = dict(walk_candidates(root, show_hidden=True))

        self.assertEqual(hidden_off, {"src": True, "src/app.py": False})
        self.assertIn(".config/settings.toml", hidden_on)
        self.assertNotIn("node_modules", hidden_on)

    def test_fd_command_carries_excludes_and_hidden_flag(self) -> None:
        cmd = fd_command("fd", Path("/work"), show_hidden=True)

        self.assertEqual(cmd[:3], ["fd", ".", "/work"])
        self.assertIn("--hidden", cmd)
        self.assertIn("node_modules", cmd)
        self.assertNotIn("--hidden", fd_command("fd", Path("/work"), show_hidden=False))


class FindEngineTests(unittest.TestCase):
    def test_walk_fallback_returns_best_matches_first(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            (root / "docs").mkdir()
            (root / "docs" / "readme.md").write_text("", encoding="utf-8")
            (root / "random_earth_data.txt").write_text("", encoding="utf-8")
            (root / "unrelated.txt").write_text("", encoding="utf-8")

            matches, stopped = FindEngine(_no_tools()).search(root, "readme", 20)

        self.assertFalse(stopped)
        self.assertEqual(matches[0].relative, "docs/readme.md")
        self.assertEqual(matches[0].path, root / "docs" / "readme.md")
        self.assertFalse(matches[0].is_directory)
        self.assertNotIn("unrelated.txt", [m.relative for m in matches])

    def test_empty_query_returns_nothing(self) -> None:
        self.assertEqual(FindEngine(_no_tools()).search(Path("/"), "", 20), ([], False))

    def test_results_are_capped(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            for i in range(40):
                (root / f"file{i}.txt").write_text("", encoding="utf-8")

            matches, _ = FindEngine(_no_tools()).search(root, "file", 1)

        self.assertEqual(len(matches), 15)

    def test_fd_output_is_parsed_relative_to_root(self) -> None:
        calls = []

        def popen(cmd, **kwargs):
            calls.append(cmd)
            return _FakeProcess(["/work/src/\n", "/work/src/main.py\n", "/work/notes.md\n"])

        matches, stopped = FindEngine(_fd_tools(), popen=popen).search(Path("/work"), "main", 20)

        self.assertFalse(stopped)
        self.assertEqual(calls[0][0], "/usr/bin/fd")
        self.assertEqual([m.relative for m in matches], ["src/main.py"])

    def test_fd_directory_marker_sets_is_directory(self) -> None:
        def popen(cmd, **kwargs):
            return _FakeProcess(["/work/src/\n"])

        matches, _ = FindEngine(_fd_tools(), popen=popen).search(Path("/work"), "src", 20)

        self.assertTrue(matches[0].is_directory)

    def test_fd_launch_failure_falls_back_to_walk(self) -> None:
        def popen(cmd, **kwargs):
            raise FileNotFoundError(2, "No such file or directory", cmd[0])

        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            (root / "walked.txt").write_text("", encoding="utf-8")

            matches, _ = FindEngine(_fd_tools(), popen=popen).search(root, "walked", 20)

        self.assertEqual([m.relative for m in matches], ["walked.txt"])

    def test_cancelled_search_stops_and_kills_helper(self) -> None:
        processes = []

        def popen(cmd, **kwargs):
            proc = _FakeProcess([f"/work/f{i}\n" for i in range(100)])
            processes.append(proc)
            return proc

        matches, stopped = FindEngine(_fd_tools(), popen=popen).search(
            Path("/work"), "f", 20, is_cancelled=lambda: True
        )

        self.assertTrue(stopped)
        self.assertEqual(matches, [])
        self.assertTrue(processes[0].killed)

    def test_progress_snapshots_are_reported(self) -> None:
        clock = itertools.count(0.0, 0.2).__next__
        snapshots = []
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            for name in ("alpha.txt", "alpine.txt", "altitude.txt"):
                (root / name).write_text("", encoding="utf-8")

            matches, _ = FindEngine(_no_tools(), clock=clock).search(
                root, "al", 20, on_progress=snapshots.append
            )

        self.assertTrue(snapshots)
        self.assertLessEqual(len(snapshots[0]), len(matches))
        self.assertEqual(len(matches), 3)


if __name__ == "__main__":
    unittest.main()
