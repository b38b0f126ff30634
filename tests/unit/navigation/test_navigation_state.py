"""Navigation state tests.

Covers the listing swap, cursor movement and wrapping, per-directory
filters, markers and the clipboard.
"""

from __future__ import annotations

import unittest
from pathlib import Path

from panefm.entries import Entry, Listing
from panefm.navigation import ClipboardMode, NavigationState


def _listing(path: Path, *names: str) -> Listing:
    entries = tuple(
        Entry(path=path / name.rstrip("/"), display_name=name.rstrip("/"), is_directory=name.endswith("/"))
        for name in names
    )
    return Listing(path=path, entries=entries)


ROOT = Path("/root-dir")
SUB = ROOT / "sub"


class SetPathTests(unittest.TestCase):
    def test_set_path_never_clears_entries_before_listing_arrives(self) -> None:
        state = NavigationState(ROOT)
        state.apply_listing(_listing(ROOT, "sub/", "a.txt", "b.txt"))
        before = state.entries

        for target in (SUB, ROOT / "other", SUB, Path("/elsewhere")):
            state.set_path(target)
            self.assertEqual(state.entries, before)
            self.assertEqual(state.current_path, ROOT)

        state.apply_listing(_listing(Path("/elsewhere"), "x"))
        self.assertEqual([e.display_name for e in state.entries], ["x"])
        self.assertIsNone(state.pending_path)

    def test_set_path_reports_whether_a_read_is_needed(self) -> None:
        state = NavigationState(ROOT)
        self.assertTrue(state.set_path(ROOT))
        self.assertFalse(state.set_path(ROOT))
        state.apply_listing(_listing(ROOT, "a"))

        self.assertFalse(state.set_path(ROOT))
        self.assertTrue(state.set_path(SUB))
        self.assertFalse(state.set_path(SUB))
        self.assertTrue(state.set_path(ROOT))

    def test_navigation_failure_keeps_current_listing(self) -> None:
        state = NavigationState(ROOT)
        state.apply_listing(_listing(ROOT, "sub/", "a"))
        state.set_path(SUB)

        state.navigation_failed(SUB)

        self.assertIsNone(state.pending_path)
        self.assertEqual(state.current_path, ROOT)
        self.assertEqual(len(state.entries), 2)


class ApplyListingTests(unittest.TestCase):
    def test_focus_path_wins(self) -> None:
        state = NavigationState(ROOT)
        state.apply_listing(_listing(ROOT, "a", "b", "c"), focus=ROOT / "c")

        self.assertEqual(state.selected_path(), ROOT / "c")

    def test_same_directory_refresh_keeps_selected_path(self) -> None:
        state = NavigationState(ROOT)
        state.apply_listing(_listing(ROOT, "a", "b", "c"))
        state.select_path(ROOT / "b")

        state.apply_listing(_listing(ROOT, "0", "a", "b", "c"))

        self.assertEqual(state.selected_path(), ROOT / "b")

    def test_refresh_clamps_when_selection_disappears(self) -> None:
        state = NavigationState(ROOT)
        state.apply_listing(_listing(ROOT, "a", "b", "c"))
        state.go_to_bottom()

        state.apply_listing(_listing(ROOT, "a"))

        self.assertEqual(state.selection_index, 0)

    def test_new_directory_starts_at_top(self) -> None:
        state = NavigationState(ROOT)
        state.apply_listing(_listing(ROOT, "a", "b", "c"))
        state.go_to_bottom()

        state.apply_listing(_listing(SUB, "x", "y", "z"))

        self.assertEqual(state.selection_index, 0)

    def test_returning_to_directory_restores_remembered_selection(self) -> None:
        state = NavigationState(ROOT)
        state.apply_listing(_listing(ROOT, "a", "b", "c"))
        state.select_path(ROOT / "c")
        state.apply_listing(_listing(SUB, "x"))

        state.apply_listing(_listing(ROOT, "a", "b", "c"))

        self.assertEqual(state.selected_path(), ROOT / "c")


class MoveSelectionTests(unittest.TestCase):
    def setUp(self) -> None:
        self.state = NavigationState(ROOT)
        self.state.apply_listing(_listing(ROOT, "a", "b", "c", "d"))

    def test_index_always_stays_in_range(self) -> None:
        for delta in (1, 5, -3, -100, 100, 2, -1, 7, -7, 0):
            self.state.move_selection(delta)
            self.assertGreaterEqual(self.state.selection_index, 0)
            self.assertLess(self.state.selection_index, 4)

    def test_stepping_past_the_end_wraps_to_start(self) -> None:
        self.state.go_to_bottom()

        self.assertTrue(self.state.move_selection(1))
        self.assertEqual(self.state.selection_index, 0)
        self.assertTrue(self.state.move_selection(-1))
        self.assertEqual(self.state.selection_index, 3)

    def test_large_jump_stops_at_edge_before_wrapping(self) -> None:
        self.state.move_selection(1)

        self.state.move_selection(10)

        self.assertEqual(self.state.selection_index, 3)

    def test_wrap_disabled_clamps(self) -> None:
        self.state.go_to_bottom()

        self.assertFalse(self.state.move_selection(1, wrap=False))
        self.assertEqual(self.state.selection_index, 3)

    def test_empty_listing_never_moves(self) -> None:
        state = NavigationState(ROOT)
        state.apply_listing(_listing(ROOT))

        self.assertFalse(state.move_selection(1))
        self.assertEqual(state.selection_index, 0)
        self.assertIsNone(state.selected_entry())


class FilterTests(unittest.TestCase):
    def test_filter_is_case_insensitive_substring_and_follows_selection(self) -> None:
        state = NavigationState(ROOT)
        state.apply_listing(_listing(ROOT, "Alpha", "beta", "gamma", "ALPINE"))
        state.select_path(ROOT / "ALPINE")

        state.apply_filter("alp")

        self.assertEqual([e.display_name for e in state.visible_entries], ["Alpha", "ALPINE"])
        self.assertEqual(state.selected_path(), ROOT / "ALPINE")

    def test_case_sensitive_filter(self) -> None:
        state = NavigationState(ROOT, case_insensitive=False)
        state.apply_listing(_listing(ROOT, "Alpha", "alpha"))

        state.apply_filter("al")

        self.assertEqual([e.display_name for e in state.visible_entries], ["alpha"])

    def test_filter_reapplies_when_returning_to_directory(self) -> None:
        state = NavigationState(ROOT)
        state.apply_listing(_listing(ROOT, "apple", "banana", "cherry"))
        state.apply_filter("an")
        state.apply_listing(_listing(SUB, "x", "y"))

        self.assertEqual(state.filter, "")
        self.assertEqual(len(state.visible_entries), 2)

        state.apply_listing(_listing(ROOT, "apple", "banana", "cherry"))

        self.assertEqual(state.filter, "an")
        self.assertEqual([e.display_name for e in state.visible_entries], ["banana"])

    def test_clear_filter_restores_full_listing(self) -> None:
        state = NavigationState(ROOT)
        state.apply_listing(_listing(ROOT, "apple", "banana"))
        state.apply_filter("zzz")
        self.assertEqual(state.visible_entries, ())

        state.clear_filter()

        self.assertEqual(len(state.visible_entries), 2)
        self.assertEqual(state.selection_index, 0)


class MarkerAndClipboardTests(unittest.TestCase):
    def setUp(self) -> None:
        self.state = NavigationState(ROOT)
        self.state.apply_listing(_listing(ROOT, "a", "b", "c"))

    def test_toggle_marker_flips_membership(self) -> None:
        self.state.toggle_marker(ROOT / "a")
        self.assertIn(ROOT / "a", self.state.markers)
        self.state.toggle_marker(ROOT / "a")
        self.assertNotIn(ROOT / "a", self.state.markers)

    def test_toggle_advance_stops_on_last_row_without_jump(self) -> None:
        self.state.go_to_bottom()

        self.state.toggle_marker_advance(jump=False)

        self.assertEqual(self.state.selection_index, 2)
        self.assertEqual(self.state.markers, {ROOT / "c"})

    def test_toggle_advance_jumps_to_first_row_when_enabled(self) -> None:
        self.state.go_to_bottom()

        self.state.toggle_marker_advance(jump=True)

        self.assertEqual(self.state.selection_index, 0)

    def test_toggle_advance_moves_down(self) -> None:
        self.state.toggle_marker_advance()
        self.state.toggle_marker_advance()

        self.assertEqual(self.state.selection_index, 2)
        self.assertEqual(self.state.markers, {ROOT / "a", ROOT / "b"})

    def test_action_targets_prefer_markers_over_selection(self) -> None:
        self.assertEqual(self.state.action_targets(), [ROOT / "a"])
        self.state.toggle_marker(ROOT / "c")
        self.state.toggle_marker(ROOT / "b")

        self.assertEqual(self.state.action_targets(), [ROOT / "b", ROOT / "c"])

    def test_stale_markers_are_tolerated_after_refresh(self) -> None:
        self.state.toggle_marker(ROOT / "b")

        self.state.apply_listing(_listing(ROOT, "a", "c"))

        self.assertEqual(self.state.markers, {ROOT / "b"})

    def test_marking_a_yanked_path_reclaims_it_from_clipboard(self) -> None:
        self.state.set_clipboard(ClipboardMode.CUT, [ROOT / "a", ROOT / "b"])

        self.state.toggle_marker(ROOT / "a")

        self.assertEqual(self.state.clipboard.paths, frozenset({ROOT / "b"}))
        self.assertIn(ROOT / "a", self.state.markers)

        self.state.toggle_marker(ROOT / "b")
        self.assertIsNone(self.state.clipboard)

    def test_empty_clipboard_request_is_ignored(self) -> None:
        self.state.set_clipboard(ClipboardMode.COPY, [])

        self.assertIsNone(self.state.clipboard)

    def test_clear_clipboard(self) -> None:
        self.state.set_clipboard(ClipboardMode.COPY, {ROOT / "a"})
        self.assertEqual(self.state.clipboard.mode, ClipboardMode.COPY)

        self.state.clear_clipboard()

        self.assertIsNone(self.state.clipboard)


if __name__ == "__main__":
    unittest.main()
