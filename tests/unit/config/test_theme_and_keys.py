"""Theme layering and key chord parsing tests."""

from __future__ import annotations

import unittest

from panefm.config import DEFAULT_KEYS, Keymap, format_keybinds, parse_chord, resolve_theme
from panefm.config.theme import available_theme_names, parse_color


class ParseColorTests(unittest.TestCase):
    def test_named_hex_and_palette_colors(self) -> None:
        self.assertEqual(parse_color("cyan"), "\033[36m")
        self.assertEqual(parse_color("bright_black"), "\033[90m")
        self.assertEqual(parse_color("red", background=True), "\033[41m")
        self.assertEqual(parse_color("#fff"), "\033[38;2;255;255;255m")
        self.assertEqual(parse_color("#102030", background=True), "\033[48;2;16;32;48m")
        self.assertEqual(parse_color(200), "\033[38;5;200m")
        self.assertEqual(parse_color("200"), "\033[38;5;200m")

    def test_default_and_unknown_values_yield_nothing(self) -> None:
        self.assertIsNone(parse_color("default"))
        self.assertIsNone(parse_color("#12"))
        self.assertIsNone(parse_color(300))
        self.assertIsNone(parse_color(True))
        with self.assertLogs("panefm.config.theme", level="WARNING"):
            self.assertIsNone(parse_color("not-a-colour"))


class ResolveThemeTests(unittest.TestCase):
    def test_builtin_defaults(self) -> None:
        theme = resolve_theme(None)

        self.assertEqual(theme.name, "default")
        self.assertEqual(theme.main.directory, "\033[34m")
        self.assertEqual(theme.main.entry, "")
        self.assertEqual(theme.marker_icon, "*")
        self.assertEqual(theme.bat_theme(), "TwoDark")

    def test_preset_supplies_values_below_explicit_overrides(self) -> None:
        theme = resolve_theme({"name": "dracula", "accent": {"fg": "red"}})

        self.assertEqual(theme.main.directory, "\033[38;2;189;147;249m")
        self.assertEqual(theme.accent, "\033[31m")
        self.assertEqual(theme.bat_theme(), "Dracula")

    def test_pane_local_values_win_only_for_that_pane(self) -> None:
        theme = resolve_theme(
            {
                "directory": {"fg": "green"},
                "preview": {"fg": "red", "directory": {"fg": "yellow"}},
            }
        )

        self.assertEqual(theme.main.directory, "\033[32m")
        self.assertEqual(theme.parent.directory, "\033[32m")
        self.assertEqual(theme.preview.directory, "\033[33m")
        self.assertEqual(theme.preview.entry, "\033[31m")
        self.assertEqual(theme.main.entry, "")

    def test_pane_local_default_does_not_mask_global(self) -> None:
        theme = resolve_theme({"selection": {"bg": "blue"}, "parent": {"selection": {"bg": "default"}}})

        self.assertEqual(theme.parent.selection, "\033[44m")

    def test_marker_icon_clipboard_and_exe_color(self) -> None:
        theme = resolve_theme({"marker": {"icon": "+", "clipboard": "magenta"}, "exe_color": "#00ff00"})

        self.assertEqual(theme.marker_icon, "+")
        self.assertEqual(theme.clipboard, "\033[35m")
        self.assertEqual(theme.executable, "\033[38;2;0;255;0m")

    def test_unknown_preset_falls_back_to_default(self) -> None:
        with self.assertLogs("panefm.config.theme", level="WARNING"):
            theme = resolve_theme({"name": "neon"})

        self.assertEqual(theme.name, "default")
        self.assertIn("dracula", available_theme_names())

    def test_no_color_uses_reverse_video_selection(self) -> None:
        theme = resolve_theme({"name": "nord"}, no_color=True)

        self.assertEqual(theme.main.selection, "\033[7m")
        self.assertEqual(theme.accent, "")
        self.assertEqual(theme.reset, "")


class ParseChordTests(unittest.TestCase):
    def test_chord_vocabulary(self) -> None:
        cases = {
            "j": "j",
            "G": "G",
            "enter": "ENTER",
            "esc": "ESC",
            "space": " ",
            "back": "BACKSPACE",
            "<c-d>": "CTRL_D",
            "ctrl+d": "CTRL_D",
            "ctrl+space": "CTRL_SPACE",
            "alt+x": "ALT_x",
            "<m-x>": "ALT_x",
            "shift+tab": "SHIFT_TAB",
            "<f2>": "F2",
            "F12": "F12",
            "pgdn": "PAGE_DOWN",
        }
        for chord, token in cases.items():
            with self.subTest(chord=chord):
                self.assertEqual(parse_chord(chord), token)

    def test_invalid_chords(self) -> None:
        for chord in ("", "nonsense", "hyper+x", "<c-nonsense>"):
            with self.subTest(chord=chord):
                self.assertIsNone(parse_chord(chord))


class KeymapTests(unittest.TestCase):
    def test_default_bindings(self) -> None:
        keymap = Keymap.default()

        self.assertEqual(keymap.action_for("j"), "go_down")
        self.assertEqual(keymap.action_for("DOWN"), "go_down")
        self.assertEqual(keymap.action_for("CTRL_D"), "alternate_delete")
        self.assertEqual(keymap.action_for(" "), "toggle_marker")
        self.assertIsNone(keymap.action_for("Z"))

    def test_configured_chord_wins_over_default_owner(self) -> None:
        keymap = Keymap.from_config({"delete": ["x"]})

        self.assertEqual(keymap.action_for("x"), "delete")
        self.assertIsNone(keymap.action_for("d"))

    def test_unconfigured_actions_keep_defaults(self) -> None:
        keymap = Keymap.from_config({"go_down": "ctrl+n"})

        self.assertEqual(keymap.action_for("CTRL_N"), "go_down")
        self.assertIsNone(keymap.action_for("j"))
        self.assertEqual(keymap.action_for("k"), "go_up")

    def test_bad_entries_are_ignored_with_warnings(self) -> None:
        with self.assertLogs("panefm.config.keys", level="WARNING"):
            keymap = Keymap.from_config({"teleport": ["t"], "quit": 5})

        self.assertIsNone(keymap.action_for("t"))
        self.assertEqual(keymap.action_for("q"), "quit")

    def test_format_keybinds_lists_every_action(self) -> None:
        text = format_keybinds()

        self.assertTrue(text.startswith("Key bindings:"))
        self.assertEqual(len(text.strip().splitlines()), len(DEFAULT_KEYS) + 1)
        self.assertIn("<c-d>", text)


if __name__ == "__main__":
    unittest.main()
