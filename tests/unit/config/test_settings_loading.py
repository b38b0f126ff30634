"""Configuration discovery, coercion and template tests."""

from __future__ import annotations

import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from panefm.config import (
    FULL_TEMPLATE,
    MINIMAL_TEMPLATE,
    LayoutRatios,
    Settings,
    discover_config_path,
    load_settings,
    write_default_config,
)
from panefm.config.settings import DEFAULT_CONFIG_PATH
from panefm.fileops import DeleteMode
from panefm.preview import DEFAULT_PREVIEW_LINES, PreviewMethod


class DiscoveryTests(unittest.TestCase):
    def test_env_override_wins(self) -> None:
        path = discover_config_path({"PANEFM_CONFIG": "/tmp/custom.toml", "XDG_CONFIG_HOME": "/xdg"})

        self.assertEqual(path, Path("/tmp/custom.toml"))

    def test_xdg_config_home_is_used_next(self) -> None:
        self.assertEqual(discover_config_path({"XDG_CONFIG_HOME": "/xdg"}), Path("/xdg/panefm/panefm.toml"))

    def test_platform_default_is_last(self) -> None:
        self.assertEqual(discover_config_path({}), DEFAULT_CONFIG_PATH)
        self.assertEqual(DEFAULT_CONFIG_PATH.name, "panefm.toml")


class LoadSettingsTests(unittest.TestCase):
    def test_missing_file_yields_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            settings = load_settings(Path(tmp) / "absent.toml")

        self.assertEqual(settings, Settings())
        self.assertIsNone(settings.source)

    def test_malformed_toml_yields_defaults_and_warns(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "bad.toml"
            path.write_text("[general\nshow_hidden = ", encoding="utf-8")

            with self.assertLogs("panefm.config.settings", level="WARNING"):
                settings = load_settings(path)

        self.assertTrue(settings.general.show_hidden)
        self.assertIsNone(settings.source)

    def test_values_are_read_and_coerced(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "panefm.toml"
            path.write_text(
                "\n".join(
                    [
                        "[general]",
                        "show_hidden = false",
                        "dirs_first = 'yes'",
                        "always_show = ['.env']",
                        "max_find_results = 3",
                        "move_to_trash = false",
                        "[display]",
                        "parent = false",
                        "preview_lines = 1",
                        "instant_preview = true",
                        "[display.layout]",
                        "parent = 1",
                        "main = 1",
                        "preview = 2",
                        "[display.preview_options]",
                        "method = 'bat'",
                        "style = 'fancy'",
                        "[keys]",
                        "quit = ['Q']",
                    ]
                ),
                encoding="utf-8",
            )

            with self.assertLogs("panefm.config.settings", level="WARNING") as logs:
                settings = load_settings(path)

        self.assertEqual(settings.source, path)
        self.assertFalse(settings.general.show_hidden)
        self.assertTrue(settings.general.dirs_first)
        self.assertEqual(settings.general.always_show, (".env",))
        self.assertEqual(settings.general.max_find_results, 15)
        self.assertIs(settings.general.delete_mode, DeleteMode.PERMANENT)
        self.assertFalse(settings.display.show_parent)
        self.assertEqual(settings.display.preview_lines, 3)
        self.assertTrue(settings.display.instant_preview)
        self.assertEqual(settings.display.layout, LayoutRatios(parent=25, main=25, preview=50))
        self.assertIs(settings.display.preview_options.method, PreviewMethod.BAT)
        self.assertEqual(settings.display.preview_options.style, "plain")
        self.assertEqual(settings.keymap.action_for("Q"), "quit")
        self.assertIsNone(settings.keymap.action_for("q"))
        self.assertTrue(any("max_find_results" in line for line in logs.output))
        self.assertTrue(any("dirs_first" in line for line in logs.output))

    def test_listing_options_follow_general_settings(self) -> None:
        settings = Settings.from_mapping({"general": {"show_hidden": False, "always_show": [".git"]}})

        options = settings.general.listing_options()
        toggled = settings.general.listing_options(show_hidden=True)

        self.assertFalse(options.show_hidden)
        self.assertTrue(toggled.show_hidden)
        self.assertEqual(options.always_show, frozenset({".git"}))

    def test_defaults(self) -> None:
        settings = Settings()

        self.assertEqual(settings.display.preview_lines, DEFAULT_PREVIEW_LINES)
        self.assertEqual(settings.general.max_find_results, 2000)
        self.assertIs(settings.general.delete_mode, DeleteMode.TRASH)

    def test_editor_command_is_read_from_its_section(self) -> None:
        settings = Settings.from_mapping({"editor": {"cmd": "  hx  "}})

        self.assertEqual(settings.editor.command, "hx")

    def test_blank_editor_command_uses_environment(self) -> None:
        with mock.patch.dict(os.environ, {"VISUAL": "", "EDITOR": "nano"}):
            blank = Settings.from_mapping({"editor": {"cmd": ""}})
            missing = Settings.from_mapping({})

        self.assertEqual(blank.editor.command, "nano")
        self.assertEqual(missing.editor.command, "nano")


class LayoutRatiosTests(unittest.TestCase):
    def test_ratios_are_normalized_to_one_hundred(self) -> None:
        ratios = LayoutRatios.normalized(1, 1, 1)

        self.assertEqual(ratios, LayoutRatios(parent=33, main=34, preview=33))

    def test_unusable_ratios_fall_back_to_defaults(self) -> None:
        self.assertEqual(LayoutRatios.normalized(0, 0, 0), LayoutRatios())
        self.assertEqual(LayoutRatios.normalized(50, 0, 50), LayoutRatios())

    def test_widths_absorb_hidden_panes(self) -> None:
        ratios = LayoutRatios()

        self.assertEqual(ratios.widths(100), (20, 40, 40))
        self.assertEqual(ratios.widths(100, show_parent=False), (0, 50, 50))
        self.assertEqual(ratios.widths(100, show_parent=False, show_preview=False), (0, 100, 0))
        self.assertEqual(sum(ratios.widths(97)), 97)


class TemplateTests(unittest.TestCase):
    def test_write_default_config_refuses_to_overwrite(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "nested" / "panefm.toml"

            write_default_config(path, full=False)
            self.assertEqual(path.read_text(encoding="utf-8"), MINIMAL_TEMPLATE)

            with self.assertRaises(FileExistsError):
                write_default_config(path, full=True)
            self.assertEqual(path.read_text(encoding="utf-8"), MINIMAL_TEMPLATE)

    def test_templates_parse_as_valid_settings(self) -> None:
        for template in (MINIMAL_TEMPLATE, FULL_TEMPLATE):
            with self.subTest(template=template[:30]):
                with tempfile.TemporaryDirectory() as tmp:
                    path = Path(tmp) / "panefm.toml"
                    path.write_text(template, encoding="utf-8")

                    settings = load_settings(path)

                self.assertEqual(settings.source, path)
                self.assertEqual(settings.theme.name, "default")


if __name__ == "__main__":
    unittest.main()
