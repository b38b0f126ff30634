"""Configuration: TOML settings, key bindings and themes."""

from .keys import DEFAULT_KEYS, Keymap, format_keybinds, parse_chord
from .settings import (
    CONFIG_HELP,
    FULL_TEMPLATE,
    MINIMAL_TEMPLATE,
    DisplaySettings,
    EditorSettings,
    GeneralSettings,
    LayoutRatios,
    PreviewOptions,
    Settings,
    discover_config_path,
    load_settings,
    write_default_config,
)
from .theme import ResolvedTheme, available_theme_names, resolve_theme

__all__ = [
    "CONFIG_HELP",
    "DEFAULT_KEYS",
    "DisplaySettings",
    "EditorSettings",
    "FULL_TEMPLATE",
    "MINIMAL_TEMPLATE",
    "GeneralSettings",
    "Keymap",
    "LayoutRatios",
    "PreviewOptions",
    "ResolvedTheme",
    "Settings",
    "available_theme_names",
    "discover_config_path",
    "format_keybinds",
    "load_settings",
    "parse_chord",
    "resolve_theme",
    "write_default_config",
]
