"""TOML configuration discovery, loading and templates.

Discovery order: ``$PANEFM_CONFIG``, then ``$XDG_CONFIG_HOME/panefm/panefm.toml``,
then the platform default from ``platformdirs``. Loading never raises: a
missing file yields defaults, while malformed TOML or wrong-typed values are
logged and replaced by their defaults.
"""

from __future__ import annotations

import logging
import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from platformdirs import user_config_dir

from ..editor import default_editor_command
from ..entries import ListingOptions
from ..fileops import DeleteMode
from ..find import DEFAULT_MAX_FIND_RESULTS, clamp_find_results
from ..preview import DEFAULT_MAX_PREVIEW_BYTES, DEFAULT_PREVIEW_LINES, MIN_PREVIEW_LINES, PreviewMethod
from .keys import Keymap
from .theme import ResolvedTheme, resolve_theme

logger = logging.getLogger(__name__)

APP_NAME = "panefm"
CONFIG_FILENAME = "panefm.toml"
CONFIG_ENV_VAR = "PANEFM_CONFIG"
DEFAULT_CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME


def discover_config_path(environ: Mapping[str, str] | None = None) -> Path:
    """Return the configuration path honoring env override and XDG base."""
    environ = environ if environ is not None else os.environ
    override = environ.get(CONFIG_ENV_VAR, "").strip()
    if override:
        return Path(os.path.expanduser(override))
    xdg_config = environ.get("XDG_CONFIG_HOME", "").strip()
    if xdg_config:
        return Path(xdg_config) / APP_NAME / CONFIG_FILENAME
    return DEFAULT_CONFIG_PATH


def _coerce_bool(section: Mapping[str, object], key: str, default: bool) -> bool:
    value = section.get(key, default)
    if isinstance(value, bool):
        return value
    logger.warning("config: %s must be true/false, got %r", key, value)
    return default


def _coerce_positive_int(section: Mapping[str, object], key: str, default: int, minimum: int = 1) -> int:
    value = section.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int):
        logger.warning("config: %s must be an integer, got %r", key, value)
        return default
    return max(minimum, value)


def _coerce_str(section: Mapping[str, object], key: str, default: str) -> str:
    value = section.get(key, default)
    if isinstance(value, str):
        return value
    logger.warning("config: %s must be a string, got %r", key, value)
    return default


def _section(raw: Mapping[str, object], key: str) -> Mapping[str, object]:
    value = raw.get(key, {})
    if isinstance(value, Mapping):
        return value
    logger.warning("config: [%s] must be a table", key)
    return {}


@dataclass(frozen=True)
class GeneralSettings:
    dirs_first: bool = True
    show_hidden: bool = True
    show_symlink: bool = True
    case_insensitive: bool = True
    always_show: tuple[str, ...] = ()
    max_find_results: int = DEFAULT_MAX_FIND_RESULTS
    move_to_trash: bool = True

    @classmethod
    def from_raw(cls, raw: Mapping[str, object]) -> GeneralSettings:
        always_show = raw.get("always_show", [])
        if not isinstance(always_show, list) or not all(isinstance(item, str) for item in always_show):
            logger.warning("config: always_show must be a list of names")
            always_show = []
        max_find = raw.get("max_find_results", DEFAULT_MAX_FIND_RESULTS)
        clamped = clamp_find_results(max_find)
        if clamped != max_find:
            logger.warning("config: max_find_results %r clamped to %d", max_find, clamped)
        return cls(
            dirs_first=_coerce_bool(raw, "dirs_first", True),
            show_hidden=_coerce_bool(raw, "show_hidden", True),
            show_symlink=_coerce_bool(raw, "show_symlink", True),
            case_insensitive=_coerce_bool(raw, "case_insensitive", True),
            always_show=tuple(always_show),
            max_find_results=clamped,
            move_to_trash=_coerce_bool(raw, "move_to_trash", True),
        )

    @property
    def delete_mode(self) -> DeleteMode:
        return DeleteMode.TRASH if self.move_to_trash else DeleteMode.PERMANENT

    def listing_options(self, show_hidden: bool | None = None) -> ListingOptions:
        return ListingOptions(
            show_hidden=self.show_hidden if show_hidden is None else show_hidden,
            dirs_first=self.dirs_first,
            case_insensitive=self.case_insensitive,
            always_show=frozenset(self.always_show),
        )


@dataclass(frozen=True)
class LayoutRatios:
    """Pane width percentages, always summing to 100."""

    parent: int = 20
    main: int = 40
    preview: int = 40

    @classmethod
    def normalized(cls, parent: int, main: int, preview: int) -> LayoutRatios:
        values = [max(0, parent), max(0, main), max(0, preview)]
        total = sum(values)
        if total <= 0 or values[1] == 0:
            logger.warning("config: layout ratios %r are unusable, using defaults", values)
            return cls()
        scaled = [value * 100 // total for value in values]
        scaled[1] += 100 - sum(scaled)
        return cls(parent=scaled[0], main=scaled[1], preview=scaled[2])

    @classmethod
    def from_raw(cls, raw: Mapping[str, object]) -> LayoutRatios:
        return cls.normalized(
            _coerce_positive_int(raw, "parent", 20, minimum=0),
            _coerce_positive_int(raw, "main", 40, minimum=0),
            _coerce_positive_int(raw, "preview", 40, minimum=0),
        )

    def widths(self, total: int, *, show_parent: bool = True, show_preview: bool = True) -> tuple[int, int, int]:
        """Split ``total`` columns into ``(parent, main, preview)`` widths."""
        parent = self.parent if show_parent else 0
        preview = self.preview if show_preview else 0
        weight = parent + self.main + preview
        parent_cols = total * parent // weight
        preview_cols = total * preview // weight
        return parent_cols, max(0, total - parent_cols - preview_cols), preview_cols


@dataclass(frozen=True)
class PreviewOptions:
    method: PreviewMethod = PreviewMethod.INTERNAL
    style: str = "plain"
    theme: str | None = None
    wrap: bool = True

    @classmethod
    def from_raw(cls, raw: Mapping[str, object]) -> PreviewOptions:
        style = _coerce_str(raw, "style", "plain").lower()
        if style not in {"plain", "numbers", "full"}:
            logger.warning("config: preview style %r unknown, using plain", style)
            style = "plain"
        theme = raw.get("theme")
        return cls(
            method=PreviewMethod.parse(raw.get("method", "internal")),
            style=style,
            theme=theme if isinstance(theme, str) and theme else None,
            wrap=_coerce_bool(raw, "wrap", True),
        )


@dataclass(frozen=True)
class DisplaySettings:
    show_parent: bool = True
    show_preview: bool = True
    instant_preview: bool = False
    toggle_marker_jump: bool = False
    preview_lines: int = DEFAULT_PREVIEW_LINES
    preview_max_bytes: int = DEFAULT_MAX_PREVIEW_BYTES
    layout: LayoutRatios = LayoutRatios()
    preview_options: PreviewOptions = PreviewOptions()

    @classmethod
    def from_raw(cls, raw: Mapping[str, object]) -> DisplaySettings:
        return cls(
            show_parent=_coerce_bool(raw, "parent", True),
            show_preview=_coerce_bool(raw, "preview", True),
            instant_preview=_coerce_bool(raw, "instant_preview", False),
            toggle_marker_jump=_coerce_bool(raw, "toggle_marker_jump", False),
            preview_lines=_coerce_positive_int(raw, "preview_lines", DEFAULT_PREVIEW_LINES, MIN_PREVIEW_LINES),
            preview_max_bytes=_coerce_positive_int(raw, "preview_max_bytes", DEFAULT_MAX_PREVIEW_BYTES),
            layout=LayoutRatios.from_raw(_section(raw, "layout")),
            preview_options=PreviewOptions.from_raw(_section(raw, "preview_options")),
        )


@dataclass(frozen=True)
class EditorSettings:
    command: str = field(default_factory=default_editor_command)

    @classmethod
    def from_raw(cls, raw: Mapping[str, object]) -> EditorSettings:
        command = _coerce_str(raw, "cmd", "").strip()
        return cls(command=command) if command else cls()


@dataclass(frozen=True)
class Settings:
    """Fully resolved configuration for one session."""

    general: GeneralSettings = GeneralSettings()
    display: DisplaySettings = DisplaySettings()
    editor: EditorSettings = field(default_factory=EditorSettings)
    keymap: Keymap = field(default_factory=Keymap.default)
    theme: ResolvedTheme = field(default_factory=lambda: resolve_theme(None))
    source: Path | None = None

    @classmethod
    def from_mapping(cls, raw: Mapping[str, object], source: Path | None = None) -> Settings:
        keys = raw.get("keys")
        if keys is not None and not isinstance(keys, Mapping):
            logger.warning("config: [keys] must be a table")
            keys = None
        theme_raw = raw.get("theme")
        return cls(
            general=GeneralSettings.from_raw(_section(raw, "general")),
            display=DisplaySettings.from_raw(_section(raw, "display")),
            editor=EditorSettings.from_raw(_section(raw, "editor")),
            keymap=Keymap.from_config(keys),
            theme=resolve_theme(theme_raw if isinstance(theme_raw, Mapping) else None),
            source=source,
        )


def load_settings(path: Path | None = None) -> Settings:
    """Load settings from ``path`` (or the discovered path).

    Never raises for a missing or malformed file; problems are logged and the
    affected values fall back to defaults.
    """
    config_path = path if path is not None else discover_config_path()
    try:
        text = config_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.info("no config at %s, using defaults", config_path)
        return Settings()
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("could not read config %s: %s", config_path, exc)
        return Settings()
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        logger.warning("error parsing config %s: %s", config_path, exc)
        return Settings()
    return Settings.from_mapping(data, source=config_path)


MINIMAL_TEMPLATE = """\
# panefm.toml - minimal configuration
# Only a few basic options. The rest uses internal defaults.
# Run `panefm --config-help` for every recognized key.

[general]
dirs_first = true
show_hidden = true

[display]
parent = true
preview = true

[theme]
name = "default"
"""

FULL_TEMPLATE = """\
# panefm.toml - default configuration for panefm
#
# Commented values are the internal defaults.
# Colours: terminal names ("cyan"), "#RRGGBB", "#RGB" or 0-255.

[general]
dirs_first = true
show_hidden = true
# show_symlink = true
# case_insensitive = true
# always_show = []
# max_find_results = 2000        # clamped to 15..1000000
# move_to_trash = true

[display]
parent = true
preview = true
# instant_preview = false
# toggle_marker_jump = false
# preview_lines = 50
# preview_max_bytes = 5368709120

# [display.layout]
# parent = 20
# main = 40
# preview = 40

# [display.preview_options]
# method = "internal"            # "internal", "pygments" or "bat"
# style = "plain"                # bat: "plain", "numbers" or "full"
# theme = "TwoDark"              # bat theme; defaults from [theme].name
# wrap = true

[theme]
name = "default"
# exe_color = "green"
# selection.bg = "bright_black"
# accent.fg = "cyan"
# entry.fg = "default"
# directory.fg = "blue"
# separator.fg = "bright_black"
# path.fg = "cyan"
# status_line.bg = "default"
# symlink.fg = "cyan"
# marker.icon = "*"
# marker.fg = "yellow"
# marker.clipboard.fg = "green"

# [theme.parent]
# fg = "default"
# bg = "default"
# selection.bg = "default"

# [theme.preview]
# fg = "default"
# bg = "default"
# selection.bg = "default"

# [editor]
# cmd = "nvim"                   # defaults to $VISUAL, then $EDITOR, then vi

# [keys]
# open_file = ["enter"]
# go_up = ["k", "up"]
# go_down = ["j", "down"]
# go_parent = ["h", "left", "back"]
# go_into_dir = ["l", "right"]
# go_to_top = ["g", "home"]
# go_to_bottom = ["G", "end"]
# go_to_home = ["~"]
# go_to_path = ["P"]
# quit = ["q", "esc"]
# delete = ["d"]
# alternate_delete = ["<c-d>"]
# copy = ["y"]
# cut = ["x"]
# paste = ["p"]
# rename = ["r"]
# create = ["n"]
# create_directory = ["N"]
# move_file = ["m"]
# filter = ["f"]
# clear_filter = ["<c-f>"]
# toggle_marker = ["space"]
# clear_markers = ["<c-c>"]
# find = ["s"]
# show_info = ["i"]
# toggle_hidden = ["."]
# keybind_help = ["?"]
"""

CONFIG_HELP = """\
panefm configuration keys

[general]
  dirs_first          bool   list directories before files (true)
  show_hidden         bool   show dotfiles (true)
  show_symlink        bool   show symlink targets next to names (true)
  case_insensitive    bool   case-insensitive sorting and filtering (true)
  always_show         list   names shown even when hidden files are off ([])
  max_find_results    int    find result cap, clamped to 15..1000000 (2000)
  move_to_trash       bool   default delete mode is trash (true)

[display]
  parent              bool   show the parent pane (true)
  preview             bool   show the preview pane (true)
  instant_preview     bool   preview on every move instead of debounced (false)
  toggle_marker_jump  bool   marking the last entry jumps to the first (false)
  preview_lines       int    lines read per preview, at least 3 (50)
  preview_max_bytes   int    larger files are not previewed (5 GiB)

[display.layout]
  parent, main, preview  int   pane ratios, normalized to 100 (20/40/40)

[display.preview_options]
  method              str    "internal", "pygments" or "bat" ("internal")
  style               str    bat style: "plain", "numbers", "full" ("plain")
  theme               str    bat theme name (derived from [theme].name)
  wrap                bool   bat wraps long lines (true)

[theme]
  name                str    preset: default, monokai, dracula, nord,
                             gruvbox-dark, tokyonight, catppuccin-mocha,
                             solarized-dark, one-dark
  <role>.fg / .bg     color  roles: entry, directory, selection, accent,
                             separator, path, status_line, symlink,
                             marker, executable
  marker.icon         str    marker glyph ("*")
  marker.clipboard    color  colour for yanked entries
  exe_color           color  colour for executables
  [theme.parent] / [theme.preview]
                      fg, bg, directory, selection override the global
                      values for that pane only when set explicitly

[editor]
  cmd                 str    command used to open files; may include
                             arguments ("code -w"). Defaults to $VISUAL,
                             then $EDITOR, then vi

[keys]
  <action> = ["chord", ...]  see `panefm --keybinds`; unbound actions keep
                             their defaults

Config file lookup: $PANEFM_CONFIG, $XDG_CONFIG_HOME/panefm/panefm.toml,
then the platform config directory.
"""


def write_default_config(path: Path, *, full: bool) -> Path:
    """Write a template to ``path``; refuses to overwrite an existing file."""
    if path.exists():
        raise FileExistsError(f"Config file already exists: {path}")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(FULL_TEMPLATE if full else MINIMAL_TEMPLATE, encoding="utf-8")
    return path


__all__ = [
    "APP_NAME",
    "CONFIG_ENV_VAR",
    "CONFIG_FILENAME",
    "CONFIG_HELP",
    "DEFAULT_CONFIG_PATH",
    "FULL_TEMPLATE",
    "MINIMAL_TEMPLATE",
    "DisplaySettings",
    "EditorSettings",
    "GeneralSettings",
    "LayoutRatios",
    "PreviewOptions",
    "Settings",
    "discover_config_path",
    "load_settings",
    "write_default_config",
]
