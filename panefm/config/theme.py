"""Theme presets and layered colour resolution.

A theme is resolved once per configuration load into plain ANSI fragments.
Lookup order for a pane-specific role (``parent`` or ``preview``):

1. the value set explicitly in ``[theme.<pane>]``
2. the value set explicitly at the global ``[theme]`` scope
3. the value supplied by the named preset
4. the built-in default

Any field present at a more specific scope wins; nothing further is
inferred about precedence between presets and overrides.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass

logger = logging.getLogger(__name__)

RESET = "\033[0m"

_NAMED_COLORS: dict[str, int] = {
    "black": 0,
    "red": 1,
    "green": 2,
    "yellow": 3,
    "blue": 4,
    "magenta": 5,
    "cyan": 6,
    "white": 7,
    "gray": 8,
    "grey": 8,
    "dark_gray": 8,
    "bright_black": 8,
    "bright_red": 9,
    "light_red": 9,
    "bright_green": 10,
    "light_green": 10,
    "bright_yellow": 11,
    "light_yellow": 11,
    "bright_blue": 12,
    "light_blue": 12,
    "bright_magenta": 13,
    "light_magenta": 13,
    "bright_cyan": 14,
    "light_cyan": 14,
    "bright_white": 15,
}

ROLES: tuple[str, ...] = (
    "entry",
    "directory",
    "selection",
    "accent",
    "separator",
    "path",
    "status_line",
    "marker",
    "clipboard",
    "symlink",
    "executable",
)


def parse_color(value: object, *, background: bool = False) -> str | None:
    """Translate a colour value into an SGR fragment.

    Accepts terminal colour names, ``#RRGGBB``, ``#RGB`` and 0-255 palette
    indices. ``"default"``/``"reset"`` and unknown values yield ``None``.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        if 0 <= value <= 255:
            return f"\033[{48 if background else 38};5;{value}m"
        return None
    if not isinstance(value, str):
        return None
    text = value.strip().lower().replace("-", "_").replace(" ", "_")
    if not text or text in {"default", "reset", "none"}:
        return None
    if text.startswith("#"):
        digits = text[1:]
        if len(digits) == 3:
            digits = "".join(ch * 2 for ch in digits)
        if len(digits) != 6:
            return None
        try:
            red, green, blue = (int(digits[i:i + 2], 16) for i in (0, 2, 4))
        except ValueError:
            return None
        return f"\033[{48 if background else 38};2;{red};{green};{blue}m"
    if text.isdigit():
        return parse_color(int(text), background=background)
    index = _NAMED_COLORS.get(text)
    if index is None:
        logger.warning("unknown colour %r ignored", value)
        return None
    if index < 8:
        return f"\033[{(40 if background else 30) + index}m"
    return f"\033[{(100 if background else 90) + index - 8}m"


@dataclass(frozen=True)
class ColorPair:
    """Raw fg/bg colour specs; ``None`` means not set at this scope."""

    fg: object = None
    bg: object = None

    @classmethod
    def from_raw(cls, raw: object) -> ColorPair:
        if isinstance(raw, Mapping):
            return cls(fg=raw.get("fg"), bg=raw.get("bg"))
        if isinstance(raw, str):
            return cls(fg=raw)
        return cls()

    def over(self, fallback: ColorPair) -> ColorPair:
        """Fields set here win; unset fields come from ``fallback``."""
        return ColorPair(
            fg=self.fg if _is_set(self.fg) else fallback.fg,
            bg=self.bg if _is_set(self.bg) else fallback.bg,
        )

    def to_ansi(self) -> str:
        return (parse_color(self.fg) or "") + (parse_color(self.bg, background=True) or "")


def _is_set(value: object) -> bool:
    if value is None:
        return False
    if isinstance(value, str) and value.strip().lower() == "default":
        return False
    return True


@dataclass(frozen=True)
class Palette:
    base: str
    surface: str
    overlay: str
    primary: str
    secondary: str
    directory: str


def _palette_roles(palette: Palette) -> dict[str, ColorPair]:
    return {
        "accent": ColorPair(fg=palette.surface),
        "selection": ColorPair(bg=palette.surface),
        "directory": ColorPair(fg=palette.directory),
        "separator": ColorPair(fg=palette.surface),
        "path": ColorPair(fg=palette.overlay),
        "status_line": ColorPair(bg=palette.base),
        "symlink": ColorPair(fg=palette.secondary),
        "marker": ColorPair(fg=palette.primary),
        "clipboard": ColorPair(fg=palette.secondary),
    }


PRESETS: dict[str, Palette] = {
    "monokai": Palette("#272822", "#31332b", "#75715e", "#f92672", "#a6e22e", "#66d9ef"),
    "dracula": Palette("#282a36", "#44475a", "#6272a4", "#ff79c6", "#50fa7b", "#bd93f9"),
    "nord": Palette("#2e3440", "#3b4252", "#4c566a", "#b48ead", "#a3be8c", "#81a1c1"),
    "gruvbox-dark": Palette("#282828", "#3c3836", "#928374", "#d3869b", "#8ec07c", "#83a598"),
    "tokyonight": Palette("#1a1b26", "#2c334e", "#565f89", "#bb9af7", "#7dcfff", "#7aa2f7"),
    "catppuccin-mocha": Palette("#1e1e2e", "#313244", "#6c7086", "#f5c2e7", "#a6e3a1", "#89b4fa"),
    "solarized-dark": Palette("#002b36", "#073642", "#586e75", "#d33682", "#859900", "#268bd2"),
    "one-dark": Palette("#282c34", "#2c313c", "#5c6370", "#c678dd", "#98c379", "#61afef"),
}

BUILTIN_ROLES: dict[str, ColorPair] = {
    "entry": ColorPair(),
    "directory": ColorPair(fg="blue"),
    "selection": ColorPair(bg="bright_black"),
    "accent": ColorPair(fg="cyan"),
    "separator": ColorPair(fg="bright_black"),
    "path": ColorPair(fg="cyan"),
    "status_line": ColorPair(),
    "marker": ColorPair(fg="yellow"),
    "clipboard": ColorPair(fg="green"),
    "symlink": ColorPair(fg="cyan"),
    "executable": ColorPair(fg="green"),
}

_BAT_THEMES: dict[str, str] = {
    "default": "TwoDark",
    "one-dark": "OneHalfDark",
    "gruvbox-dark": "gruvbox-dark",
    "catppuccin-mocha": "Catppuccin Mocha",
    "monokai": "Monokai Extended (default)",
    "nord": "Nord",
    "solarized-dark": "Solarized (dark)",
    "dracula": "Dracula",
}

_PYGMENTS_STYLES: dict[str, str] = {
    "default": "monokai",
    "monokai": "monokai",
    "dracula": "dracula",
    "nord": "nord",
    "gruvbox-dark": "gruvbox-dark",
    "solarized-dark": "solarized-dark",
    "one-dark": "one-dark",
}


def available_theme_names() -> tuple[str, ...]:
    return ("default", *sorted(PRESETS))


@dataclass(frozen=True)
class PaneStyle:
    entry: str
    directory: str
    selection: str


@dataclass(frozen=True)
class ResolvedTheme:
    """ANSI fragments for every role, computed once per load."""

    name: str
    main: PaneStyle
    parent: PaneStyle
    preview: PaneStyle
    accent: str
    separator: str
    path: str
    status_line: str
    marker: str
    clipboard: str
    symlink: str
    executable: str
    marker_icon: str = "*"
    reset: str = RESET

    def bat_theme(self) -> str:
        return _BAT_THEMES.get(self.name, "TwoDark")

    def pygments_style(self) -> str:
        return _PYGMENTS_STYLES.get(self.name, "monokai")


def resolve_theme(raw: Mapping[str, object] | None, *, no_color: bool = False) -> ResolvedTheme:
    """Resolve a ``[theme]`` table into a ``ResolvedTheme``."""
    raw = raw if isinstance(raw, Mapping) else {}
    name = str(raw.get("name") or "default").strip().lower()
    if name != "default" and name not in PRESETS:
        logger.warning("unknown theme preset %r, using default", name)
        name = "default"

    preset_roles = _palette_roles(PRESETS[name]) if name in PRESETS else {}
    global_layer: dict[str, ColorPair] = {}
    for role in ROLES:
        base = preset_roles.get(role, ColorPair()).over(BUILTIN_ROLES[role])
        global_layer[role] = ColorPair.from_raw(raw.get(role)).over(base)

    def pane_style(pane: str | None) -> PaneStyle:
        local = raw.get(pane) if pane is not None else None
        local = local if isinstance(local, Mapping) else {}
        entry = ColorPair(fg=local.get("fg"), bg=local.get("bg")).over(global_layer["entry"])
        directory = ColorPair.from_raw(local.get("directory")).over(global_layer["directory"])
        selection = ColorPair.from_raw(local.get("selection")).over(global_layer["selection"])
        if no_color:
            return PaneStyle(entry="", directory="", selection="\033[7m")
        return PaneStyle(
            entry=entry.to_ansi(),
            directory=directory.to_ansi(),
            selection=selection.to_ansi() or "\033[7m",
        )

    marker_raw = raw.get("marker")
    marker_icon = "*"
    if isinstance(marker_raw, Mapping):
        icon = marker_raw.get("icon")
        if isinstance(icon, str) and icon:
            marker_icon = icon
        clipboard_raw = marker_raw.get("clipboard")
        if clipboard_raw is not None and raw.get("clipboard") is None:
            global_layer["clipboard"] = ColorPair.from_raw(clipboard_raw).over(global_layer["clipboard"])
    exe_color = raw.get("exe_color")
    if exe_color is not None:
        global_layer["executable"] = ColorPair(fg=exe_color).over(global_layer["executable"])

    def role(role_name: str) -> str:
        return "" if no_color else global_layer[role_name].to_ansi()

    return ResolvedTheme(
        name=name,
        main=pane_style(None),
        parent=pane_style("parent"),
        preview=pane_style("preview"),
        accent=role("accent"),
        separator=role("separator"),
        path=role("path"),
        status_line=role("status_line"),
        marker=role("marker"),
        clipboard=role("clipboard"),
        symlink=role("symlink"),
        executable=role("executable"),
        marker_icon=marker_icon,
        reset="" if no_color else RESET,
    )


__all__ = [
    "ROLES",
    "PRESETS",
    "ColorPair",
    "Palette",
    "PaneStyle",
    "ResolvedTheme",
    "available_theme_names",
    "parse_color",
    "resolve_theme",
]
