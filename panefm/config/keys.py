"""Keybinding table: action names to key chords.

Chords in configuration use a small vocabulary (``"j"``, ``"up"``,
``"<c-d>"``, ``"ctrl+d"``, ``"alt+x"``, ``"space"``, ``"<f2>"``, ...). They are
normalized into the key tokens produced by ``panefm.runtime.input.read_key``.
Actions missing from the configuration keep their built-in chords.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DEFAULT_KEYS: dict[str, tuple[str, ...]] = {
    "open_file": ("enter",),
    "go_up": ("k", "up"),
    "go_down": ("j", "down"),
    "go_parent": ("h", "left", "back"),
    "go_into_dir": ("l", "right"),
    "go_to_top": ("g", "home"),
    "go_to_bottom": ("G", "end"),
    "go_to_home": ("~",),
    "go_to_path": ("P",),
    "quit": ("q", "esc"),
    "delete": ("d",),
    "alternate_delete": ("<c-d>",),
    "copy": ("y",),
    "cut": ("x",),
    "paste": ("p",),
    "rename": ("r",),
    "create": ("n",),
    "create_directory": ("N",),
    "move_file": ("m",),
    "filter": ("f",),
    "clear_filter": ("<c-f>",),
    "toggle_marker": ("space",),
    "clear_markers": ("<c-c>",),
    "find": ("s",),
    "show_info": ("i",),
    "toggle_hidden": (".",),
    "keybind_help": ("?",),
}

ACTION_HELP: dict[str, str] = {
    "open_file": "Open file in editor / enter directory",
    "go_up": "Move selection up",
    "go_down": "Move selection down",
    "go_parent": "Go to parent directory",
    "go_into_dir": "Enter selected directory",
    "go_to_top": "Jump to first entry",
    "go_to_bottom": "Jump to last entry",
    "go_to_home": "Go to home directory",
    "go_to_path": "Go to a typed path",
    "quit": "Quit",
    "delete": "Delete targets using the current delete mode",
    "alternate_delete": "Switch delete mode (trash / permanent)",
    "copy": "Yank targets for copying",
    "cut": "Yank targets for moving",
    "paste": "Paste yanked paths here",
    "rename": "Rename selected entry",
    "create": "Create file",
    "create_directory": "Create directory",
    "move_file": "Move targets to a typed path",
    "filter": "Filter current directory",
    "clear_filter": "Clear filter",
    "toggle_marker": "Mark / unmark entry and advance",
    "clear_markers": "Clear all markers",
    "find": "Fuzzy find below current directory",
    "show_info": "Show file info for the selected entry",
    "toggle_hidden": "Show / hide dotfiles",
    "keybind_help": "Show key bindings",
}

_NAMED_KEYS: dict[str, str] = {
    "enter": "ENTER",
    "return": "ENTER",
    "cr": "ENTER",
    "esc": "ESC",
    "escape": "ESC",
    "space": " ",
    "back": "BACKSPACE",
    "backspace": "BACKSPACE",
    "bs": "BACKSPACE",
    "tab": "TAB",
    "up": "UP",
    "down": "DOWN",
    "left": "LEFT",
    "right": "RIGHT",
    "home": "HOME",
    "end": "END",
    "pageup": "PAGE_UP",
    "pgup": "PAGE_UP",
    "pagedown": "PAGE_DOWN",
    "pgdn": "PAGE_DOWN",
    "delete": "DELETE",
    "del": "DELETE",
    "insert": "INSERT",
}

_ANGLE_RE = re.compile(r"^<([a-z])-(.+)>$", re.IGNORECASE)
_FUNCTION_RE = re.compile(r"^f([1-9]|1[0-2])$", re.IGNORECASE)


def parse_chord(chord: str) -> str | None:
    """Normalize one chord string into a key token, or ``None`` if invalid."""
    if not isinstance(chord, str) or chord == "":
        return None
    if len(chord) == 1:
        return chord

    text = chord.strip()
    angle = _ANGLE_RE.match(text)
    if angle:
        modifier, key = angle.group(1).lower(), angle.group(2)
        modifier = {"c": "ctrl", "m": "alt", "a": "alt", "s": "shift"}.get(modifier, modifier)
        return _with_modifier(modifier, key)
    if text.startswith("<") and text.endswith(">"):
        text = text[1:-1]

    if "+" in text and len(text) > 1:
        modifier, _, key = text.rpartition("+")
        return _with_modifier(modifier.strip().lower(), key)

    lowered = text.lower()
    if lowered in _NAMED_KEYS:
        return _NAMED_KEYS[lowered]
    function = _FUNCTION_RE.match(lowered)
    if function:
        return f"F{function.group(1)}"
    return None


def _with_modifier(modifier: str, key: str) -> str | None:
    base = parse_chord(key) if len(key) > 1 else key
    if base is None:
        return None
    if modifier == "shift":
        if len(base) == 1:
            return base.upper()
        return f"SHIFT_{base}"
    if modifier in {"ctrl", "control"}:
        if len(base) == 1 and base.isalpha():
            return f"CTRL_{base.upper()}"
        if base == " ":
            return "CTRL_SPACE"
        return f"CTRL_{base}"
    if modifier in {"alt", "meta"}:
        return f"ALT_{base}"
    return None


@dataclass(frozen=True)
class Keymap:
    """Resolved key-token to action lookup."""

    actions: Mapping[str, tuple[str, ...]]
    _by_token: Mapping[str, str]

    @classmethod
    def from_config(cls, raw: Mapping[str, object] | None) -> Keymap:
        merged: dict[str, tuple[str, ...]] = dict(DEFAULT_KEYS)
        configured: set[str] = set()
        if isinstance(raw, Mapping):
            for action, chords in raw.items():
                if action not in DEFAULT_KEYS:
                    logger.warning("unknown key action %r ignored", action)
                    continue
                if isinstance(chords, str):
                    chords = [chords]
                if not isinstance(chords, list) or not all(isinstance(item, str) for item in chords):
                    logger.warning("key binding for %r must be a list of strings", action)
                    continue
                merged[action] = tuple(chords)
                configured.add(action)

        # Configured chords are applied last so they win over defaults.
        ordered = sorted(merged.items(), key=lambda item: item[0] in configured)
        by_token: dict[str, str] = {}
        for action, chords in ordered:
            for chord in chords:
                token = parse_chord(chord)
                if token is None:
                    logger.warning("invalid chord %r for action %r", chord, action)
                    continue
                if token in by_token and by_token[token] != action:
                    logger.info("chord %r rebound from %s to %s", chord, by_token[token], action)
                by_token[token] = action
        return cls(actions=merged, _by_token=by_token)

    @classmethod
    def default(cls) -> Keymap:
        return cls.from_config(None)

    def action_for(self, token: str) -> str | None:
        return self._by_token.get(token)

    def chords_for(self, action: str) -> tuple[str, ...]:
        return tuple(self.actions.get(action, ()))


def format_keybinds(keymap: Keymap | None = None) -> str:
    """Human-readable key table for ``--keybinds`` and the help overlay."""
    keymap = keymap if keymap is not None else Keymap.default()
    rows = []
    for action in DEFAULT_KEYS:
        chords = ", ".join(keymap.chords_for(action)) or "-"
        rows.append(f"  {chords:<22} {ACTION_HELP.get(action, action)}")
    return "Key bindings:\n" + "\n".join(rows) + "\n"


__all__ = [
    "DEFAULT_KEYS",
    "ACTION_HELP",
    "Keymap",
    "format_keybinds",
    "parse_chord",
]
