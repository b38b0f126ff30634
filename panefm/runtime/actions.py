"""Normal-mode key dispatch: key token -> keymap action -> session call."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from ..config import Keymap
from ..navigation import ClipboardMode
from ..session import Session
from .prompt import Prompt, PromptMode, open_prompt

PAGE_KEYS: dict[str, int] = {"PAGE_DOWN": 1, "PAGE_UP": -1}


@dataclass(frozen=True)
class KeyOutcome:
    """Result of one normal-mode key."""

    quit: bool = False
    prompt: Prompt | None = None


ActionHandler = Callable[[Session], KeyOutcome | None]


def _prompt(mode: PromptMode) -> ActionHandler:
    def handler(session: Session) -> KeyOutcome:
        return KeyOutcome(prompt=open_prompt(session, mode))

    return handler


def _run(call: Callable[[Session], object]) -> ActionHandler:
    def handler(session: Session) -> None:
        call(session)

    return handler


ACTIONS: dict[str, ActionHandler] = {
    "open_file": _run(Session.open_selected),
    "go_up": _run(lambda session: session.move_selection(-1)),
    "go_down": _run(lambda session: session.move_selection(1)),
    "go_parent": _run(Session.go_parent),
    "go_into_dir": _run(Session.go_into_dir),
    "go_to_top": _run(Session.go_to_top),
    "go_to_bottom": _run(Session.go_to_bottom),
    "go_to_home": _run(Session.go_home),
    "go_to_path": _prompt(PromptMode.GO_TO_PATH),
    "quit": lambda _session: KeyOutcome(quit=True),
    "delete": _prompt(PromptMode.CONFIRM_DELETE),
    "alternate_delete": _run(Session.toggle_delete_mode),
    "copy": _run(lambda session: session.yank(ClipboardMode.COPY)),
    "cut": _run(lambda session: session.yank(ClipboardMode.CUT)),
    "paste": _run(Session.paste),
    "rename": _prompt(PromptMode.RENAME),
    "create": _prompt(PromptMode.CREATE_FILE),
    "create_directory": _prompt(PromptMode.CREATE_DIRECTORY),
    "move_file": _prompt(PromptMode.MOVE),
    "filter": _prompt(PromptMode.FILTER),
    "clear_filter": _run(Session.clear_filter),
    "toggle_marker": _run(Session.toggle_marker),
    "clear_markers": _run(Session.clear_markers),
    "find": _prompt(PromptMode.FIND),
    "toggle_hidden": _run(Session.toggle_hidden),
    "show_info": _run(Session.toggle_info),
    "keybind_help": _run(Session.toggle_help),
}


def handle_normal_key(session: Session, keymap: Keymap, key: str, page_rows: int = 10) -> KeyOutcome:
    """Handle one normal-mode key token."""
    if key in {"ESC", "q"}:
        # Escape closes an open overlay before it can quit.
        if session.show_help:
            session.toggle_help()
            return KeyOutcome()
        if session.show_info:
            session.toggle_info()
            return KeyOutcome()
    if key in PAGE_KEYS:
        session.move_selection(PAGE_KEYS[key] * max(1, page_rows))
        return KeyOutcome()

    action = keymap.action_for(key)
    if action is None:
        return KeyOutcome()
    handler = ACTIONS.get(action)
    if handler is None:
        return KeyOutcome()
    outcome = handler(session)
    return outcome if outcome is not None else KeyOutcome()


__all__ = ["ACTIONS", "KeyOutcome", "handle_normal_key"]
