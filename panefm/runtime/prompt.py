"""One-line prompts: filter, rename, create, move, go-to, find and confirm.

A prompt owns a text buffer. ``handle_prompt_key`` edits it and, on
``ENTER``/``ESC``, hands the result to the session and closes the prompt.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

from ..fileops import DeleteMode
from ..session import Session


class PromptMode(str, Enum):
    FILTER = "filter"
    RENAME = "rename"
    CREATE_FILE = "create_file"
    CREATE_DIRECTORY = "create_directory"
    MOVE = "move"
    GO_TO_PATH = "go_to_path"
    FIND = "find"
    CONFIRM_DELETE = "confirm_delete"


PROMPT_LABELS: dict[PromptMode, str] = {
    PromptMode.FILTER: "filter: ",
    PromptMode.RENAME: "rename: ",
    PromptMode.CREATE_FILE: "new file: ",
    PromptMode.CREATE_DIRECTORY: "new directory: ",
    PromptMode.MOVE: "move to: ",
    PromptMode.GO_TO_PATH: "go to: ",
    PromptMode.FIND: "find: ",
}


@dataclass(frozen=True)
class Prompt:
    mode: PromptMode
    text: str = ""
    original: str = ""

    def label(self, session: Session) -> str:
        if self.mode == PromptMode.CONFIRM_DELETE:
            count = len(session.nav.action_targets())
            how = "to trash" if session.delete_mode == DeleteMode.TRASH else "permanently"
            return f"delete {count} item(s) {how}? [y/N] "
        return PROMPT_LABELS[self.mode]


def edit_text(text: str, key: str) -> str | None:
    """Apply an editing key to ``text``; ``None`` when the key is not an edit."""
    if key == "BACKSPACE":
        return text[:-1]
    if key == "CTRL_U":
        return ""
    if key == "CTRL_W":
        trimmed = text.rstrip()
        cut = max(trimmed.rfind(" "), trimmed.rfind("/"))
        return trimmed[: cut + 1] if cut >= 0 else ""
    if len(key) == 1 and key.isprintable():
        return text + key
    return None


def open_prompt(session: Session, mode: PromptMode) -> Prompt | None:
    """Build the prompt for ``mode``, or ``None`` when it has nothing to act on."""
    if mode == PromptMode.FILTER:
        current = session.nav.filter
        return Prompt(mode, text=current, original=current)
    if mode == PromptMode.RENAME:
        entry = session.nav.selected_entry()
        if entry is None:
            return None
        return Prompt(mode, text=entry.display_name)
    if mode in {PromptMode.MOVE, PromptMode.CONFIRM_DELETE} and not session.nav.action_targets():
        return None
    if mode == PromptMode.FIND:
        session.open_find()
    return Prompt(mode)


def handle_prompt_key(session: Session, prompt: Prompt, key: str) -> Prompt | None:
    """Handle one key; returns the updated prompt, or ``None`` once closed."""
    if prompt.mode == PromptMode.CONFIRM_DELETE:
        if key in {"y", "Y"}:
            session.delete()
        return None

    if prompt.mode == PromptMode.FIND:
        if key in {"UP", "CTRL_P", "CTRL_K"}:
            session.move_find_selection(-1)
            return prompt
        if key in {"DOWN", "CTRL_N", "CTRL_J", "TAB"}:
            session.move_find_selection(1)
            return prompt

    if key == "ESC":
        if prompt.mode == PromptMode.FILTER:
            session.apply_filter(prompt.original)
        elif prompt.mode == PromptMode.FIND:
            session.close_find()
        return None

    if key == "ENTER":
        _submit(session, prompt)
        return None

    text = edit_text(prompt.text, key)
    if text is None or text == prompt.text:
        return prompt
    if prompt.mode == PromptMode.FILTER:
        session.apply_filter(text)
    elif prompt.mode == PromptMode.FIND:
        session.set_find_query(text)
    session.dirty = True
    return replace(prompt, text=text)


def _submit(session: Session, prompt: Prompt) -> None:
    mode = prompt.mode
    if mode == PromptMode.FILTER:
        session.apply_filter(prompt.text)
    elif mode == PromptMode.RENAME:
        session.rename(prompt.text)
    elif mode == PromptMode.CREATE_FILE:
        session.create(prompt.text)
    elif mode == PromptMode.CREATE_DIRECTORY:
        session.create(prompt.text, directory=True)
    elif mode == PromptMode.MOVE:
        session.move_to(prompt.text)
    elif mode == PromptMode.GO_TO_PATH:
        session.go_to_path(prompt.text)
    elif mode == PromptMode.FIND:
        if not session.accept_find_selection():
            session.close_find()


__all__ = [
    "Prompt",
    "PromptMode",
    "edit_text",
    "handle_prompt_key",
    "open_prompt",
]
