"""Frame composition for the three-pane view.

``compose_frame`` is pure: it turns the session plus terminal geometry into a
list of exact-width rows (header, body, status). ``render_frame`` writes the
joined rows to the terminal in one call.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from ..config import format_keybinds
from ..config.theme import PaneStyle, ResolvedTheme
from ..entries import Entry, entry_info
from ..fileops import DeleteMode
from ..preview import PreviewKind, fit_ansi_to_width, fit_to_width
from ..session import Session
from .prompt import Prompt

SEPARATOR = "│"


@dataclass(frozen=True)
class PaneGeometry:
    """Column widths for each pane plus the number of body rows."""

    parent: int
    main: int
    preview: int
    rows: int

    @classmethod
    def for_terminal(cls, session: Session, columns: int, lines: int) -> PaneGeometry:
        display = session.settings.display
        separators = int(display.show_parent) + int(display.show_preview)
        parent, main, preview = display.layout.widths(
            max(1, columns - separators),
            show_parent=display.show_parent,
            show_preview=display.show_preview,
        )
        return cls(parent=parent, main=main, preview=preview, rows=max(1, lines - 2))


def scroll_start(selected: int, start: int, rows: int, count: int) -> int:
    """Keep ``selected`` inside a window of ``rows`` rows beginning at ``start``."""
    if selected < start:
        start = selected
    elif selected >= start + rows:
        start = selected - rows + 1
    return max(0, min(start, max(0, count - rows)))


def _entry_label(entry: Entry, session: Session) -> str:
    label = entry.display_name
    if entry.is_directory:
        label += "/"
    if entry.is_symlink and session.settings.general.show_symlink:
        target = "?" if entry.symlink_target is None else str(entry.symlink_target)
        label += f" -> {target}"
        if entry.symlink_broken:
            label += " [broken]"
    return label


def _entry_color(entry: Entry, session: Session, theme: ResolvedTheme, style: PaneStyle) -> str:
    if session.entry_in_clipboard(entry):
        return theme.clipboard
    if session.entry_is_marked(entry):
        return theme.marker
    if entry.is_symlink:
        return theme.symlink
    if entry.is_directory:
        return style.directory
    if entry.is_executable:
        return theme.executable
    return style.entry


def format_entry_row(
    entry: Entry,
    session: Session,
    width: int,
    *,
    selected: bool,
    style: PaneStyle,
    show_marks: bool = True,
) -> str:
    """One listing row fitted to ``width`` columns, coloured per theme."""
    theme = session.settings.theme
    prefix = ""
    if show_marks:
        marked = session.entry_is_marked(entry) or session.entry_in_clipboard(entry)
        icon = theme.marker_icon if marked else " " * len(theme.marker_icon)
        prefix = f"{icon} "
    text = fit_to_width(prefix + _entry_label(entry, session), width)
    color = _entry_color(entry, session, theme, style)
    if selected:
        color += style.selection
    if not color:
        return text
    return f"{color}{text}{theme.reset}"


def _listing_rows(
    entries: tuple[Entry, ...],
    session: Session,
    width: int,
    rows: int,
    start: int,
    selected: int | None,
    style: PaneStyle,
    *,
    show_marks: bool,
    empty_text: str,
) -> list[str]:
    if width <= 0:
        return [""] * rows
    out: list[str] = []
    if not entries:
        out.append(fit_to_width(empty_text, width))
    for idx in range(start, min(len(entries), start + rows)):
        out.append(
            format_entry_row(
                entries[idx],
                session,
                width,
                selected=idx == selected,
                style=style,
                show_marks=show_marks,
            )
        )
    while len(out) < rows:
        out.append(" " * width)
    return out


def _parent_rows(session: Session, width: int, rows: int) -> list[str]:
    listing = session.parent_listing
    if width <= 0:
        return [""] * rows
    if listing is None:
        return [" " * width] * rows
    entries = listing.entries
    selected = next((idx for idx, entry in enumerate(entries) if entry.path == session.nav.current_path), None)
    start = scroll_start(selected or 0, 0, rows, len(entries))
    return _listing_rows(
        entries,
        session,
        width,
        rows,
        start,
        selected,
        session.settings.theme.parent,
        show_marks=False,
        empty_text="",
    )


def _preview_rows(session: Session, width: int, rows: int) -> list[str]:
    if width <= 0:
        return [""] * rows
    theme = session.settings.theme
    if session.show_help:
        lines = [fit_to_width(line, width) for line in format_keybinds(session.settings.keymap).splitlines()]
    elif session.find_active:
        lines = _find_rows(session, width, rows)
    elif session.show_info:
        lines = [fit_to_width(line, width) for line in info_lines(session.nav.selected_entry())]
    else:
        preview = session.preview
        selected = session.nav.selected_path()
        if preview is None or session.preview_path != selected:
            lines = [fit_to_width("" if selected is None else "loading...", width)]
        elif preview.styled:
            lines = [fit_ansi_to_width(line, width) for line in preview.lines]
        else:
            lines = [fit_to_width(line, width) for line in preview.lines]
            if preview.kind == PreviewKind.ERROR and theme.reset:
                lines = [f"\033[31m{line}{theme.reset}" for line in lines]
    out = lines[:rows]
    while len(out) < rows:
        out.append(" " * width)
    return out


def info_lines(entry: Entry | None) -> list[str]:
    """File-info overlay text for ``entry``."""
    if entry is None:
        return ["[nothing selected]"]
    return [f"{label + ':':<10}{value}" for label, value in entry_info(entry)]


def _find_rows(session: Session, width: int, rows: int) -> list[str]:
    theme = session.settings.theme
    count = len(session.find_results)
    state = "searching..." if session.find_running else f"{count} match(es)"
    if session.find_truncated and not session.find_running:
        state += " (stopped)"
    out = [fit_to_width(state, width)]
    list_rows = max(0, rows - 1)
    start = scroll_start(session.find_selection, 0, list_rows, count)
    for idx in range(start, min(count, start + list_rows)):
        match = session.find_results[idx]
        label = match.relative + ("/" if match.is_directory else "")
        text = fit_to_width(label, width)
        if idx == session.find_selection:
            out.append(f"{theme.preview.selection}{text}{theme.reset}")
        else:
            out.append(text)
    return out


def _header(session: Session, columns: int) -> str:
    theme = session.settings.theme
    path = str(session.nav.current_path)
    home = str(Path.home())
    if path == home or path.startswith(home + os.sep):
        path = "~" + path[len(home):]
    if session.nav.filter:
        path += f"  [filter: {session.nav.filter}]"
    return f"{theme.path}{fit_to_width(path, columns)}{theme.reset}"


def _status(session: Session, prompt: Prompt | None, columns: int) -> str:
    theme = session.settings.theme
    if prompt is not None:
        return fit_to_width(prompt.label(session) + prompt.text, columns)
    if session.show_info and not session.settings.display.show_preview:
        entry = session.nav.selected_entry()
        if entry is not None:
            text = "  ".join(value for _label, value in entry_info(entry))
            return f"{theme.status_line}{fit_to_width(text, columns)}{theme.reset}"
    if session.status_message:
        color = "\033[31m" if session.status_is_error and theme.reset else theme.status_line
        return f"{color}{fit_to_width(session.status_message, columns)}{theme.reset}"

    nav = session.nav
    visible = nav.visible_entries
    parts = [f"{nav.selection_index + 1 if visible else 0}/{len(visible)}"]
    if nav.markers:
        parts.append(f"{len(nav.markers)} marked")
    if nav.clipboard is not None:
        parts.append(f"{len(nav.clipboard.paths)} yanked ({nav.clipboard.mode.value})")
    pending = session.pending_file_ops()
    if pending:
        parts.append(f"{pending} operation(s) running")
    if session.delete_mode == DeleteMode.PERMANENT:
        parts.append("delete: permanent")
    entry = nav.selected_entry()
    if entry is not None:
        parts.append(entry.mode_string())
    text = fit_to_width("  ".join(parts), columns)
    return f"{theme.status_line}{text}{theme.reset}" if theme.status_line else text


def compose_frame(
    session: Session,
    prompt: Prompt | None,
    columns: int,
    lines: int,
    main_start: int = 0,
) -> tuple[list[str], int]:
    """Return ``(rows, main_start)`` for one full-screen frame."""
    geometry = PaneGeometry.for_terminal(session, columns, lines)
    theme = session.settings.theme
    nav = session.nav
    visible = nav.visible_entries
    main_start = scroll_start(nav.selection_index, main_start, geometry.rows, len(visible))

    main = _listing_rows(
        visible,
        session,
        geometry.main,
        geometry.rows,
        main_start,
        nav.selection_index if visible else None,
        theme.main,
        show_marks=True,
        empty_text="[no matches]" if nav.filter else ("[empty directory]" if nav.loaded else ""),
    )
    display = session.settings.display
    parent = _parent_rows(session, geometry.parent, geometry.rows) if display.show_parent else None
    preview = _preview_rows(session, geometry.preview, geometry.rows) if display.show_preview else None
    separator = f"{theme.separator}{SEPARATOR}{theme.reset}"

    rows = [_header(session, columns)]
    for idx in range(geometry.rows):
        cells = []
        if parent is not None:
            cells.append(parent[idx])
        cells.append(main[idx])
        if preview is not None:
            cells.append(preview[idx])
        rows.append(separator.join(cells))
    rows.append(_status(session, prompt, columns))
    return rows, main_start


def render_frame(write, rows: list[str]) -> None:
    """Write ``rows`` as one frame, homing the cursor first."""
    write("\033[H" + "\r\n".join(f"{row}\033[K" for row in rows))


__all__ = [
    "PaneGeometry",
    "compose_frame",
    "format_entry_row",
    "info_lines",
    "render_frame",
    "scroll_start",
]
