"""Single-threaded dispatcher that drives the workers.

``Session`` owns the ``NavigationState`` and is the only code that mutates
it. User actions translate into requests; ``tick`` drains worker responses,
drops stale ones through the ``RequestTracker``, applies the rest, and fires
debounced preview and find requests once their quiet period has elapsed.
Nothing here blocks: debounce is a timestamp comparison and staleness is an
id comparison.
"""

from __future__ import annotations

import logging
import os
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from .config import Settings
from .entries import Entry, Listing, ListingOptions
from .errors import ErrorKind
from .fileops import CollisionPolicy, DeleteMode, FileOpVariant, expand_destination
from .find import FindMatch
from .navigation import ClipboardMode, NavigationState
from .preview import MIN_PREVIEW_LINES, PreviewKind, PreviewMethod, PreviewResult, bat_arguments
from .protocol import (
    Category,
    DirectoryLoaded,
    ErrorPayload,
    FileOp,
    Find,
    FindResults,
    OperationComplete,
    PreviewLoaded,
    ReadDirectory,
    ReadPreview,
    RequestTracker,
    Response,
)
from .tools import ToolRegistry
from .workers import WorkerPool, build_handlers

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionTiming:
    """Quiet periods and message lifetimes, in seconds."""

    preview_debounce: float = 0.035
    find_debounce: float = 0.08
    status_seconds: float = 5.0


class Session:
    """Dispatcher state for one interactive run."""

    def __init__(
        self,
        start_path: Path,
        settings: Settings | None = None,
        *,
        pool: WorkerPool | None = None,
        tracker: RequestTracker | None = None,
        tools: ToolRegistry | None = None,
        clock: Callable[[], float] = time.monotonic,
        timing: SessionTiming = SessionTiming(),
        editor: Callable[[Path], str | None] | None = None,
    ) -> None:
        self.settings = settings if settings is not None else Settings()
        self.tracker = tracker if tracker is not None else (pool.tracker if pool is not None else RequestTracker())
        self.tools = tools if tools is not None else ToolRegistry()
        self.pool = pool if pool is not None else WorkerPool(self.tracker, build_handlers(self.tracker, self.tools))
        self.timing = timing
        self._clock = clock
        self._open_in_editor = editor

        general = self.settings.general
        self.nav = NavigationState(start_path, case_insensitive=general.case_insensitive)
        self.show_hidden = general.show_hidden
        self.delete_mode: DeleteMode = general.delete_mode
        self.parent_listing: Listing | None = None

        self.preview: PreviewResult | None = None
        self.preview_path: Path | None = None
        self.preview_width = 40
        self.preview_height = 20
        self._preview_due: float | None = None
        self._preview_key: tuple[Path, int, int] | None = None

        self.find_active = False
        self.find_query = ""
        self.find_results: tuple[FindMatch, ...] = ()
        self.find_selection = 0
        self.find_running = False
        self.find_truncated = False
        self._find_due: float | None = None
        self._find_sent_query: str | None = None

        self._file_ops: deque[FileOp] = deque()

        self.status_message = ""
        self.status_is_error = False
        self._status_until = 0.0
        self.show_help = False
        self.show_info = False
        self.dirty = True

    # Lifecycle

    def start(self) -> None:
        self.pool.start()
        self.request_directory(self.nav.current_path)

    def shutdown(self) -> None:
        self.pool.shutdown()
        for category in Category:
            logger.debug("%s: %d stale response(s) dropped", category.value, self.tracker.discarded_count(category))

    def listing_options(self) -> ListingOptions:
        return self.settings.general.listing_options(show_hidden=self.show_hidden)

    # Status line

    def set_status(self, message: str, *, error: bool = False, now: float | None = None) -> None:
        now = self._clock() if now is None else now
        self.status_message = message
        self.status_is_error = error
        self._status_until = now + self.timing.status_seconds
        self.dirty = True

    def clear_status(self) -> None:
        if self.status_message:
            self.status_message = ""
            self.status_is_error = False
            self._status_until = 0.0
            self.dirty = True

    # Tick

    def tick(self, now: float | None = None) -> None:
        """Run one dispatcher step. Never blocks."""
        now = self._clock() if now is None else now
        if self.status_message and now >= self._status_until:
            self.clear_status()

        for response in self.pool.drain_responses():
            if not self.tracker.accept(response):
                logger.debug(
                    "dropped %s response %d (%s)",
                    response.category.value,
                    response.request_id,
                    self.tracker.phase_of(response.category, response.request_id).value,
                )
                continue
            self._apply(response, now)

        self._pump_file_ops()

        if self._preview_due is not None and now >= self._preview_due:
            self._preview_due = None
            self._issue_preview()
        if self._find_due is not None and now >= self._find_due:
            self._find_due = None
            self._issue_find()

    def _apply(self, response: Response, now: float) -> None:
        self.dirty = True
        if response.category == Category.NAVIGATION:
            self._apply_navigation(response, now)
        elif response.category == Category.PREVIEW:
            self._apply_preview(response)
        elif response.category == Category.FILE_OP:
            self._apply_file_op(response, now)
        elif response.category == Category.FIND:
            self._apply_find(response, now)

    def _apply_navigation(self, response: Response, now: float) -> None:
        if not response.ok:
            error = response.error
            target = self.nav.pending_path
            if target is not None:
                self.nav.navigation_failed(target)
            self._report_error(error, now)
            if target is not None and target == self.nav.current_path and error.kind == ErrorKind.NOT_FOUND:
                # The directory we were showing went away; climb to something that exists.
                ancestor = target.parent
                while ancestor != ancestor.parent and not ancestor.is_dir():
                    ancestor = ancestor.parent
                self.request_directory(ancestor, focus=None)
            return

        loaded = response.payload
        assert isinstance(loaded, DirectoryLoaded)
        self.nav.apply_listing(loaded.listing, focus=loaded.focus)
        self.parent_listing = loaded.parent
        self._preview_key = None
        self.selection_changed(now)

    def _apply_preview(self, response: Response) -> None:
        if not response.ok:
            error = response.error
            self.preview = PreviewResult(
                kind=PreviewKind.ERROR,
                lines=(f"[{error.message}]",),
                error_kind=error.kind,
            )
            self.preview_path = error.path
            return
        loaded = response.payload
        assert isinstance(loaded, PreviewLoaded)
        self.preview = loaded.result
        self.preview_path = loaded.path

    def _apply_file_op(self, response: Response, now: float) -> None:
        if not response.ok:
            self._report_error(response.error, now)
            self.refresh()
            return
        outcome = response.payload
        assert isinstance(outcome, OperationComplete)
        self.set_status(outcome.message, now=now)
        focus = outcome.focus if outcome.directory == self.nav.current_path else None
        self.refresh(focus=focus)

    def _apply_find(self, response: Response, now: float) -> None:
        if not response.ok:
            self.find_running = False
            self._report_error(response.error, now)
            return
        results = response.payload
        assert isinstance(results, FindResults)
        if results.query != self._find_sent_query:
            return
        self.find_results = results.matches
        self.find_truncated = results.truncated
        self.find_running = not response.final
        if self.find_selection >= len(self.find_results):
            self.find_selection = max(0, len(self.find_results) - 1)

    def _report_error(self, error: ErrorPayload | None, now: float) -> None:
        message = error.message if error is not None else "Unknown error"
        logger.info("reported error: %s", message)
        self.set_status(message, error=True, now=now)

    # Directory reads

    def request_directory(self, path: Path, focus: Path | None = None) -> bool:
        """Navigate to ``path``; the current listing stays until it loads.

        When ``path`` is the directory already shown, only the cursor moves
        to ``focus``.
        """
        if self.nav.set_path(path):
            self._submit_read(path, focus)
            return True
        if focus is None:
            return False
        if path == self.nav.pending_path:
            # A read is already in flight; reissue it carrying the focus.
            self._submit_read(path, focus)
            return True
        self._focus_entry(focus)
        return False

    def _focus_entry(self, path: Path) -> None:
        before = self.nav.selected_path()
        if not self.nav.select_path(path) and self.nav.filter:
            self.nav.clear_filter()
            self.nav.select_path(path)
        self.dirty = True
        if self.nav.selected_path() != before:
            self.selection_changed()

    def refresh(self, focus: Path | None = None) -> None:
        """Re-read the current directory unless a navigation is already pending."""
        pending = self.nav.pending_path
        if pending is not None and pending != self.nav.current_path:
            return
        self.nav.pending_path = self.nav.current_path
        self._submit_read(self.nav.current_path, focus if focus is not None else self.nav.selected_path())

    def _submit_read(self, path: Path, focus: Path | None) -> None:
        self.pool.submit(
            Category.NAVIGATION,
            ReadDirectory(
                path=path,
                options=self.listing_options(),
                focus=focus,
                include_parent=self.settings.display.show_parent,
            ),
        )

    # Preview

    def selection_changed(self, now: float | None = None) -> None:
        """Schedule a preview for the new selection."""
        self.dirty = True
        if not self.settings.display.show_preview:
            return
        if self.settings.display.instant_preview:
            self._preview_due = None
            self._issue_preview()
            return
        now = self._clock() if now is None else now
        self._preview_due = now + self.timing.preview_debounce

    def resize_preview(self, width: int, height: int) -> None:
        width = max(1, width)
        height = max(1, height)
        if (width, height) == (self.preview_width, self.preview_height):
            return
        self.preview_width = width
        self.preview_height = height
        self.selection_changed()

    def preview_pending(self) -> bool:
        return self._preview_due is not None or self.tracker.is_outstanding(Category.PREVIEW)

    def _issue_preview(self) -> None:
        entry = self.nav.selected_entry()
        if entry is None:
            self.preview = None
            self.preview_path = None
            self._preview_key = None
            return
        visible = max(MIN_PREVIEW_LINES, min(self.settings.display.preview_lines, self.preview_height))
        key = (entry.path, self.preview_width, visible)
        if key == self._preview_key:
            return
        self._preview_key = key

        options = self.settings.display.preview_options
        bat_args: tuple[str, ...] = ()
        if options.method == PreviewMethod.BAT:
            bat_args = bat_arguments(
                style=options.style,
                theme=options.theme or self.settings.theme.bat_theme(),
                wrap=options.wrap,
                width=self.preview_width,
            )
        self.pool.submit(
            Category.PREVIEW,
            ReadPreview(
                path=entry.path,
                visible_lines=visible,
                max_bytes=self.settings.display.preview_max_bytes,
                width=self.preview_width,
                method=options.method,
                options=self.listing_options(),
                bat_args=bat_args,
                pygments_style=self.settings.theme.pygments_style(),
            ),
        )

    # Cursor

    def move_selection(self, delta: int) -> None:
        if self.nav.move_selection(delta):
            self.selection_changed()

    def go_to_top(self) -> None:
        if self.nav.go_to_top():
            self.selection_changed()

    def go_to_bottom(self) -> None:
        if self.nav.go_to_bottom():
            self.selection_changed()

    # Navigation actions

    def go_parent(self) -> None:
        current = self.nav.current_path
        if current.parent == current:
            return
        self.request_directory(current.parent, focus=current)

    def go_into_dir(self) -> bool:
        entry = self.nav.selected_entry()
        if entry is None or not entry.is_directory:
            return False
        self.request_directory(entry.path)
        return True

    def open_selected(self) -> None:
        entry = self.nav.selected_entry()
        if entry is None:
            return
        if entry.is_directory:
            self.request_directory(entry.path)
            return
        if self._open_in_editor is None:
            self.set_status("No editor available", error=True)
            return
        error = self._open_in_editor(entry.path)
        self.dirty = True
        if error is not None:
            self.set_status(error, error=True)
            return
        # The file may have changed on disk.
        self._preview_key = None
        self.refresh(focus=entry.path)

    def go_home(self) -> None:
        self.request_directory(Path.home())

    def go_to_path(self, raw: str) -> None:
        if not raw.strip():
            return
        target = expand_destination(raw, self.nav.current_path)
        if target.is_dir():
            self.request_directory(target)
        elif os.path.lexists(target):
            self.request_directory(target.parent, focus=target)
        else:
            self.set_status(f"No such directory: {target}", error=True)

    def toggle_hidden(self) -> None:
        self.show_hidden = not self.show_hidden
        self.set_status("Showing hidden files" if self.show_hidden else "Hiding hidden files")
        self.refresh()

    def toggle_help(self) -> None:
        self.show_help = not self.show_help
        self.dirty = True

    def toggle_info(self) -> None:
        """Show or hide metadata for the selected entry."""
        self.show_info = not self.show_info
        self.dirty = True

    # Filter, markers and clipboard

    def apply_filter(self, text: str) -> None:
        before = self.nav.selected_path()
        self.nav.apply_filter(text)
        self.dirty = True
        if self.nav.selected_path() != before:
            self.selection_changed()

    def clear_filter(self) -> None:
        self.apply_filter("")

    def toggle_marker(self) -> None:
        before = self.nav.selection_index
        self.nav.toggle_marker_advance(jump=self.settings.display.toggle_marker_jump)
        self.dirty = True
        if self.nav.selection_index != before:
            self.selection_changed()

    def clear_markers(self) -> None:
        self.nav.clear_markers()
        self.dirty = True

    def yank(self, mode: ClipboardMode) -> None:
        targets = self.nav.action_targets()
        if not targets:
            return
        self.nav.set_clipboard(mode, targets)
        self.nav.clear_markers()
        verb = "copy" if mode == ClipboardMode.COPY else "move"
        self.set_status(f"{len(targets)} item(s) ready to {verb}")

    def paste(self) -> None:
        clipboard = self.nav.clipboard
        if clipboard is None:
            self.set_status("Clipboard is empty")
            return
        variant = FileOpVariant.COPY if clipboard.mode == ClipboardMode.COPY else FileOpVariant.MOVE
        self.queue_file_op(
            FileOp(variant=variant, sources=tuple(sorted(clipboard.paths)), destination=self.nav.current_path)
        )
        if clipboard.mode == ClipboardMode.CUT:
            self.nav.clear_clipboard()

    # File operations

    def delete(self) -> None:
        """Delete the action targets with the current delete mode."""
        targets = self.nav.action_targets()
        if not targets:
            return
        self.queue_file_op(FileOp(variant=FileOpVariant.DELETE, sources=tuple(targets), delete_mode=self.delete_mode))
        self.nav.clear_markers()

    def toggle_delete_mode(self) -> DeleteMode:
        """Flip between trash and permanent for the deletes that follow."""
        self.delete_mode = self.delete_mode.toggled()
        label = "move to trash" if self.delete_mode == DeleteMode.TRASH else "delete permanently"
        self.set_status(f"Delete mode: {label}")
        return self.delete_mode

    def rename(self, new_name: str) -> None:
        source = self.nav.selected_path()
        name = new_name.strip()
        if source is None or not name:
            return
        if not _is_plain_name(name):
            self.set_status(f"Invalid name: {new_name!r}", error=True)
            return
        self.queue_file_op(
            FileOp(
                variant=FileOpVariant.RENAME,
                sources=(source,),
                destination=source.parent / name,
                collision_policy=CollisionPolicy.ERROR,
            )
        )

    def create(self, name: str, *, directory: bool = False) -> None:
        name = name.strip()
        if not name:
            return
        if not _is_plain_name(name):
            self.set_status(f"Invalid name: {name!r}", error=True)
            return
        variant = FileOpVariant.CREATE_DIRECTORY if directory else FileOpVariant.CREATE_FILE
        self.queue_file_op(FileOp(variant=variant, sources=(self.nav.current_path / name,)))

    def move_to(self, raw_destination: str) -> None:
        targets = self.nav.action_targets()
        if not targets or not raw_destination.strip():
            return
        destination = expand_destination(raw_destination, self.nav.current_path)
        self.queue_file_op(FileOp(variant=FileOpVariant.MOVE, sources=tuple(targets), destination=destination))
        self.nav.clear_markers()

    def queue_file_op(self, op: FileOp) -> None:
        """Queue a mutation; only one is ever outstanding on the worker."""
        self._file_ops.append(op)
        self.dirty = True
        self._pump_file_ops()

    def pending_file_ops(self) -> int:
        busy = 1 if self.tracker.is_outstanding(Category.FILE_OP) else 0
        return len(self._file_ops) + busy

    def _pump_file_ops(self) -> None:
        if self._file_ops and not self.tracker.is_outstanding(Category.FILE_OP):
            self.pool.submit(Category.FILE_OP, self._file_ops.popleft())

    # Find

    def open_find(self) -> None:
        self.find_active = True
        self.find_query = ""
        self.find_results = ()
        self.find_selection = 0
        self.find_truncated = False
        self._find_sent_query = None
        self.dirty = True

    def close_find(self) -> None:
        self.find_active = False
        self._find_due = None
        self.find_running = False
        self.dirty = True
        # Supersede whatever is still scanning.
        self._find_sent_query = ""
        self.pool.submit(Category.FIND, Find(root=self.nav.current_path, query="", max_results=0))

    def set_find_query(self, query: str, now: float | None = None) -> None:
        now = self._clock() if now is None else now
        self.find_query = query
        self._find_due = now + self.timing.find_debounce
        self.dirty = True

    def move_find_selection(self, delta: int) -> None:
        if not self.find_results:
            return
        self.find_selection = max(0, min(len(self.find_results) - 1, self.find_selection + delta))
        self.dirty = True

    def accept_find_selection(self) -> bool:
        if not self.find_results:
            return False
        match = self.find_results[self.find_selection]
        self.close_find()
        if match.is_directory:
            self.request_directory(match.path)
        else:
            self.request_directory(match.path.parent, focus=match.path)
        return True

    def _issue_find(self) -> None:
        query = self.find_query
        if query == self._find_sent_query:
            return
        self._find_sent_query = query
        self.find_selection = 0
        self.find_running = bool(query)
        if not query:
            self.find_results = ()
        self.pool.submit(
            Category.FIND,
            Find(
                root=self.nav.current_path,
                query=query,
                max_results=self.settings.general.max_find_results,
                show_hidden=self.show_hidden,
            ),
        )

    # Presentation helpers

    def entry_is_marked(self, entry: Entry) -> bool:
        return entry.path in self.nav.markers

    def entry_in_clipboard(self, entry: Entry) -> bool:
        clipboard = self.nav.clipboard
        return clipboard is not None and entry.path in clipboard.paths


def _is_plain_name(name: str) -> bool:
    if name in {".", ".."}:
        return False
    return os.sep not in name and not (os.altsep and os.altsep in name)


__all__ = ["Session", "SessionTiming"]
