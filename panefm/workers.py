"""The four long-lived background workers.

Each worker owns an inbound request queue and an outbound response queue
and processes requests strictly in FIFO order, blocking on ``get`` while
idle. Handlers may raise freely: the worker loop turns every exception into
an error response so that no failure ever escapes a worker thread.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from queue import Empty, Queue

from .entries import read_directory
from .errors import FileIOError, FileManagerError, InvalidOperationError
from .fileops import DeleteMode, FileOpVariant, FileOperationEngine
from .find import FindEngine
from .preview import read_preview
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
    Request,
    RequestPayload,
    RequestTracker,
    Response,
    ResponsePayload,
)
from .tools import ToolRegistry

logger = logging.getLogger(__name__)

Emit = Callable[[ResponsePayload], None]
Handler = Callable[[Request, Emit], ResponsePayload]

STOP_TIMEOUT_SECONDS = 1.0


class Worker:
    """One daemon thread serving a single request category."""

    def __init__(self, category: Category, handler: Handler) -> None:
        self.category = category
        self._handler = handler
        self._inbox: Queue[Request | None] = Queue()
        self._outbox: Queue[Response] = Queue()
        self._thread = threading.Thread(
            target=self._run,
            name=f"panefm-{category.value}-worker",
            daemon=True,
        )

    def start(self) -> None:
        self._thread.start()

    def submit(self, request: Request) -> None:
        self._inbox.put(request)

    def stop(self) -> None:
        self._inbox.put(None)
        self._thread.join(timeout=STOP_TIMEOUT_SECONDS)

    def is_alive(self) -> bool:
        return self._thread.is_alive()

    def _run(self) -> None:
        while True:
            request = self._inbox.get()
            if request is None:
                return
            self._outbox.put(self._process(request))

    def _process(self, request: Request) -> Response:
        def emit_partial(payload: ResponsePayload) -> None:
            self._outbox.put(
                Response(
                    request_id=request.request_id,
                    category=request.category,
                    payload=payload,
                    final=False,
                )
            )

        try:
            payload = self._handler(request, emit_partial)
        except FileManagerError as exc:
            logger.info("%s request %d failed: %s", self.category.value, request.request_id, exc)
            return Response(
                request_id=request.request_id,
                category=request.category,
                error=ErrorPayload.from_error(exc),
            )
        except Exception as exc:
            logger.exception("%s worker crashed on request %d", self.category.value, request.request_id)
            return Response(
                request_id=request.request_id,
                category=request.category,
                error=ErrorPayload.from_error(FileIOError(str(exc) or exc.__class__.__name__)),
            )
        return Response(request_id=request.request_id, category=request.category, payload=payload)

    def drain(self) -> list[Response]:
        """Drain every response produced so far without blocking."""
        out: list[Response] = []
        while True:
            try:
                out.append(self._outbox.get_nowait())
            except Empty:
                break
        return out


def run_file_op(engine: FileOperationEngine, op: FileOp) -> OperationComplete:
    """Dispatch one ``FileOp`` payload to the matching engine call."""
    if op.variant == FileOpVariant.CREATE_FILE:
        outcome = engine.create_file(_single_source(op), op.collision_policy)
    elif op.variant == FileOpVariant.CREATE_DIRECTORY:
        outcome = engine.create_directory(_single_source(op), op.collision_policy)
    elif op.variant == FileOpVariant.COPY:
        outcome = engine.copy(op.sources, _destination(op), op.collision_policy)
    elif op.variant == FileOpVariant.MOVE:
        outcome = engine.move(op.sources, _destination(op), op.collision_policy)
    elif op.variant == FileOpVariant.RENAME:
        outcome = engine.rename(_single_source(op), _destination(op).name, op.collision_policy)
    elif op.variant == FileOpVariant.DELETE:
        outcome = engine.delete(op.sources, op.delete_mode or DeleteMode.TRASH)
    else:
        raise InvalidOperationError(f"Unknown file operation: {op.variant}")
    return OperationComplete(
        variant=outcome.variant,
        affected=outcome.affected,
        directory=outcome.directory,
        focus=outcome.focus,
        message=outcome.message,
    )


def _single_source(op: FileOp):
    if len(op.sources) != 1:
        raise InvalidOperationError(f"{op.variant.value} expects exactly one path")
    return op.sources[0]


def _destination(op: FileOp):
    if op.destination is None:
        raise InvalidOperationError(f"{op.variant.value} needs a destination")
    return op.destination


def build_handlers(
    tracker: RequestTracker,
    tools: ToolRegistry,
    file_engine: FileOperationEngine | None = None,
    find_engine: FindEngine | None = None,
) -> dict[Category, Handler]:
    """Default request handlers wired to the real engines."""
    file_engine = file_engine if file_engine is not None else FileOperationEngine()
    find_engine = find_engine if find_engine is not None else FindEngine(tools)

    def navigation(request: Request, _emit: Emit) -> ResponsePayload:
        payload = _expect(request.payload, ReadDirectory)
        listing = read_directory(payload.path, payload.options)
        parent = None
        if payload.include_parent and payload.path.parent != payload.path:
            try:
                parent = read_directory(payload.path.parent, payload.options)
            except FileManagerError as exc:
                logger.info("parent listing unavailable for %s: %s", payload.path, exc)
        return DirectoryLoaded(listing=listing, focus=payload.focus, parent=parent)

    def preview(request: Request, _emit: Emit) -> ResponsePayload:
        payload = _expect(request.payload, ReadPreview)
        result = read_preview(
            payload.path,
            visible_lines=payload.visible_lines,
            max_bytes=payload.max_bytes,
            width=payload.width,
            method=payload.method,
            options=payload.options,
            bat_executable=tools.preview_helper(),
            bat_args=payload.bat_args,
            pygments_style=payload.pygments_style,
        )
        return PreviewLoaded(path=payload.path, result=result)

    def file_op(request: Request, _emit: Emit) -> ResponsePayload:
        return run_file_op(file_engine, _expect(request.payload, FileOp))

    def find(request: Request, emit: Emit) -> ResponsePayload:
        payload = _expect(request.payload, Find)
        matches, stopped = find_engine.search(
            payload.root,
            payload.query,
            payload.max_results,
            show_hidden=payload.show_hidden,
            is_cancelled=lambda: tracker.is_superseded(Category.FIND, request.request_id),
            on_progress=lambda partial: emit(FindResults(query=payload.query, matches=tuple(partial))),
        )
        return FindResults(query=payload.query, matches=tuple(matches), truncated=stopped)

    return {
        Category.NAVIGATION: navigation,
        Category.PREVIEW: preview,
        Category.FILE_OP: file_op,
        Category.FIND: find,
    }


def _expect(payload: RequestPayload, kind: type):
    if not isinstance(payload, kind):
        raise InvalidOperationError(f"unexpected payload {type(payload).__name__}, wanted {kind.__name__}")
    return payload


class WorkerPool:
    """Exactly four workers, one per category, alive for the whole session."""

    def __init__(self, tracker: RequestTracker, handlers: dict[Category, Handler]) -> None:
        missing = [category.value for category in Category if category not in handlers]
        if missing:
            raise ValueError(f"missing handlers for: {', '.join(missing)}")
        self.tracker = tracker
        self._workers = {category: Worker(category, handlers[category]) for category in Category}
        self._started = False

    def start(self) -> None:
        if self._started:
            return
        for worker in self._workers.values():
            worker.start()
        self._started = True

    def submit(self, category: Category, payload: RequestPayload) -> int:
        """Issue a new id for ``category`` and queue the request."""
        request_id = self.tracker.issue(category)
        self._workers[category].submit(Request(request_id=request_id, category=category, payload=payload))
        return request_id

    def drain_responses(self) -> list[Response]:
        out: list[Response] = []
        for worker in self._workers.values():
            out.extend(worker.drain())
        return out

    def shutdown(self) -> None:
        for worker in self._workers.values():
            worker.stop()
        self._started = False


__all__ = [
    "Emit",
    "Handler",
    "Worker",
    "WorkerPool",
    "build_handlers",
    "run_file_op",
]
