"""Id-stamped request/response messages exchanged with the workers.

Every work category keeps its own monotonically increasing id counter. A
response is applied only when its id is the newest one issued for its
category; anything older is discarded. Discarding is the only cancellation
mechanism: in-flight work always runs to completion.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from .entries import Listing, ListingOptions
from .errors import ErrorKind, FileManagerError
from .fileops import CollisionPolicy, DeleteMode, FileOpVariant
from .find import FindMatch
from .preview import PreviewMethod, PreviewResult


class Category(str, Enum):
    NAVIGATION = "navigation"
    PREVIEW = "preview"
    FILE_OP = "file_op"
    FIND = "find"


class RequestPhase(str, Enum):
    IDLE = "idle"
    REQUESTED = "requested"
    COMPLETED = "completed"
    SUPERSEDED = "superseded"
    ERRORED = "errored"


# Request payloads


@dataclass(frozen=True)
class ReadDirectory:
    path: Path
    options: ListingOptions = ListingOptions()
    focus: Path | None = None
    include_parent: bool = False


@dataclass(frozen=True)
class ReadPreview:
    path: Path
    visible_lines: int
    max_bytes: int
    width: int
    method: PreviewMethod = PreviewMethod.INTERNAL
    options: ListingOptions = ListingOptions()
    bat_args: tuple[str, ...] = ()
    pygments_style: str = "monokai"


@dataclass(frozen=True)
class Find:
    root: Path
    query: str
    max_results: int
    show_hidden: bool = False


@dataclass(frozen=True)
class FileOp:
    variant: FileOpVariant
    sources: tuple[Path, ...] = ()
    destination: Path | None = None
    collision_policy: CollisionPolicy = CollisionPolicy.RENAME
    delete_mode: DeleteMode | None = None


# Response payloads


@dataclass(frozen=True)
class DirectoryLoaded:
    listing: Listing
    focus: Path | None = None
    parent: Listing | None = None


@dataclass(frozen=True)
class PreviewLoaded:
    path: Path
    result: PreviewResult


@dataclass(frozen=True)
class FindResults:
    query: str
    matches: tuple[FindMatch, ...]
    truncated: bool = False


@dataclass(frozen=True)
class OperationComplete:
    variant: FileOpVariant
    affected: tuple[Path, ...]
    directory: Path | None = None
    focus: Path | None = None
    message: str = ""


@dataclass(frozen=True)
class ErrorPayload:
    kind: ErrorKind
    message: str
    path: Path | None = None

    @classmethod
    def from_error(cls, error: FileManagerError) -> ErrorPayload:
        return cls(kind=error.kind, message=error.message, path=error.path)


RequestPayload = ReadDirectory | ReadPreview | Find | FileOp
ResponsePayload = DirectoryLoaded | PreviewLoaded | FindResults | OperationComplete


@dataclass(frozen=True)
class Request:
    request_id: int
    category: Category
    payload: RequestPayload


@dataclass(frozen=True)
class Response:
    """Worker answer; ``final`` is ``False`` for incremental find batches."""

    request_id: int
    category: Category
    payload: ResponsePayload | None = None
    error: ErrorPayload | None = None
    final: bool = True

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class _CategoryState:
    latest_id: int = 0
    phase: RequestPhase = RequestPhase.IDLE
    discarded: int = 0


class RequestTracker:
    """Per-category id counters and the staleness rule.

    ``issue`` and ``accept`` run on the dispatcher thread. ``is_superseded``
    may be polled from workers, hence the lock.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._states = {category: _CategoryState() for category in Category}

    def issue(self, category: Category) -> int:
        with self._lock:
            state = self._states[category]
            state.latest_id += 1
            state.phase = RequestPhase.REQUESTED
            return state.latest_id

    def latest(self, category: Category) -> int:
        with self._lock:
            return self._states[category].latest_id

    def phase(self, category: Category) -> RequestPhase:
        with self._lock:
            return self._states[category].phase

    def phase_of(self, category: Category, request_id: int) -> RequestPhase:
        """Return the lifecycle phase of one specific request id."""
        with self._lock:
            state = self._states[category]
            if request_id == state.latest_id:
                return state.phase
            if request_id < state.latest_id:
                return RequestPhase.SUPERSEDED
            return RequestPhase.IDLE

    def is_outstanding(self, category: Category) -> bool:
        return self.phase(category) == RequestPhase.REQUESTED

    def is_superseded(self, category: Category, request_id: int) -> bool:
        with self._lock:
            return request_id != self._states[category].latest_id

    def discarded_count(self, category: Category) -> int:
        with self._lock:
            return self._states[category].discarded

    def accept(self, response: Response) -> bool:
        """Return whether ``response`` should be applied.

        Stale responses are counted and dropped. Final responses for the
        newest id close the request as completed or errored.
        """
        with self._lock:
            state = self._states[response.category]
            if response.request_id != state.latest_id or state.phase != RequestPhase.REQUESTED:
                state.discarded += 1
                return False
            if response.final or not response.ok:
                state.phase = RequestPhase.COMPLETED if response.ok else RequestPhase.ERRORED
            return True


__all__ = [
    "Category",
    "RequestPhase",
    "ReadDirectory",
    "ReadPreview",
    "Find",
    "FileOp",
    "DirectoryLoaded",
    "PreviewLoaded",
    "FindResults",
    "OperationComplete",
    "ErrorPayload",
    "RequestPayload",
    "ResponsePayload",
    "Request",
    "Response",
    "RequestTracker",
]
