"""Error taxonomy shared by workers, engines and the dispatcher.

Engine code raises ``FileManagerError`` subclasses; workers turn any
exception into an ``ErrorPayload`` carrying one ``ErrorKind`` and a message.
"""

from __future__ import annotations

import errno
from enum import Enum
from pathlib import Path


class ErrorKind(str, Enum):
    """Failure categories reported back to the dispatcher."""

    NOT_FOUND = "NotFound"
    PERMISSION_DENIED = "PermissionDenied"
    COLLISION = "Collision"
    INVALID_OPERATION = "InvalidOperation"
    EXTERNAL_TOOL_MISSING = "ExternalToolMissing"
    IO_ERROR = "IOError"


class FileManagerError(Exception):
    """Base error with a taxonomy kind and optional offending path."""

    kind: ErrorKind = ErrorKind.IO_ERROR

    def __init__(self, message: str, path: Path | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.path = path

    def __str__(self) -> str:
        return self.message


class NotFoundError(FileManagerError):
    kind = ErrorKind.NOT_FOUND


class PermissionDeniedError(FileManagerError):
    kind = ErrorKind.PERMISSION_DENIED


class CollisionError(FileManagerError):
    kind = ErrorKind.COLLISION


class InvalidOperationError(FileManagerError):
    kind = ErrorKind.INVALID_OPERATION


class ExternalToolMissingError(FileManagerError):
    kind = ErrorKind.EXTERNAL_TOOL_MISSING


class FileIOError(FileManagerError):
    kind = ErrorKind.IO_ERROR


def _describe(exc: OSError, path: Path | None) -> str:
    reason = exc.strerror or str(exc) or exc.__class__.__name__
    target = path if path is not None else exc.filename
    if target:
        return f"{reason}: {target}"
    return reason


def classify_os_error(exc: OSError, path: Path | None = None) -> FileManagerError:
    """Map an ``OSError`` onto the error taxonomy."""
    message = _describe(exc, path)
    if isinstance(exc, FileNotFoundError):
        return NotFoundError(message, path)
    if isinstance(exc, PermissionError):
        return PermissionDeniedError(message, path)
    if isinstance(exc, FileExistsError):
        return CollisionError(message, path)
    if exc.errno == errno.ELOOP:
        return InvalidOperationError(message, path)
    return FileIOError(message, path)


def as_file_manager_error(exc: BaseException) -> FileManagerError:
    """Coerce any exception into a ``FileManagerError`` instance."""
    if isinstance(exc, FileManagerError):
        return exc
    if isinstance(exc, OSError):
        return classify_os_error(exc)
    return FileIOError(str(exc) or exc.__class__.__name__)


__all__ = [
    "ErrorKind",
    "FileManagerError",
    "NotFoundError",
    "PermissionDeniedError",
    "CollisionError",
    "InvalidOperationError",
    "ExternalToolMissingError",
    "FileIOError",
    "classify_os_error",
    "as_file_manager_error",
]
