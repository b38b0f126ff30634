"""Validated, collision-safe filesystem mutations.

Every operation validates all of its inputs before touching the filesystem:
sources must exist, a directory may not be copied or moved into its own
subtree, and destination name clashes are resolved by ``_N`` suffixes unless
the caller asks to overwrite or to fail. Copies are written to a hidden
staging sibling and renamed into place, so a failure part way through never
leaves a half-populated destination behind.
"""

from __future__ import annotations

import errno
import logging
import os
import shutil
import uuid
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from send2trash import send2trash

from .errors import (
    CollisionError,
    FileIOError,
    FileManagerError,
    InvalidOperationError,
    NotFoundError,
    classify_os_error,
)

logger = logging.getLogger(__name__)

STAGING_PREFIX = ".panefm-staging-"


class FileOpVariant(str, Enum):
    CREATE_FILE = "create_file"
    CREATE_DIRECTORY = "create_directory"
    COPY = "copy"
    MOVE = "move"
    RENAME = "rename"
    DELETE = "delete"


class CollisionPolicy(str, Enum):
    """What to do when the destination name is already taken."""

    RENAME = "rename"
    OVERWRITE = "overwrite"
    ERROR = "error"


class DeleteMode(str, Enum):
    TRASH = "trash"
    PERMANENT = "permanent"

    def toggled(self) -> DeleteMode:
        return DeleteMode.PERMANENT if self is DeleteMode.TRASH else DeleteMode.TRASH


@dataclass(frozen=True)
class FileOpOutcome:
    """Summary of one completed mutation.

    ``affected`` lists the paths that now exist (or, for deletes, the paths
    that were removed). ``focus`` is the entry the cursor should land on
    after the parent directory is reloaded.
    """

    variant: FileOpVariant
    affected: tuple[Path, ...]
    directory: Path | None = None
    focus: Path | None = None
    message: str = ""


def expand_destination(raw: str | Path, base: Path) -> Path:
    """Resolve user-typed destination text; ``~`` and relative paths allowed."""
    candidate = Path(os.path.expanduser(str(raw).strip()))
    if not candidate.is_absolute():
        candidate = base / candidate
    return Path(os.path.normpath(candidate))


def unused_path(path: Path, reserved: set[Path] | None = None) -> Path:
    """Return ``path`` or the first free ``stem_N.ext`` sibling of it."""
    reserved = reserved if reserved is not None else set()
    if not os.path.lexists(path) and path not in reserved:
        return path
    stem = path.stem
    suffix = path.suffix
    counter = 1
    while True:
        candidate = path.with_name(f"{stem}_{counter}{suffix}")
        if not os.path.lexists(candidate) and candidate not in reserved:
            return candidate
        counter += 1


def is_within(path: Path, ancestor: Path) -> bool:
    """Whether ``path`` equals or lives under ``ancestor`` after resolving links."""
    real_path = os.path.realpath(path)
    real_ancestor = os.path.realpath(ancestor)
    if real_path == real_ancestor:
        return True
    return real_path.startswith(real_ancestor.rstrip(os.sep) + os.sep)


def _is_real_directory(path: Path) -> bool:
    return path.is_dir() and not path.is_symlink()


def _require_exists(path: Path) -> None:
    if not os.path.lexists(path):
        raise NotFoundError(f"No such file or directory: {path}", path)


def _require_directory(path: Path) -> None:
    if not path.exists():
        raise NotFoundError(f"Destination does not exist: {path}", path)
    if not path.is_dir():
        raise InvalidOperationError(f"Destination is not a directory: {path}", path)


def _validate_name(name: str) -> str:
    cleaned = name.strip()
    if not cleaned or cleaned in {".", ".."}:
        raise InvalidOperationError(f"Invalid name: {name!r}")
    if "\x00" in cleaned:
        raise InvalidOperationError(f"Invalid name: {name!r}")
    return cleaned


def _remove_path(path: Path) -> None:
    if _is_real_directory(path):
        shutil.rmtree(path)
    else:
        os.unlink(path)


def _remove_quietly(path: Path) -> None:
    """Best-effort cleanup of a staging or partial destination."""
    if not os.path.lexists(path):
        return
    try:
        _remove_path(path)
    except OSError:
        logger.warning("could not clean up %s", path, exc_info=True)


def _swap_into_place(source: Path, target: Path) -> None:
    """Rename ``source`` onto ``target``.

    An existing ``target`` is parked under a staging name and only removed
    once the rename succeeded; if the rename fails it is put back.
    """
    if not os.path.lexists(target):
        os.rename(source, target)
        return
    parked = target.with_name(f"{STAGING_PREFIX}{uuid.uuid4().hex}-old-{target.name}")
    os.rename(target, parked)
    try:
        os.rename(source, target)
    except BaseException:
        os.rename(parked, target)
        raise
    _remove_quietly(parked)


def _with_completed(exc: FileManagerError, done: list[Path], verb: str) -> FileManagerError:
    """Same error kind, with the message naming the items already transferred."""
    names = ", ".join(path.name for path in done)
    return type(exc)(f"{exc.message} ({len(done)} item(s) already {verb}: {names})", exc.path)


def _resolve_target(target: Path, policy: CollisionPolicy, reserved: set[Path]) -> Path:
    if not os.path.lexists(target) and target not in reserved:
        return target
    if policy == CollisionPolicy.RENAME:
        return unused_path(target, reserved)
    if policy == CollisionPolicy.OVERWRITE:
        return target
    raise CollisionError(f"'{target.name}' already exists", target)


class FileOperationEngine:
    """Executes one mutation at a time on behalf of the file-op worker."""

    def __init__(self, trash: Callable[[str], None] | None = None) -> None:
        self._trash = trash if trash is not None else send2trash

    # Create

    def create_file(self, path: Path, policy: CollisionPolicy = CollisionPolicy.RENAME) -> FileOpOutcome:
        _validate_name(path.name)
        _require_directory(path.parent)
        target = _resolve_target(path, policy, set())
        try:
            if policy == CollisionPolicy.OVERWRITE and os.path.lexists(target):
                _remove_path(target)
            with open(target, "x", encoding="utf-8"):
                pass
        except OSError as exc:
            raise classify_os_error(exc, target) from exc
        logger.info("created file %s", target)
        return FileOpOutcome(
            variant=FileOpVariant.CREATE_FILE,
            affected=(target,),
            directory=target.parent,
            focus=target,
            message=f"Created {target.name}",
        )

    def create_directory(self, path: Path, policy: CollisionPolicy = CollisionPolicy.RENAME) -> FileOpOutcome:
        _validate_name(path.name)
        target = _resolve_target(path, policy, set())
        if policy == CollisionPolicy.OVERWRITE and target.is_dir():
            return FileOpOutcome(
                variant=FileOpVariant.CREATE_DIRECTORY,
                affected=(target,),
                directory=target.parent,
                focus=target,
                message=f"{target.name} already exists",
            )
        try:
            os.makedirs(target)
        except OSError as exc:
            raise classify_os_error(exc, target) from exc
        logger.info("created directory %s", target)
        return FileOpOutcome(
            variant=FileOpVariant.CREATE_DIRECTORY,
            affected=(target,),
            directory=target.parent,
            focus=target,
            message=f"Created {target.name}/",
        )

    # Copy / move

    def _plan_transfer(
        self,
        sources: Iterable[Path],
        destination: Path,
        policy: CollisionPolicy,
        *,
        moving: bool,
    ) -> list[tuple[Path, Path]]:
        """Validate every source and pick each target before anything mutates."""
        sources = list(sources)
        if not sources:
            raise InvalidOperationError("Nothing to transfer")
        _require_directory(destination)

        plan: list[tuple[Path, Path]] = []
        reserved: set[Path] = set()
        verb = "move" if moving else "copy"
        for source in sources:
            _require_exists(source)
            if _is_real_directory(source) and is_within(destination, source):
                raise InvalidOperationError(
                    f"Cannot {verb} '{source.name}' into itself",
                    source,
                )
            natural_target = destination / source.name
            if moving and os.path.realpath(source.parent) == os.path.realpath(destination):
                raise InvalidOperationError(f"'{source.name}' is already in {destination}", source)
            target = _resolve_target(natural_target, policy, reserved)
            if os.path.lexists(target) and is_within(source, target):
                raise InvalidOperationError(f"Cannot overwrite '{target.name}' with its own contents", target)
            reserved.add(target)
            plan.append((source, target))
        return plan

    def _staged_copy(self, source: Path, target: Path) -> None:
        """Copy ``source`` to ``target`` via a hidden staging sibling."""
        staging = target.with_name(f"{STAGING_PREFIX}{uuid.uuid4().hex}-{target.name}")
        failures: list[OSError] = []

        def copy_file(src: str, dst: str) -> object:
            try:
                return shutil.copy2(src, dst)
            except OSError as exc:
                failures.append(exc)
                raise

        try:
            if source.is_symlink():
                os.symlink(os.readlink(source), staging)
            elif source.is_dir():
                shutil.copytree(source, staging, symlinks=True, copy_function=copy_file)
            else:
                copy_file(str(source), str(staging))
            _swap_into_place(staging, target)
        except shutil.Error as exc:
            _remove_quietly(staging)
            if failures:
                raise classify_os_error(failures[0], Path(failures[0].filename or source)) from exc
            raise FileIOError(f"Copy failed: {source}", source) from exc
        except OSError as exc:
            _remove_quietly(staging)
            raise classify_os_error(exc, Path(exc.filename) if exc.filename else source) from exc
        except BaseException:
            _remove_quietly(staging)
            raise

    def copy(
        self,
        sources: Iterable[Path],
        destination: Path,
        policy: CollisionPolicy = CollisionPolicy.RENAME,
    ) -> FileOpOutcome:
        plan = self._plan_transfer(sources, destination, policy, moving=False)
        done: list[Path] = []
        for source, target in plan:
            try:
                self._staged_copy(source, target)
            except FileManagerError as exc:
                if not done:
                    raise
                raise _with_completed(exc, done, "copied") from exc
            logger.info("copied %s -> %s", source, target)
            done.append(target)
        return FileOpOutcome(
            variant=FileOpVariant.COPY,
            affected=tuple(done),
            directory=destination,
            focus=min(done),
            message=f"Copied {len(done)} item(s)",
        )

    def move(
        self,
        sources: Iterable[Path],
        destination: Path,
        policy: CollisionPolicy = CollisionPolicy.RENAME,
    ) -> FileOpOutcome:
        plan = self._plan_transfer(sources, destination, policy, moving=True)
        done: list[Path] = []
        for source, target in plan:
            try:
                self._move_one(source, target)
            except FileManagerError as exc:
                if not done:
                    raise
                raise _with_completed(exc, done, "moved") from exc
            logger.info("moved %s -> %s", source, target)
            done.append(target)
        return FileOpOutcome(
            variant=FileOpVariant.MOVE,
            affected=tuple(done),
            directory=destination,
            focus=min(done),
            message=f"Moved {len(done)} item(s)",
        )

    def _move_one(self, source: Path, target: Path) -> None:
        try:
            _swap_into_place(source, target)
            return
        except OSError as exc:
            if exc.errno != errno.EXDEV:
                raise classify_os_error(exc, source) from exc

        # Different filesystem: copy then drop the source.
        self._staged_copy(source, target)
        try:
            _remove_path(source)
        except OSError as exc:
            raise FileIOError(
                f"Copied to destination, but could not remove source: {exc.strerror or exc}",
                source,
            ) from exc

    # Rename

    def rename(
        self,
        source: Path,
        new_name: str,
        policy: CollisionPolicy = CollisionPolicy.ERROR,
    ) -> FileOpOutcome:
        name = _validate_name(new_name)
        if os.sep in name or (os.altsep and os.altsep in name):
            raise InvalidOperationError(f"Invalid name: {new_name!r}")
        _require_exists(source)
        target = source.with_name(name)
        if target == source:
            raise InvalidOperationError(f"'{name}' is unchanged", source)
        target = _resolve_target(target, policy, set())
        try:
            _swap_into_place(source, target)
        except OSError as exc:
            raise classify_os_error(exc, source) from exc
        logger.info("renamed %s -> %s", source, target)
        return FileOpOutcome(
            variant=FileOpVariant.RENAME,
            affected=(target,),
            directory=target.parent,
            focus=target,
            message=f"Renamed to {target.name}",
        )

    # Delete

    def delete(self, paths: Iterable[Path], mode: DeleteMode = DeleteMode.TRASH) -> FileOpOutcome:
        paths = list(paths)
        if not paths:
            raise InvalidOperationError("Nothing to delete")
        for path in paths:
            _require_exists(path)

        removed: list[Path] = []
        for path in paths:
            try:
                if mode == DeleteMode.TRASH:
                    self._trash(str(path))
                else:
                    _remove_path(path)
            except FileManagerError:
                raise
            except OSError as exc:
                raise classify_os_error(exc, path) from exc
            logger.info("deleted %s (%s)", path, mode.value)
            removed.append(path)

        verb = "Trashed" if mode == DeleteMode.TRASH else "Deleted"
        return FileOpOutcome(
            variant=FileOpVariant.DELETE,
            affected=tuple(removed),
            directory=removed[0].parent,
            message=f"{verb} {len(removed)} item(s)",
        )


__all__ = [
    "STAGING_PREFIX",
    "FileOpVariant",
    "CollisionPolicy",
    "DeleteMode",
    "FileOpOutcome",
    "FileOperationEngine",
    "expand_destination",
    "unused_path",
    "is_within",
]
