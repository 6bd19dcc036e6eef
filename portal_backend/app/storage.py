"""Filesystem access layer.

Every OS call made by the upload and delete code goes through here.  OS
errors are narrowed to the closed ``FsErrorKind`` enum so callers never
inspect errno values or platform-specific exception types.
"""
from __future__ import annotations

import enum
import errno
import os
import shutil
import stat
from typing import BinaryIO, List

CHUNK_SIZE = 1024 * 1024


class FsErrorKind(enum.Enum):
    NOT_FOUND = "not_found"
    PERMISSION_DENIED = "permission_denied"
    NOT_EMPTY = "not_empty"
    OTHER = "other"


class EntryKind(enum.Enum):
    FILE = "file"
    DIRECTORY = "directory"
    OTHER = "other"


class FilesystemError(Exception):
    def __init__(self, kind: FsErrorKind, path: str, cause: OSError):
        self.kind = kind
        self.path = path
        self.cause = cause
        super().__init__(f"{kind.value}: {path} ({cause})")


def classify(exc: OSError) -> FsErrorKind:
    if isinstance(exc, FileNotFoundError):
        return FsErrorKind.NOT_FOUND
    if isinstance(exc, PermissionError):
        return FsErrorKind.PERMISSION_DENIED
    if exc.errno in (errno.ENOTEMPTY, errno.EEXIST):
        return FsErrorKind.NOT_EMPTY
    return FsErrorKind.OTHER


def _wrap(path: str, exc: OSError) -> FilesystemError:
    return FilesystemError(classify(exc), path, exc)


def ensure_dir(path: str) -> None:
    """Create ``path`` and any missing parents; no-op if it already exists."""
    try:
        os.makedirs(path, exist_ok=True)
    except OSError as exc:
        raise _wrap(path, exc) from exc


def write_stream(path: str, source: BinaryIO) -> int:
    """Copy ``source`` into a new file at ``path`` and return bytes written."""
    try:
        source.seek(0)
        with open(path, "wb") as out_f:
            shutil.copyfileobj(source, out_f, CHUNK_SIZE)
        return os.path.getsize(path)
    except OSError as exc:
        raise _wrap(path, exc) from exc


def entry_kind(path: str) -> EntryKind:
    try:
        mode = os.stat(path).st_mode
    except OSError as exc:
        raise _wrap(path, exc) from exc
    if stat.S_ISREG(mode):
        return EntryKind.FILE
    if stat.S_ISDIR(mode):
        return EntryKind.DIRECTORY
    return EntryKind.OTHER


def remove_file(path: str) -> None:
    try:
        os.remove(path)
    except OSError as exc:
        raise _wrap(path, exc) from exc


def list_dir(path: str) -> List[str]:
    try:
        return os.listdir(path)
    except OSError as exc:
        raise _wrap(path, exc) from exc


def list_subdirs(path: str) -> List[str]:
    """Absolute paths of real (non-symlink) subdirectories of ``path``."""
    try:
        with os.scandir(path) as entries:
            return [
                entry.path
                for entry in entries
                if entry.is_dir(follow_symlinks=False)
            ]
    except OSError as exc:
        raise _wrap(path, exc) from exc


def remove_empty_dir(path: str) -> None:
    """Remove ``path`` only if it is empty (``rmdir`` semantics)."""
    try:
        os.rmdir(path)
    except OSError as exc:
        raise _wrap(path, exc) from exc
