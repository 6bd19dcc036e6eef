"""Deletion of stored files and pruning of the directory tree they leave.

Only the file removal itself is reported to the caller.  Both pruning passes
are best effort: a directory that cannot be listed or removed is logged and
skipped.  The storage root is never removed.

A sweep can race with an in-flight upload that has just created its
taxonomy directory but not yet written the file; callers that need strict
guarantees must serialise uploads and deletions for the same path.
"""
from __future__ import annotations

import logging
import os
from typing import List

from . import storage
from .core.config import StorageConfig
from .errors import InvalidPath, NotAFile, NotFound, PermissionDenied, StorageError
from .paths import PathGuard
from .storage import EntryKind, FilesystemError, FsErrorKind

logger = logging.getLogger("portal.cleanup")


def _as_portal_error(exc: FilesystemError):
    if exc.kind is FsErrorKind.NOT_FOUND:
        return NotFound("File not found")
    if exc.kind is FsErrorKind.PERMISSION_DENIED:
        return PermissionDenied("Permission denied")
    return StorageError("Unexpected error occurred")


class DeletionEngine:
    def __init__(self, config: StorageConfig):
        self.config = config
        self.guard = PathGuard(config)
        self.root = self.guard.storage_root

    def delete_file(self, relative_path: str) -> None:
        if not relative_path or not self.guard.is_safe(relative_path):
            raise InvalidPath("Invalid file path")

        absolute_path = self.guard.resolve(relative_path)

        try:
            kind = storage.entry_kind(absolute_path)
            if kind is not EntryKind.FILE:
                raise NotAFile("Path does not point to a file")
            storage.remove_file(absolute_path)
        except FilesystemError as exc:
            if exc.kind is FsErrorKind.OTHER:
                logger.error("Unexpected file operation error: %s", exc)
            raise _as_portal_error(exc) from exc

        logger.info("Deleted %s", relative_path)

        self.prune_upward(os.path.dirname(absolute_path))
        self.sweep_empty_dirs()

    def prune_upward(self, start_dir: str) -> List[str]:
        """Remove ``start_dir`` and its ancestors while they are empty.

        Stops at the first non-empty directory, at the storage root, or on
        the first error.  Returns the removed directories, deepest first.
        """
        removed = []
        current = os.path.normpath(start_dir)
        while self.guard.contains(current) and current != self.root:
            try:
                if storage.list_dir(current):
                    break
                storage.remove_empty_dir(current)
            except FilesystemError as exc:
                logger.warning("Error during upward cleanup at %s: %s", current, exc)
                break
            removed.append(current)
            current = os.path.dirname(current)
        return removed

    def sweep_empty_dirs(self) -> List[str]:
        """Post-order walk of the storage root removing every empty directory.

        Returns the removed directories in removal order (children first).
        """
        removed: List[str] = []
        self._sweep(self.root, removed)
        return removed

    def _sweep(self, directory: str, removed: List[str]) -> None:
        try:
            subdirs = storage.list_subdirs(directory)
        except FilesystemError as exc:
            logger.warning("Skipping cleanup for %s: %s", directory, exc)
            return

        for subdir in subdirs:
            self._sweep(subdir, removed)

        if directory == self.root:
            return

        try:
            if storage.list_dir(directory):
                return
            storage.remove_empty_dir(directory)
        except FilesystemError as exc:
            if exc.kind is not FsErrorKind.NOT_EMPTY:
                logger.warning("Skipping cleanup for %s: %s", directory, exc)
            return
        removed.append(directory)
