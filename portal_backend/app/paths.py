"""Path helpers: taxonomy sanitising and storage-root confinement."""
from __future__ import annotations

import os
import re

from .core.config import StorageConfig

_DISALLOWED = re.compile(r"[^A-Za-z0-9\s-]")
_WHITESPACE = re.compile(r"\s+")

# used for a taxonomy tag that sanitises down to nothing
EMPTY_SEGMENT = "_"


def sanitize(raw: str) -> str:
    """Reduce free text to ``[A-Za-z0-9_-]``.

    Disallowed characters are dropped, the result is trimmed and every
    internal whitespace run becomes one underscore.  Never fails; the worst
    case is an empty string.
    """
    cleaned = _DISALLOWED.sub("", raw or "").strip()
    return _WHITESPACE.sub("_", cleaned)


def sanitize_segment(raw: str) -> str:
    """Like :func:`sanitize` but never returns an empty directory name."""
    return sanitize(raw) or EMPTY_SEGMENT


class PathGuard:
    """Confines caller-supplied relative paths to the storage root.

    Paths are resolved lexically against the public root (``..`` collapsed,
    absolute input replaces the base) and the result must be the storage
    root itself or sit underneath it.
    """

    def __init__(self, config: StorageConfig):
        self.public_root = config.public_root
        self.storage_root = os.path.normpath(config.storage_root)

    def resolve(self, candidate: str) -> str:
        return os.path.normpath(os.path.join(self.public_root, candidate))

    def contains(self, absolute_path: str) -> bool:
        absolute_path = os.path.normpath(absolute_path)
        return absolute_path == self.storage_root or absolute_path.startswith(
            self.storage_root + os.sep
        )

    def is_safe(self, candidate: str) -> bool:
        if not candidate or "\x00" in candidate:
            return False
        return self.contains(self.resolve(candidate))

    def relative_to_public(self, absolute_path: str) -> str:
        """POSIX-style path of ``absolute_path`` from the public root."""
        rel = os.path.relpath(absolute_path, self.public_root)
        return rel.replace("\\", "/")
