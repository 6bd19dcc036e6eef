"""Upload planning: validate an incoming file, pick its home, write it.

Files land at ``<storage root>/<grade>/<subject>/<medium>/<generated name>``.
If the byte write fails after the taxonomy directories were created, those
directories are left behind empty until the next deletion sweeps them.
"""
from __future__ import annotations

import logging
import os
import random
import string
import time
from dataclasses import dataclass
from typing import BinaryIO, Callable, Optional

from . import storage
from .core.config import StorageConfig
from .errors import FileTooLarge, InvalidRequest, StorageError, UnsupportedFileType
from .paths import PathGuard, sanitize, sanitize_segment

logger = logging.getLogger("portal.uploads")

_TOKEN_ALPHABET = string.digits + string.ascii_lowercase
TOKEN_LENGTH = 6


@dataclass
class IncomingFile:
    name: str
    size: int
    stream: BinaryIO


@dataclass
class UploadResult:
    file_url: str
    relative_path: str
    file_name: str
    file_size: int


def file_extension(filename: str) -> str:
    """Lower-cased extension including the dot, or ``""`` if there is none."""
    return os.path.splitext(_base_name(filename))[1].lower()


def _base_name(filename: str) -> str:
    # browsers occasionally send a full client-side path
    return os.path.basename(filename.replace("\\", "/"))


def random_token(length: int = TOKEN_LENGTH) -> str:
    return "".join(random.choices(_TOKEN_ALPHABET, k=length))


def _now_millis() -> int:
    return int(time.time() * 1000)


class UploadPlanner:
    def __init__(
        self,
        config: StorageConfig,
        clock: Callable[[], int] = _now_millis,
        token: Callable[[], str] = random_token,
    ):
        self.config = config
        self.guard = PathGuard(config)
        self._clock = clock
        self._token = token

    # ---------- validation ----------

    def validate(
        self,
        file: Optional[IncomingFile],
        grade: Optional[str],
        subject: Optional[str],
        medium: Optional[str],
    ) -> None:
        """Raise on the first problem; touches nothing on disk."""
        if file is None or not file.name or not grade or not subject or not medium:
            raise InvalidRequest("All fields are required")

        if file.size > self.config.max_file_size:
            raise FileTooLarge(
                f"File size exceeds {self.config.max_file_size_mb:g}MB limit"
            )

        if file_extension(file.name) not in self.config.allowed_extensions:
            allowed = ", ".join(self.config.allowed_extensions)
            raise UnsupportedFileType(f"Invalid file type. Allowed types: {allowed}")

    # ---------- naming ----------

    def target_directory(self, grade: str, subject: str, medium: str) -> str:
        return os.path.join(
            self.config.storage_root,
            sanitize_segment(grade),
            sanitize_segment(subject),
            sanitize_segment(medium),
        )

    def generate_file_name(self, original_name: str) -> str:
        """``<unix millis>_<token>_<sanitised base name><ext>``."""
        base = _base_name(original_name)
        stem, ext = os.path.splitext(base)
        return f"{self._clock()}_{self._token()}_{sanitize(stem)}{ext.lower()}"

    # ---------- the operation ----------

    def upload(
        self,
        file: Optional[IncomingFile],
        grade: Optional[str],
        subject: Optional[str],
        medium: Optional[str],
    ) -> UploadResult:
        self.validate(file, grade, subject, medium)

        target_dir = self.target_directory(grade, subject, medium)
        file_name = self.generate_file_name(file.name)
        target_path = os.path.join(target_dir, file_name)

        # never write outside the storage root
        if not self.guard.contains(target_path):
            raise StorageError("Internal server error occurred while uploading the file")

        try:
            storage.ensure_dir(target_dir)
            written = storage.write_stream(target_path, file.stream)
        except storage.FilesystemError as exc:
            logger.error("Failed to store upload at %s: %s", target_path, exc)
            raise StorageError(
                "Internal server error occurred while uploading the file"
            ) from exc

        relative_path = self.guard.relative_to_public(target_path)
        logger.info("Stored %s (%d bytes) as %s", file.name, written, relative_path)

        return UploadResult(
            file_url=f"/{relative_path}",
            relative_path=relative_path,
            file_name=file_name,
            file_size=file.size,
        )
