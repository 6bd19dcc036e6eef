"""Application configuration settings.

Values can be overridden via environment variables.  The storage core never
reads the environment itself: it receives an immutable ``StorageConfig``
built from these settings when the application is created.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List, Tuple

from fastapi import Request

DEFAULT_ALLOWED_EXTENSIONS = (
    ".pdf", ".doc", ".docx", ".ppt", ".pptx",
    ".jpg", ".jpeg", ".png", ".gif",
    ".mp4", ".avi", ".mov",
)


def _split_csv(raw: str) -> List[str]:
    return [item.strip() for item in raw.split(",") if item.strip()]


def _normalize_extension(ext: str) -> str:
    ext = ext.strip().lower()
    return ext if ext.startswith(".") else f".{ext}"


@dataclass(frozen=True)
class StorageConfig:
    """Where uploads live and what they may look like."""

    public_root: str
    upload_dir_name: str = "uploads"
    max_file_size: int = 50 * 1024 * 1024
    allowed_extensions: Tuple[str, ...] = field(
        default_factory=lambda: DEFAULT_ALLOWED_EXTENSIONS
    )

    def __post_init__(self):
        # absolute root; dotted, lower-cased extensions in configured order
        object.__setattr__(self, "public_root", os.path.abspath(str(self.public_root)))
        object.__setattr__(
            self,
            "allowed_extensions",
            tuple(dict.fromkeys(_normalize_extension(e) for e in self.allowed_extensions)),
        )

    @property
    def storage_root(self) -> str:
        return os.path.join(self.public_root, self.upload_dir_name)

    @property
    def max_file_size_mb(self) -> float:
        return self.max_file_size / (1024 * 1024)


class Settings:
    # Filesystem layout
    PUBLIC_DIR: str = os.getenv("PORTAL_PUBLIC_DIR", "./public")
    UPLOAD_DIR_NAME: str = os.getenv("PORTAL_UPLOAD_DIR_NAME", "uploads")

    # Upload limits
    MAX_FILE_SIZE_MB: int = int(os.getenv("PORTAL_MAX_FILE_SIZE_MB", "50"))
    ALLOWED_EXTENSIONS: List[str] = _split_csv(
        os.getenv("PORTAL_ALLOWED_EXTENSIONS", ",".join(DEFAULT_ALLOWED_EXTENSIONS))
    )

    # HTTP
    CORS_ORIGINS: List[str] = _split_csv(os.getenv("PORTAL_CORS_ORIGINS", "*"))
    SERVE_UPLOADS: bool = os.getenv("PORTAL_SERVE_UPLOADS", "1") == "1"

    LOG_LEVEL: str = os.getenv("PORTAL_LOG_LEVEL", "INFO").upper()

    def storage_config(self) -> StorageConfig:
        return StorageConfig(
            public_root=self.PUBLIC_DIR,
            upload_dir_name=self.UPLOAD_DIR_NAME,
            max_file_size=self.MAX_FILE_SIZE_MB * 1024 * 1024,
            allowed_extensions=tuple(self.ALLOWED_EXTENSIONS),
        )


settings = Settings()


def get_storage_config(request: Request) -> StorageConfig:
    """FastAPI dependency returning the config the app was created with."""
    return request.app.state.storage_config
