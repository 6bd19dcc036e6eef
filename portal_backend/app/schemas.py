from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    class Config:
        # the admin UI speaks camelCase on the wire
        alias_generator = to_camel
        populate_by_name = True


# =========================
# Upload
# =========================
class UploadResponse(_CamelModel):
    success: bool = True
    file_url: str
    relative_path: str
    file_name: str
    file_size: int
    message: str = "File uploaded successfully!"


# =========================
# Delete
# =========================
class DeleteRequest(_CamelModel):
    file_path: str = Field(..., min_length=1, description="Path relative to the public root")


class DeleteResponse(_CamelModel):
    success: bool = True
    message: str = "File deleted successfully and empty folders cleaned!"
    deleted_path: str


# =========================
# Errors
# =========================
class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    details: Optional[List[Any]] = None
