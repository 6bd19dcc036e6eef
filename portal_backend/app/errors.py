"""Error taxonomy for the upload/delete endpoints.

Every error carries an HTTP status and a client-safe message.  Raw OS error
text and stack traces stay in the logs.
"""
from __future__ import annotations

from typing import Optional


class PortalError(Exception):
    status_code = 500
    default_message = "Unexpected error occurred"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidRequest(PortalError):
    status_code = 400
    default_message = "All fields are required"


class FileTooLarge(PortalError):
    status_code = 400
    default_message = "File size exceeds limit"


class UnsupportedFileType(PortalError):
    status_code = 400
    default_message = "Invalid file type"


class InvalidPath(PortalError):
    status_code = 400
    default_message = "Invalid file path"


class NotAFile(PortalError):
    status_code = 400
    default_message = "Path does not point to a file"


class NotFound(PortalError):
    status_code = 404
    default_message = "File not found"


class PermissionDenied(PortalError):
    status_code = 403
    default_message = "Permission denied"


class StorageError(PortalError):
    status_code = 500
