# portal_backend/app/routers/files.py
from __future__ import annotations

import logging
import os
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from ..cleanup import DeletionEngine
from ..core.config import StorageConfig, get_storage_config
from ..errors import PortalError, StorageError
from ..schemas import DeleteRequest, DeleteResponse, ErrorResponse, UploadResponse
from ..uploads import IncomingFile, UploadPlanner

logger = logging.getLogger("portal.files")

router = APIRouter(prefix="/api", tags=["files"])

_ERRORS = {
    400: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def _upload_size(upload: UploadFile) -> int:
    if upload.size is not None:
        return upload.size
    upload.file.seek(0, os.SEEK_END)
    size = upload.file.tell()
    upload.file.seek(0)
    return size


@router.post("/upload", response_model=UploadResponse, responses=_ERRORS)
def upload_file(
    file: Optional[UploadFile] = File(None),
    grade: Optional[str] = Form(None),
    subject: Optional[str] = Form(None),
    medium: Optional[str] = Form(None),
    config: StorageConfig = Depends(get_storage_config),
):
    """
    Validate -> sanitise taxonomy -> write under uploads/<grade>/<subject>/<medium>/.
    The caller stores the returned fileUrl / relativePath in its metadata.
    """
    planner = UploadPlanner(config)
    try:
        incoming = None
        if file is not None:
            incoming = IncomingFile(
                name=file.filename or "",
                size=_upload_size(file),
                stream=file.file,
            )
        result = planner.upload(incoming, grade, subject, medium)
    except PortalError:
        raise
    except Exception as e:
        logger.exception("Upload error: %s", e)
        raise StorageError("Internal server error occurred while uploading the file")

    return UploadResponse(
        file_url=result.file_url,
        relative_path=result.relative_path,
        file_name=result.file_name,
        file_size=result.file_size,
    )


@router.delete("/delete", response_model=DeleteResponse, responses=_ERRORS)
def delete_file(
    body: DeleteRequest,
    config: StorageConfig = Depends(get_storage_config),
):
    """
    Guard the path -> remove the file -> prune empty folders (best effort).
    The caller removes its metadata record afterwards.
    """
    engine = DeletionEngine(config)
    try:
        engine.delete_file(body.file_path)
    except PortalError:
        raise
    except Exception as e:
        logger.exception("Delete error: %s", e)
        raise StorageError("Internal server error occurred while deleting file")

    return DeleteResponse(deleted_path=body.file_path)
