# portal_backend/app/routers/health.py
from __future__ import annotations

import logging
import os

from fastapi import APIRouter, Depends

from ..core.config import StorageConfig, get_storage_config

logger = logging.getLogger("portal.health")

router = APIRouter(prefix="/health", tags=["health"])


@router.get("/")
def health(config: StorageConfig = Depends(get_storage_config)):
    status = {
        "storage": "unknown",
        "storage_root": config.storage_root,
        "max_file_size_mb": config.max_file_size_mb,
        "allowed_extensions": list(config.allowed_extensions),
    }

    root = config.storage_root
    if not os.path.isdir(root):
        status["storage"] = "error: missing"
    elif not os.access(root, os.W_OK | os.X_OK):
        status["storage"] = "error: not writable"
    else:
        status["storage"] = "ok"

    if status["storage"] != "ok":
        logger.warning("Storage root %s unhealthy: %s", root, status["storage"])
    return status
