# portal_backend/app/main.py
from __future__ import annotations

import logging
import os
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.config import StorageConfig, settings
from .errors import PortalError
from .routers import files as files_router
from .routers import health as health_router
from .schemas import ErrorResponse

logger = logging.getLogger("portal.main")


def _error_response(status_code: int, error: str, details=None, headers=None) -> JSONResponse:
    body = ErrorResponse(error=error, details=details).model_dump(exclude_none=True)
    return JSONResponse(
        status_code=status_code, content=jsonable_encoder(body), headers=headers
    )


def create_app(config: Optional[StorageConfig] = None) -> FastAPI:
    config = config or settings.storage_config()
    logging.getLogger("portal").setLevel(settings.LOG_LEVEL)

    app = FastAPI(title="Resource Portal Files API", version="0.1.0")
    app.state.storage_config = config

    # --- CORS ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- error envelope: {success: false, error, details?} ---
    @app.exception_handler(PortalError)
    async def portal_error_handler(request: Request, exc: PortalError):
        return _error_response(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return _error_response(400, "Invalid request data", exc.errors())

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        # multipart parse failures, unknown routes, wrong methods
        return _error_response(exc.status_code, str(exc.detail), headers=exc.headers)

    # --- basic alive probe that does NOT touch the filesystem ---
    @app.get("/health/bootcheck")
    def bootcheck():
        return {"status": "starting-ok"}

    app.include_router(files_router.router)
    app.include_router(health_router.router)

    # uploaded files are served from the same paths the fileUrl points at
    if settings.SERVE_UPLOADS:
        app.mount(
            f"/{config.upload_dir_name}",
            StaticFiles(directory=config.storage_root, check_dir=False),
            name="uploads",
        )

    @app.on_event("startup")
    async def on_startup():
        logger.info(">>>> FASTAPI STARTUP BEGIN")
        os.makedirs(config.storage_root, exist_ok=True)
        logger.info("Storage root: %s", config.storage_root)
        logger.info(">>>> FASTAPI STARTUP COMPLETE")

    @app.on_event("shutdown")
    async def on_shutdown():
        logger.info(">>>> FASTAPI SHUTDOWN")

    return app


app = create_app()
