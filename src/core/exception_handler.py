"""
Global exception handler for the Video Upload API.
Provides centralized error handling for all API exceptions.
"""
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from .exceptions import (
    VideoUploadException,
    ValidationError,
    AuthorizationError,
    UploadNotFoundError,
    DuplicateSessionError,
    PayloadTooLargeError,
    UploadCancelledError,
    RemoteUploadError,
    RemoteTimeoutError,
    PersistenceError,
    ConfigurationError
)
from .logger import get_logger

logger = get_logger(__name__)

# Ordered most specific first; (status code, error label)
ERROR_RESPONSES = [
    (ValidationError, 400, "Validation Error"),
    (UploadCancelledError, 400, "Upload Cancelled"),
    (AuthorizationError, 403, "Forbidden"),
    (UploadNotFoundError, 404, "Not Found"),
    (DuplicateSessionError, 409, "Conflict"),
    (PayloadTooLargeError, 413, "Payload Too Large"),
    (RemoteUploadError, 502, "Asset Upload Failed"),
    (RemoteTimeoutError, 504, "Asset Upload Timed Out"),
    (PersistenceError, 500, "Database Error"),
    (ConfigurationError, 500, "Configuration Error"),
]


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI application."""

    @app.exception_handler(VideoUploadException)
    async def handle_video_upload_error(request: Request, exc: VideoUploadException):
        for exc_type, status_code, error in ERROR_RESPONSES:
            if isinstance(exc, exc_type):
                if status_code >= 500:
                    logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
                else:
                    logger.warning(f"{request.method} {request.url.path} rejected: {exc.message}")
                return JSONResponse(
                    status_code=status_code,
                    content={"error": error, "message": exc.message}
                )
        return await handle_generic_error(request, exc)

    @app.exception_handler(Exception)
    async def handle_generic_error(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {str(exc)}")
        return JSONResponse(
            status_code=500,
            content={"error": "Internal Server Error", "message": "An unexpected error occurred"}
        )
