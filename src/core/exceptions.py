"""
Custom exceptions for the Video Upload API.
Provides specific error types for each failure scenario of the upload workflow.
"""
from typing import List, Optional


class VideoUploadException(Exception):
    """Base exception for all application errors."""
    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class ValidationError(VideoUploadException):
    """Raised when caller input is invalid."""
    pass


class AuthorizationError(VideoUploadException):
    """Raised when the caller's role is not permitted."""
    pass


class UploadNotFoundError(VideoUploadException):
    """Raised when no live upload session exists for an id."""
    pass


class DuplicateSessionError(VideoUploadException):
    """Raised when an unexpired upload session already exists for an id."""
    pass


class PayloadTooLargeError(VideoUploadException):
    """Raised when a staged file exceeds its size limit."""
    pass


class ConfigurationError(VideoUploadException):
    """Raised when the asset provider is not configured."""
    pass


class RemoteUploadError(VideoUploadException):
    """Raised when the asset provider rejects a call or cannot be reached."""
    def __init__(self, provider_message: str, http_status: Optional[int] = None):
        self.http_status = http_status
        self.provider_message = provider_message
        super().__init__(provider_message)


class RemoteTimeoutError(VideoUploadException):
    """Raised when an asset provider call exceeds the client-side timeout."""
    pass


class PersistenceError(VideoUploadException):
    """Raised when the video metadata write fails."""
    pass


class UploadCancelledError(VideoUploadException):
    """Raised when the inbound request was aborted mid-workflow."""
    pass


class CleanupError(VideoUploadException):
    """Raised when one or more local staging files could not be removed."""
    def __init__(self, errors: List[OSError]):
        self.errors = errors
        paths = ", ".join(str(getattr(error, "filename", "")) for error in errors)
        super().__init__(f"Failed to remove {len(errors)} staged file(s): {paths}")
