"""
Upload Session domain model.
Represents the live, TTL-bounded progress of one video upload workflow.
"""
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class UploadSessionStatus(str, Enum):
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class UploadStage(str, Enum):
    INITIALIZED = "initialized"
    VALIDATING = "validating"
    VALIDATED = "validated"
    UPLOADING_VIDEO = "uploading_video"
    VIDEO_UPLOADED = "video_uploaded"
    UPLOADING_THUMBNAIL = "uploading_thumbnail"
    THUMBNAIL_UPLOADED = "thumbnail_uploaded"
    THUMBNAIL_GENERATED = "thumbnail_generated"
    SAVING_METADATA = "saving_metadata"
    COMPLETED = "completed"
    FAILED = "failed"


class UploadSession:
    """Domain model for upload progress tracking."""

    def __init__(
        self,
        upload_id: str,
        owner_id: Optional[str],
        created_at: datetime,
        expires_at: datetime,
        file_bytes: int = 0,
        status: UploadSessionStatus = UploadSessionStatus.PROCESSING,
        stage: str = UploadStage.INITIALIZED.value,
        progress_percent: int = 0,
        message: str = "Upload initialized.",
        estimated_seconds_left: Optional[int] = None,
        updated_at: Optional[datetime] = None,
        result: Optional[Dict[str, Any]] = None,
        error: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None
    ):
        self.upload_id = upload_id
        self.owner_id = owner_id
        self.status = status
        self.stage = stage
        self.progress_percent = progress_percent
        self.message = message
        self.file_bytes = file_bytes
        self.estimated_seconds_left = estimated_seconds_left
        self.created_at = created_at
        self.updated_at = updated_at or created_at
        self.expires_at = expires_at
        self.result = result
        self.error = error
        self.extra = extra or {}

    @property
    def is_terminal(self) -> bool:
        return self.status != UploadSessionStatus.PROCESSING

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at

    def __repr__(self):
        return (
            f"UploadSession(upload_id={self.upload_id}, status={self.status.value}, "
            f"stage={self.stage}, progress_percent={self.progress_percent})"
        )
