"""
Data Transfer Objects for Video Upload API.
Defines response schemas for the upload and upload-status endpoints.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class VideoResponse(BaseModel):
    """Response schema for a persisted video record."""
    video_id: str
    title: str
    tags: List[str]
    video_url: str
    video_public_id: Optional[str] = None
    thumbnail_url: Optional[str] = None
    thumbnail_public_id: Optional[str] = None
    publish_status: str
    uploaded_by: str
    uploaded_by_role: str
    upload_date: datetime
    view_count: int = 0

    class Config:
        from_attributes = True


class VideoUploadResponse(BaseModel):
    """Response schema for a completed video upload."""
    success: bool = True
    message: str = Field(..., description="Status message")
    upload_id: str = Field(..., description="Identifier to poll upload progress with")
    video: VideoResponse


class UploadSessionResponse(BaseModel):
    """Snapshot of one upload's live progress."""
    upload_id: str
    owner_id: Optional[str] = None
    status: str
    stage: str
    progress_percent: int = Field(..., ge=0, le=100)
    message: str
    file_bytes: int = 0
    estimated_seconds_left: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    expires_at: datetime
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    extra: Dict[str, Any] = Field(default_factory=dict)


class UploadStatusResponse(BaseModel):
    """Response schema for upload status query."""
    success: bool = True
    upload: UploadSessionResponse
