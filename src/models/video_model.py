"""
Domain model for Video entity.
Database-agnostic representation of a published or draft video record.
"""
from datetime import datetime, timezone
from typing import List, Optional


class Video:
    """Domain model representing an uploaded video's metadata."""

    def __init__(
        self,
        title: str,
        tags: List[str],
        video_url: str,
        uploaded_by: str,
        uploaded_by_role: str,
        video_public_id: Optional[str] = None,
        thumbnail_url: Optional[str] = None,
        thumbnail_public_id: Optional[str] = None,
        publish_status: str = "DRAFT",
        upload_date: Optional[datetime] = None,
        view_count: int = 0,
        video_id: Optional[str] = None
    ):
        self.video_id = video_id
        self.title = title
        self.tags = tags
        self.video_url = video_url
        self.video_public_id = video_public_id
        self.thumbnail_url = thumbnail_url
        self.thumbnail_public_id = thumbnail_public_id
        self.publish_status = publish_status
        self.uploaded_by = uploaded_by
        self.uploaded_by_role = uploaded_by_role
        self.upload_date = upload_date or datetime.now(timezone.utc)
        self.view_count = view_count

    def __repr__(self):
        return f"Video(video_id={self.video_id}, title={self.title}, publish_status={self.publish_status})"
