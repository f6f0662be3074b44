"""
Upload Request domain model.
Transient input of one upload workflow, with files already staged to local disk.
"""
from typing import List, Optional, Union


class StagedFile:
    """A binary written to local disk by the transport layer."""

    def __init__(self, path: str, size: int = 0, content_type: Optional[str] = None, original_filename: Optional[str] = None):
        self.path = path
        self.size = size
        self.content_type = content_type
        self.original_filename = original_filename

    def __repr__(self):
        return f"StagedFile(path={self.path}, size={self.size})"


class CurrentUser:
    """Identity and role of the acting caller."""

    def __init__(self, id: str, role: Optional[str] = None):
        self.id = id
        self.role = role

    def __repr__(self):
        return f"CurrentUser(id={self.id}, role={self.role})"


class UploadRequest:
    """
    Raw upload input. Title, tags and publish status are normalized and
    validated by the workflow itself, not here.
    """

    def __init__(
        self,
        user: Optional[CurrentUser],
        title: Optional[str] = None,
        tags: Union[str, List[str], None] = None,
        publish_status: Optional[str] = None,
        video_file: Optional[StagedFile] = None,
        thumbnail_file: Optional[StagedFile] = None,
        upload_id: Optional[str] = None
    ):
        self.user = user
        self.title = title
        self.tags = tags
        self.publish_status = publish_status
        self.video_file = video_file
        self.thumbnail_file = thumbnail_file
        self.upload_id = upload_id

    @property
    def declared_bytes(self) -> int:
        return sum(f.size or 0 for f in (self.video_file, self.thumbnail_file) if f)

    @property
    def staged_paths(self) -> List[Optional[str]]:
        return [f.path if f else None for f in (self.video_file, self.thumbnail_file)]
