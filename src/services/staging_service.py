"""
Staging Service for multipart uploads.
Writes incoming video and thumbnail binaries to the local temp directory
after checking their content type and size.
"""
import os
import re
import time
import uuid
from typing import BinaryIO, Optional
from src.core import config
from src.core.exceptions import PayloadTooLargeError, ValidationError
from src.models.upload_request import StagedFile
from src.services.file_service import FileService

VIDEO_MIME_TYPES = {"video/mp4", "video/webm", "video/quicktime", "video/x-matroska"}
THUMBNAIL_MIME_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/webp"}

CHUNK_SIZE = 1024 * 1024


class StagingService:
    """Service for staging uploaded binaries to local disk."""

    def __init__(self, temp_dir: Optional[str] = None, file_service: FileService = None):
        self.temp_dir = temp_dir or config.settings.temp_upload_dir
        self.file_service = file_service or FileService()

    def stage_video(self, file: BinaryIO, filename: str, content_type: Optional[str]) -> StagedFile:
        if content_type not in VIDEO_MIME_TYPES:
            raise ValidationError("Invalid video format. Allowed: mp4, webm, mov, mkv.")
        return self._stage(file, filename, content_type, config.settings.max_video_size_mb, "Video")

    def stage_thumbnail(self, file: BinaryIO, filename: str, content_type: Optional[str]) -> StagedFile:
        if content_type not in THUMBNAIL_MIME_TYPES:
            raise ValidationError("Invalid thumbnail format. Allowed: jpg, png, webp.")
        return self._stage(file, filename, content_type, config.settings.max_thumbnail_size_mb, "Thumbnail")

    def _stage(self, file: BinaryIO, filename: str, content_type: str, max_size_mb: int, label: str) -> StagedFile:
        """
        Copy the stream to disk in chunks, aborting once the size limit is passed.

        Raises:
            PayloadTooLargeError: If the stream exceeds max_size_mb
        """
        os.makedirs(self.temp_dir, exist_ok=True)
        max_size_bytes = max_size_mb * 1024 * 1024
        path = os.path.join(self.temp_dir, self._staged_name(filename))

        size = 0
        try:
            with open(path, "wb") as target:
                while True:
                    chunk = file.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    size += len(chunk)
                    if size > max_size_bytes:
                        break
                    target.write(chunk)
        except Exception:
            self.file_service.remove_file(path)
            raise

        if size > max_size_bytes:
            self.file_service.remove_file(path)
            raise PayloadTooLargeError(f"{label} exceeds max limit of {max_size_mb}MB.")

        return StagedFile(path=path, size=size, content_type=content_type, original_filename=filename)

    @staticmethod
    def _staged_name(filename: Optional[str]) -> str:
        safe_name = re.sub(r"[^\w.\-]", "_", os.path.basename(filename or "upload"))
        unique_id = uuid.uuid4().hex[:8]
        return f"{int(time.time() * 1000)}-{unique_id}_{safe_name}"
