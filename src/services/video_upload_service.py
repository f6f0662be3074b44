"""
Video Upload Service for business logic.
Orchestrates the upload workflow between the asset provider, the progress
ledger and metadata storage, undoing remote uploads when a step fails.
"""
import threading
import time
import uuid
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List, Optional, Tuple, Union
from src.core import config
from src.core.exceptions import (
    AuthorizationError,
    CleanupError,
    UploadCancelledError,
    UploadNotFoundError,
    ValidationError
)
from src.core.logger import get_logger
from src.models.asset_reference import AssetReference
from src.models.dto.video_dto import (
    UploadSessionResponse,
    UploadStatusResponse,
    VideoResponse,
    VideoUploadResponse
)
from src.models.upload_request import CurrentUser, UploadRequest
from src.models.upload_session import UploadSession, UploadStage
from src.models.video_model import Video
from src.repositories.asset_repository import AssetRepository
from src.repositories.db_repository import DBRepository
from src.repositories.dynamo_repository import DynamoRepository
from src.repositories.progress_ledger import ProgressLedger
from src.services.file_service import FileService

logger = get_logger(__name__)

ALLOWED_PUBLISH_STATUS = {"DRAFT", "PUBLISHED"}

# Progress published when each stage begins
STAGE_PROGRESS = {
    UploadStage.VALIDATING: 5,
    UploadStage.VALIDATED: 12,
    UploadStage.UPLOADING_VIDEO: 22,
    UploadStage.VIDEO_UPLOADED: 72,
    UploadStage.UPLOADING_THUMBNAIL: 80,
    UploadStage.THUMBNAIL_GENERATED: 84,
    UploadStage.THUMBNAIL_UPLOADED: 88,
    UploadStage.SAVING_METADATA: 92,
}


def parse_tags(raw_tags: Union[str, Iterable[str], None]) -> List[str]:
    """
    Normalize tags: lower-cased, trimmed, de-duplicated in first-seen order.
    A string is split on commas.
    """
    if isinstance(raw_tags, str):
        candidates = raw_tags.split(",")
    elif raw_tags is None:
        return []
    else:
        candidates = [str(tag) for tag in raw_tags]

    tags = []
    for tag in candidates:
        normalized = tag.strip().lower()
        if normalized and normalized not in tags:
            tags.append(normalized)
    return tags


def sanitize_publish_status(raw_status: Optional[str]) -> Optional[str]:
    """Return DRAFT when absent, the upper-cased status when allowed, else None."""
    if not raw_status:
        return "DRAFT"

    value = str(raw_status).strip().upper()
    return value if value in ALLOWED_PUBLISH_STATUS else None


class CompensationResult:
    """Outcome of one compensating delete."""

    def __init__(self, asset: AssetReference, error: Optional[Exception] = None):
        self.asset = asset
        self.error = error

    @property
    def succeeded(self) -> bool:
        return self.error is None

    def __repr__(self):
        return f"CompensationResult(asset={self.asset.public_id}, succeeded={self.succeeded})"


class VideoUploadService:
    """Service for video upload operations."""

    def __init__(
        self,
        asset_repository: AssetRepository = None,
        db_repository: DBRepository = None,
        progress_ledger: ProgressLedger = None,
        file_service: FileService = None,
        allowed_uploader_roles: Optional[Iterable[str]] = None,
        operator_roles: Optional[Iterable[str]] = None
    ):
        self.asset_repository = asset_repository or AssetRepository()
        self.db_repository = db_repository or DynamoRepository()
        self.progress_ledger = progress_ledger or ProgressLedger()
        self.file_service = file_service or FileService()
        self.allowed_uploader_roles = set(allowed_uploader_roles or config.settings.allowed_uploader_roles)
        self.operator_roles = set(operator_roles or config.settings.operator_roles)

    def upload_video(self, request: UploadRequest, cancel_event: Optional[threading.Event] = None) -> VideoUploadResponse:
        """
        Run the upload workflow end to end.

        Staged files are removed on every exit path. Remote assets are
        destroyed when a step fails before the metadata write is attempted.

        Args:
            request: Upload input with files already staged to disk
            cancel_event: Set when the inbound request is aborted

        Returns:
            VideoUploadResponse with the persisted video record

        Raises:
            DuplicateSessionError: If the upload id is already in progress
            ValidationError: If the input is invalid
            AuthorizationError: If the caller's role may not upload
            ConfigurationError: If the asset provider is not configured
            RemoteUploadError: If the provider rejects an upload
            RemoteTimeoutError: If a provider call times out
            PersistenceError: If the metadata write fails
            UploadCancelledError: If the request was aborted before the metadata write
        """
        self.progress_ledger.sweep()

        upload_id = (request.upload_id or "").strip() or str(uuid.uuid4())
        owner_id = request.user.id if request.user else None

        try:
            self.progress_ledger.create(upload_id, owner_id, request.declared_bytes)
            logger.info(f"Starting video upload {upload_id} for user {owner_id}")
            return self._run_workflow(upload_id, request, cancel_event)
        finally:
            self._cleanup_staged_files(upload_id, request.staged_paths)

    def get_upload_status(self, upload_id: str, user: Optional[CurrentUser]) -> UploadStatusResponse:
        """
        Get upload progress, visible only to its owner and to operators.

        Raises:
            ValidationError: If upload_id is blank
            UploadNotFoundError: If no live session exists
            AuthorizationError: If the caller may not see the session
        """
        self.progress_ledger.sweep()

        upload_id = (upload_id or "").strip()
        if not upload_id:
            raise ValidationError("uploadId is required.")

        session = self.progress_ledger.get(upload_id)
        if not session:
            raise UploadNotFoundError("Upload status not found.")

        is_owner = bool(user and session.owner_id and session.owner_id == user.id)
        is_operator = bool(user and user.role in self.operator_roles)
        if not is_owner and not is_operator:
            raise AuthorizationError("You cannot access this upload status.")

        return UploadStatusResponse(upload=self._session_to_response(session))

    def _run_workflow(self, upload_id: str, request: UploadRequest, cancel_event: Optional[threading.Event]) -> VideoUploadResponse:
        settings = config.settings
        assets: List[AssetReference] = []
        metadata_attempted = False

        try:
            self._advance(upload_id, UploadStage.VALIDATING, "Validating upload request.")
            title, tags, publish_status = self._validate(request)
            self._advance(upload_id, UploadStage.VALIDATED, "Validation complete.")

            self._check_cancelled(cancel_event)
            self._advance(upload_id, UploadStage.UPLOADING_VIDEO, "Uploading video.")
            video_asset = self.asset_repository.upload(
                request.video_file.path,
                "video",
                settings.asset_video_folder,
                f"video-{upload_id}-{int(time.time() * 1000)}"
            )
            assets.append(video_asset)
            self._advance(
                upload_id,
                UploadStage.VIDEO_UPLOADED,
                "Video uploaded.",
                extra={"video_bytes": video_asset.bytes or request.video_file.size}
            )

            self._check_cancelled(cancel_event)
            thumbnail_asset = None
            if request.thumbnail_file:
                self._advance(upload_id, UploadStage.UPLOADING_THUMBNAIL, "Uploading custom thumbnail.")
                thumbnail_asset = self.asset_repository.upload(
                    request.thumbnail_file.path,
                    "image",
                    settings.asset_thumbnail_folder,
                    f"thumb-{upload_id}-{int(time.time() * 1000)}"
                )
                assets.append(thumbnail_asset)
                thumbnail_url = thumbnail_asset.secure_url
                self._advance(upload_id, UploadStage.THUMBNAIL_UPLOADED, "Thumbnail uploaded.")
            else:
                self._advance(upload_id, UploadStage.THUMBNAIL_GENERATED, "Generating thumbnail from first frame.")
                thumbnail_url = self.asset_repository.derive_first_frame_thumbnail_url(video_asset.public_id)

            self._check_cancelled(cancel_event)
            self._advance(upload_id, UploadStage.SAVING_METADATA, "Saving video metadata.")

            metadata_attempted = True
            video = self.db_repository.create(Video(
                title=title,
                tags=tags,
                video_url=video_asset.secure_url,
                video_public_id=video_asset.public_id,
                thumbnail_url=thumbnail_url,
                thumbnail_public_id=thumbnail_asset.public_id if thumbnail_asset else None,
                publish_status=publish_status,
                uploaded_by=request.user.id,
                uploaded_by_role=request.user.role
            ))

        except Exception as e:
            if not metadata_attempted:
                self._compensate(upload_id, assets)
            elif assets:
                # Remote binaries are kept so the metadata write can be retried
                logger.error(
                    f"Metadata write for upload {upload_id} failed; remote assets kept for follow-up: "
                    f"{', '.join(asset.public_id for asset in assets)}"
                )
            self.progress_ledger.fail(upload_id, "Upload failed.", getattr(e, "message", str(e)))
            logger.error(f"Video upload {upload_id} failed: {str(e)}")
            raise

        # The durable record exists from here on; nothing below may undo it
        try:
            self.progress_ledger.complete(upload_id, {
                "video_id": video.video_id,
                "video_url": video.video_url,
                "thumbnail_url": video.thumbnail_url,
            })
        except Exception:
            logger.exception(f"Video {video.video_id} saved but upload {upload_id} could not be marked completed")

        logger.info(f"Video upload {upload_id} completed as video {video.video_id}")
        return VideoUploadResponse(
            message="Video uploaded successfully.",
            upload_id=upload_id,
            video=VideoResponse.model_validate(video)
        )

    def _validate(self, request: UploadRequest) -> Tuple[str, List[str], str]:
        """
        Raises:
            ValidationError: If title, tags, publish status or video file is invalid
            AuthorizationError: If the caller's role may not upload
            ConfigurationError: If the asset provider is not configured
        """
        title = (request.title or "").strip()
        tags = parse_tags(request.tags)
        publish_status = sanitize_publish_status(request.publish_status)

        if not title:
            raise ValidationError("Title is required.")
        if not tags:
            raise ValidationError("At least one tag is required.")
        if not publish_status:
            raise ValidationError("Invalid publish status. Use DRAFT or PUBLISHED.")
        if not request.video_file:
            raise ValidationError("Video file is required.")

        user = request.user
        if not user or not user.role or user.role not in self.allowed_uploader_roles:
            raise AuthorizationError("Only admins can upload videos.")

        self.asset_repository.ensure_configured()
        return title, tags, publish_status

    def _advance(self, upload_id: str, stage: UploadStage, message: str, extra: Optional[dict] = None) -> None:
        self.progress_ledger.advance(upload_id, STAGE_PROGRESS[stage], stage.value, message, extra)

    @staticmethod
    def _check_cancelled(cancel_event: Optional[threading.Event]) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise UploadCancelledError("Upload was cancelled by the client.")

    def _compensate(self, upload_id: str, assets: List[AssetReference]) -> List[CompensationResult]:
        """
        Destroy every given asset concurrently. Failures are logged, never raised.
        """
        if not assets:
            return []

        with ThreadPoolExecutor(max_workers=len(assets)) as executor:
            results = list(executor.map(self._destroy_asset, assets))

        for result in results:
            if result.succeeded:
                logger.info(f"Compensated upload {upload_id}: destroyed {result.asset.resource_type} {result.asset.public_id}")
            else:
                logger.warning(
                    f"Compensation for upload {upload_id} could not destroy "
                    f"{result.asset.resource_type} {result.asset.public_id}: {str(result.error)}"
                )
        return results

    def _destroy_asset(self, asset: AssetReference) -> CompensationResult:
        try:
            self.asset_repository.destroy(asset.public_id, asset.resource_type)
            return CompensationResult(asset)
        except Exception as e:
            return CompensationResult(asset, error=e)

    def _cleanup_staged_files(self, upload_id: str, paths: List[Optional[str]]) -> None:
        try:
            self.file_service.cleanup(paths)
        except CleanupError as e:
            logger.error(f"Cleanup after upload {upload_id} failed: {e.message}")

    @staticmethod
    def _session_to_response(session: UploadSession) -> UploadSessionResponse:
        return UploadSessionResponse(
            upload_id=session.upload_id,
            owner_id=session.owner_id,
            status=session.status.value,
            stage=session.stage,
            progress_percent=session.progress_percent,
            message=session.message,
            file_bytes=session.file_bytes,
            estimated_seconds_left=session.estimated_seconds_left,
            created_at=session.created_at,
            updated_at=session.updated_at,
            expires_at=session.expires_at,
            result=session.result,
            error=session.error,
            extra=session.extra
        )
