"""
Admin video API routes.
Handles multipart video uploads and upload progress polling.
"""
import asyncio
import threading
from typing import List, Optional
from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from starlette.concurrency import run_in_threadpool
from src.core.auth_dependencies import verify_token
from src.core.exceptions import CleanupError
from src.core.dependencies import get_file_service, get_staging_service, get_video_upload_service
from src.core.logger import get_logger
from src.models.dto.video_dto import UploadStatusResponse, VideoUploadResponse
from src.models.upload_request import CurrentUser, UploadRequest
from src.services.file_service import FileService
from src.services.staging_service import StagingService
from src.services.video_upload_service import VideoUploadService

logger = get_logger(__name__)

router = APIRouter(prefix="/v1/api/admin", tags=["Videos"])

DISCONNECT_POLL_SECONDS = 0.5


async def _watch_disconnect(request: Request, cancel_event: threading.Event) -> None:
    while not cancel_event.is_set():
        if await request.is_disconnected():
            logger.warning(f"Client disconnected during upload on {request.url.path}")
            cancel_event.set()
            return
        await asyncio.sleep(DISCONNECT_POLL_SECONDS)


@router.post("/videos/upload", response_model=VideoUploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_video(
    request: Request,
    title: str = Form(""),
    tags: List[str] = Form(default=[]),
    publish_status: Optional[str] = Form(None),
    upload_id: Optional[str] = Form(None),
    video: Optional[UploadFile] = File(None, description="Video file (mp4, webm, mov, mkv)"),
    thumbnail: Optional[UploadFile] = File(None, description="Optional thumbnail image (jpg, png, webp)"),
    video_upload_service: VideoUploadService = Depends(get_video_upload_service),
    staging_service: StagingService = Depends(get_staging_service),
    file_service: FileService = Depends(get_file_service),
    user: CurrentUser = Depends(verify_token)
):
    """
    Upload a video, and optionally a custom thumbnail, on behalf of an admin.

    - **tags**: repeat the field or send one comma-separated value
    - **upload_id**: client-chosen id to poll progress with while the request runs
    """
    # Staging blocks on disk I/O and must stay off the event loop
    staged_video = staged_thumbnail = None
    try:
        if video is not None:
            staged_video = await run_in_threadpool(staging_service.stage_video, video.file, video.filename, video.content_type)
        if thumbnail is not None:
            staged_thumbnail = await run_in_threadpool(
                staging_service.stage_thumbnail, thumbnail.file, thumbnail.filename, thumbnail.content_type
            )
    except Exception:
        try:
            file_service.cleanup([f.path for f in (staged_video, staged_thumbnail) if f])
        except CleanupError as cleanup_error:
            logger.error(f"Cleanup after rejected upload failed: {cleanup_error.message}")
        raise

    upload_request = UploadRequest(
        user=user,
        title=title,
        tags=tags[0] if len(tags) == 1 else tags,
        publish_status=publish_status,
        video_file=staged_video,
        thumbnail_file=staged_thumbnail,
        upload_id=upload_id
    )

    # The workflow thread always runs to the end; a disconnect only makes it
    # stop at the next step boundary and roll back.
    cancel_event = threading.Event()
    watcher = asyncio.create_task(_watch_disconnect(request, cancel_event))
    try:
        return await run_in_threadpool(video_upload_service.upload_video, upload_request, cancel_event)
    except asyncio.CancelledError:
        cancel_event.set()
        raise
    finally:
        watcher.cancel()


@router.get("/videos/upload-status/{upload_id}", response_model=UploadStatusResponse)
async def get_upload_status(
    upload_id: str,
    video_upload_service: VideoUploadService = Depends(get_video_upload_service),
    user: CurrentUser = Depends(verify_token)
):
    """
    Get the live progress of an upload. Visible to its owner and to operators.
    """
    return video_upload_service.get_upload_status(upload_id, user)
