"""
Dependency injection container for FastAPI.
Provides singleton-like behavior for services and repositories.
"""
from functools import lru_cache
from src.repositories.asset_repository import AssetRepository
from src.repositories.db_repository import DBRepository
from src.repositories.dynamo_repository import DynamoRepository
from src.repositories.progress_ledger import ProgressLedger
from src.services.file_service import FileService
from src.services.staging_service import StagingService
from src.services.video_upload_service import VideoUploadService


@lru_cache()
def get_asset_repository() -> AssetRepository:
    """Get AssetRepository singleton instance."""
    return AssetRepository()


@lru_cache()
def get_dynamo_repository() -> DBRepository:
    """Get DBRepository singleton instance."""
    return DynamoRepository()


@lru_cache()
def get_progress_ledger() -> ProgressLedger:
    """Get the process-wide ProgressLedger instance."""
    return ProgressLedger()


@lru_cache()
def get_file_service() -> FileService:
    """Get FileService singleton instance."""
    return FileService()


@lru_cache()
def get_staging_service() -> StagingService:
    """Get StagingService singleton instance."""
    return StagingService(file_service=get_file_service())


@lru_cache()
def get_video_upload_service() -> VideoUploadService:
    """Get VideoUploadService singleton instance with injected dependencies."""
    return VideoUploadService(
        asset_repository=get_asset_repository(),
        db_repository=get_dynamo_repository(),
        progress_ledger=get_progress_ledger(),
        file_service=get_file_service()
    )
