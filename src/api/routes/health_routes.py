"""
Health check routes for monitoring.
"""
from fastapi import APIRouter, Depends
from src.core import config
from src.core.dependencies import get_asset_repository, get_progress_ledger
from src.repositories.asset_repository import AssetRepository
from src.repositories.progress_ledger import ProgressLedger

router = APIRouter(prefix="/v1/api", tags=["Health"])


@router.get("/health")
async def health_check(
    asset_repository: AssetRepository = Depends(get_asset_repository),
    progress_ledger: ProgressLedger = Depends(get_progress_ledger)
):
    """Report service identity, asset storage readiness and live upload count."""
    progress_ledger.sweep()
    return {
        "status": "healthy",
        "service": config.settings.api_title,
        "version": config.settings.api_version,
        "environment": config.settings.environment,
        "asset_storage_configured": asset_repository.is_configured,
        "active_uploads": len(progress_ledger)
    }
