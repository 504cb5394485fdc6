"""Storage usage routes."""

from typing import List
from fastapi import APIRouter, Depends, Query
from ..core.dependencies import get_quota_service, get_storage_repo
from ..core.exceptions import ErrorKind, normalize_error
from ..core.session import AuthSession
from ..middleware.auth import get_current_session
from ..repositories.storage_repo import StorageRepository
from ..schemas.shared import ErrorResponse
from ..schemas.quota import QuotaSnapshot, StorageObject
from ..services.quota_service import QuotaService
from ..utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(
    prefix="/storage", tags=["storage"], responses={502: {"model": ErrorResponse}}
)


@router.get("/usage", response_model=QuotaSnapshot)
async def get_usage(
    session: AuthSession = Depends(get_current_session),
    quota_service: QuotaService = Depends(get_quota_service),
):
    """Bytes used, share of the quota, and bytes remaining."""
    return await quota_service.snapshot(session.user_id)


@router.get("/objects", response_model=List[StorageObject])
async def list_objects(
    limit: int = Query(100, ge=1, le=1000),
    session: AuthSession = Depends(get_current_session),
    storage_repo: StorageRepository = Depends(get_storage_repo),
):
    """Raw objects stored under the caller's prefix, newest first."""
    try:
        return await storage_repo.list_objects(f"{session.user_id}/", limit=limit)
    except Exception as e:
        error = normalize_error(e, ErrorKind.REMOTE_STORAGE, "Failed to list stored objects")
        logger.error("Storage listing failed", owner_id=session.user_id, error=error.message)
        raise error
