"""File upload and management routes."""

from typing import List
from fastapi import APIRouter, BackgroundTasks, Depends, File, Query, Request, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from ..config.database import get_db
from ..core.dependencies import get_db_session_factory, get_storage_repo, get_upload_registry
from ..core.session import AuthSession
from ..middleware.auth import get_current_session
from ..middleware.rate_limit import limiter
from ..middleware.validation import validate_file
from ..repositories.storage_repo import StorageRepository
from ..schemas.file import (
    BulkDeleteRequest,
    DeleteResponse,
    FileListResponse,
    PodcastFile,
    RenameRequest,
)
from ..schemas.shared import ErrorResponse
from ..schemas.upload import UploadBatchResponse, UploadTaskResponse
from ..services.file_service import FileService
from ..services.upload_orchestrator import AudioFile
from ..services.upload_service import UploadService
from ..services.upload_tasks import UploadTaskRegistry
from ..utils.constants import SortField, SortOrder

router = APIRouter(
    prefix="/files",
    tags=["files"],
    responses={
        404: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)


async def read_upload(upload: UploadFile) -> AudioFile:
    """
    Turn a multipart part into an AudioFile.
    Parts whose declared size or type already fail validation are not read.
    """
    name = upload.filename or "unnamed"
    if upload.size is not None:
        validation = validate_file(name, upload.size, upload.content_type)
        if not validation.admissible:
            return AudioFile(name=name, content_type=upload.content_type, byte_size=upload.size)
    return AudioFile(name=name, content_type=upload.content_type, data=await upload.read())


@router.post(
    "/upload", response_model=UploadBatchResponse, status_code=status.HTTP_202_ACCEPTED
)
@limiter.limit("20/minute")
async def upload_files(
    request: Request,
    background_tasks: BackgroundTasks,
    files: List[UploadFile] = File(...),
    session: AuthSession = Depends(get_current_session),
    storage_repo: StorageRepository = Depends(get_storage_repo),
    session_factory: async_sessionmaker = Depends(get_db_session_factory),
    registry: UploadTaskRegistry = Depends(get_upload_registry),
):
    """
    Upload one or more audio files.
    Rejected files come back as error tasks; the rest transfer in the background.
    """
    audio_files = [await read_upload(upload) for upload in files]

    upload_service = UploadService(storage_repo, session_factory, registry)
    jobs = upload_service.admit(session.user_id, audio_files)
    background_tasks.add_task(upload_service.run, session.user_id, jobs)

    return UploadBatchResponse(
        tasks=[UploadTaskResponse.model_validate(task) for task, _ in jobs]
    )


@router.get("", response_model=FileListResponse)
async def list_files(
    search: str = Query("", max_length=255),
    sort: SortField = Query(SortField.CREATED_AT),
    order: SortOrder = Query(SortOrder.DESC),
    session: AuthSession = Depends(get_current_session),
    db: AsyncSession = Depends(get_db),
):
    """List the caller's files, filtered and sorted."""
    file_service = FileService(db, session.user_id)
    return await file_service.list_files(search=search, sort=sort, order=order)


@router.post("/bulk-delete", response_model=DeleteResponse)
async def bulk_delete_files(
    delete_data: BulkDeleteRequest,
    session: AuthSession = Depends(get_current_session),
    db: AsyncSession = Depends(get_db),
    storage_repo: StorageRepository = Depends(get_storage_repo),
):
    """Delete several files in one call."""
    file_service = FileService(db, session.user_id, storage_repo)
    return await file_service.bulk_delete(delete_data.ids)


@router.get("/{file_id}", response_model=PodcastFile)
async def get_file_details(
    file_id: str,
    session: AuthSession = Depends(get_current_session),
    db: AsyncSession = Depends(get_db),
):
    """Get file details by ID."""
    file_service = FileService(db, session.user_id)
    return await file_service.get_file(file_id)


@router.patch("/{file_id}", response_model=PodcastFile)
async def rename_file(
    file_id: str,
    rename_data: RenameRequest,
    session: AuthSession = Depends(get_current_session),
    db: AsyncSession = Depends(get_db),
):
    """Change a file's title."""
    file_service = FileService(db, session.user_id)
    return await file_service.rename(file_id, rename_data.title)


@router.delete("/{file_id}", response_model=DeleteResponse)
async def delete_file(
    file_id: str,
    session: AuthSession = Depends(get_current_session),
    db: AsyncSession = Depends(get_db),
    storage_repo: StorageRepository = Depends(get_storage_repo),
):
    """Delete a file and its stored object."""
    file_service = FileService(db, session.user_id, storage_repo)
    return await file_service.delete(file_id)
