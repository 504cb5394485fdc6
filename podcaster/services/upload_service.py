"""Upload service: admits a batch of files and runs their uploads concurrently."""

import asyncio
from typing import List, Tuple
from sqlalchemy.ext.asyncio import async_sessionmaker
from ..core.exceptions import ErrorKind, normalize_error
from ..middleware.validation import validate_file
from ..repositories.podcast_repo import PodcastRepository
from ..repositories.storage_repo import StorageRepository
from .quota_service import QuotaService
from .upload_orchestrator import AudioFile, UploadOrchestrator
from .upload_tasks import (
    ProgressReported,
    UploadCompleted,
    UploadFailed,
    UploadStarted,
    UploadTask,
    UploadTaskRegistry,
)
from ..utils.constants import UploadTaskState
from ..utils.logger import get_logger

logger = get_logger(__name__)

QUOTA_EXCEEDED_MESSAGE = "Storage quota exceeded. Delete some files to free up space."

UploadJob = Tuple[UploadTask, AudioFile]


class UploadService:
    """Service for turning incoming files into stored objects and file records."""

    def __init__(
        self,
        storage_repo: StorageRepository,
        session_factory: async_sessionmaker,
        registry: UploadTaskRegistry,
    ):
        self.storage_repo = storage_repo
        self.session_factory = session_factory
        self.registry = registry
        self.orchestrator = UploadOrchestrator(storage_repo)

    def admit(self, owner_id: str, files: List[AudioFile]) -> List[UploadJob]:
        """
        Create a task per file.
        Files that fail validation get an error task and are never submitted.
        """
        jobs = []
        for file in files:
            validation = validate_file(file.name, file.size, file.content_type)
            task = self.registry.create_task(
                owner_id=owner_id,
                file_name=file.name,
                byte_size=file.size,
                content_type=file.content_type,
                rejection=None if validation.admissible else validation.reason,
            )
            jobs.append((task, file))
        return jobs

    async def run(self, owner_id: str, jobs: List[UploadJob]) -> List[UploadTask]:
        """
        Upload every pending job as an independent coroutine.
        One failure never affects the others; completions land in any order.
        """
        pending = [(task, file) for task, file in jobs if task.state is UploadTaskState.PENDING]
        await asyncio.gather(*(self._upload_one(owner_id, task, file) for task, file in pending))
        return [self.registry.get(owner_id, task.id) or task for task, _ in jobs]

    async def _upload_one(self, owner_id: str, task: UploadTask, file: AudioFile) -> None:
        def dispatch(event) -> None:
            self.registry.dispatch(owner_id, event)

        # Each upload gets its own session so concurrent uploads never share one
        async with self.session_factory() as session:
            file_repo = PodcastRepository(session)
            quota = QuotaService(file_repo)

            if not await quota.can_upload(owner_id, file.size):
                logger.info("Upload refused by quota", owner_id=owner_id, file_name=file.name)
                dispatch(UploadFailed(task.id, QUOTA_EXCEEDED_MESSAGE))
                return

            dispatch(UploadStarted(task.id))
            result = await self.orchestrator.upload(
                file,
                owner_id,
                on_progress=lambda loaded, total: dispatch(
                    ProgressReported(task.id, loaded, total)
                ),
            )
            if not result.success:
                dispatch(UploadFailed(task.id, result.error))
                return

            uploaded = result.data
            try:
                record = await file_repo.create_podcast(
                    user_id=owner_id,
                    file_name=uploaded.file_name,
                    file_size=uploaded.byte_size,
                    file_url=uploaded.storage_url,
                    storage_key=uploaded.path,
                    content_type=file.content_type,
                )
            except Exception as e:
                error = normalize_error(e, ErrorKind.REMOTE_QUERY, "Failed to save file record")
                logger.error(
                    "File record insert failed",
                    owner_id=owner_id,
                    storage_key=uploaded.path,
                    error=error.message,
                )
                await session.rollback()
                await self._discard_object(uploaded.path)
                dispatch(UploadFailed(task.id, error.message))
                return

        dispatch(UploadCompleted(task.id, uploaded.storage_url, record.id))

    async def _discard_object(self, key: str) -> None:
        """Remove an object whose record could not be written."""
        try:
            await self.storage_repo.remove([key])
        except Exception as e:
            logger.error("Orphaned object left in storage", storage_key=key, error=str(e))
