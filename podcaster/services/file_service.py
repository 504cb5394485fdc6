"""File service for listing, renaming and deleting an owner's podcast files."""

from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from ..core.exceptions import ErrorKind, NotFoundError, normalize_error
from ..repositories.podcast_repo import PodcastRepository
from ..repositories.storage_repo import StorageRepository
from ..schemas.file import DeleteResponse, FileListResponse, PodcastFile
from ..utils.constants import SortField, SortOrder
from .file_list import FileListController, SearchChanged, SortRequested
from .quota_service import QuotaService

NOT_FOUND_MESSAGE = "File not found or you do not have permission to view it."


class FileService:
    """Service for file operations."""

    def __init__(
        self,
        db: AsyncSession,
        owner_id: str,
        storage_repo: Optional[StorageRepository] = None,
    ):
        self.db = db
        self.owner_id = owner_id
        self.file_repo = PodcastRepository(db)
        self.quota_service = QuotaService(self.file_repo)
        self.controller = FileListController(
            owner_id, self.file_repo, self.quota_service, storage_repo
        )

    async def list_files(
        self,
        search: str = "",
        sort: SortField = SortField.CREATED_AT,
        order: SortOrder = SortOrder.DESC,
    ) -> FileListResponse:
        """List the owner's files, filtered by search and sorted."""
        await self.controller.load()
        self.controller.dispatch(SearchChanged(search))
        self.controller.dispatch(SortRequested(sort, order))
        return FileListResponse(
            files=self.controller.view(),
            total=len(self.controller.state.records),
            search=search,
            sort=sort.value,
            order=order.value,
        )

    async def get_file(self, file_id: str) -> PodcastFile:
        """Get one of the owner's files."""
        try:
            record = await self.file_repo.get_by_id_and_user(file_id, self.owner_id)
        except Exception as e:
            raise normalize_error(e, ErrorKind.REMOTE_QUERY, "Failed to load file")
        if record is None:
            raise NotFoundError(NOT_FOUND_MESSAGE)
        return PodcastFile.model_validate(record)

    async def rename(self, file_id: str, title: str) -> PodcastFile:
        """Change a file's display title."""
        return await self.controller.rename(file_id, title)

    async def delete(self, file_id: str) -> DeleteResponse:
        """Delete one file and report refreshed usage."""
        await self.controller.delete(file_id)
        return DeleteResponse(deleted_ids=[file_id], quota=self.controller.quota)

    async def bulk_delete(self, file_ids: List[str]) -> DeleteResponse:
        """Delete several files in one call and report refreshed usage."""
        deleted_ids = await self.controller.bulk_delete(file_ids)
        quota = self.controller.quota or await self.controller.refresh_quota()
        return DeleteResponse(deleted_ids=deleted_ids, quota=quota)
