"""Podcast repository for file record operations."""

from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import delete, func, select, update
from .base import BaseRepository
from ..models.podcast import Podcast
from ..utils.constants import ProcessingStatus


class PodcastRepository(BaseRepository[Podcast]):
    """Repository for podcast records. Every query is scoped to one owner."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Podcast)

    async def create_podcast(
        self,
        user_id: str,
        file_name: str,
        file_size: int,
        file_url: str,
        storage_key: str,
        content_type: Optional[str] = None,
        title: Optional[str] = None,
    ) -> Podcast:
        """Insert the record for a freshly uploaded object."""
        return await self.add(
            user_id=user_id,
            title=title or file_name,
            file_name=file_name,
            file_size=file_size,
            file_url=file_url,
            storage_key=storage_key,
            content_type=content_type,
            status=ProcessingStatus.UPLOADED.value,
        )

    async def list_by_user(self, user_id: str) -> List[Podcast]:
        """All records for an owner, newest first."""
        stmt = (
            select(Podcast)
            .where(Podcast.user_id == user_id)
            .order_by(Podcast.created_at.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_by_id_and_user(self, file_id: str, user_id: str) -> Optional[Podcast]:
        """Get record by ID and owner (for authorization)."""
        stmt = select(Podcast).where(Podcast.id == file_id, Podcast.user_id == user_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def update_title(self, file_id: str, user_id: str, title: str) -> Optional[Podcast]:
        """Change the display title. Size, URL and status are never touched."""
        await self.session.execute(
            update(Podcast)
            .where(Podcast.id == file_id, Podcast.user_id == user_id)
            .values(title=title)
        )
        await self.session.commit()
        stmt = (
            select(Podcast)
            .where(Podcast.id == file_id, Podcast.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_storage_keys(self, file_ids: List[str], user_id: str) -> List[str]:
        """Object keys behind the given records."""
        stmt = select(Podcast.storage_key).where(
            Podcast.id.in_(file_ids), Podcast.user_id == user_id
        )
        result = await self.session.execute(stmt)
        return [key for key in result.scalars().all() if key]

    async def delete_many(self, file_ids: List[str], user_id: str) -> List[str]:
        """Delete records in one statement. Returns the ids that existed."""
        existing = await self.session.execute(
            select(Podcast.id).where(Podcast.id.in_(file_ids), Podcast.user_id == user_id)
        )
        deleted_ids = list(existing.scalars().all())
        await self.session.execute(
            delete(Podcast).where(Podcast.id.in_(file_ids), Podcast.user_id == user_id)
        )
        await self.session.commit()
        return deleted_ids

    async def get_total_size_by_user(self, user_id: str) -> int:
        """Total bytes stored by an owner, summed by the database."""
        stmt = select(func.coalesce(func.sum(Podcast.file_size), 0)).where(
            Podcast.user_id == user_id
        )
        result = await self.session.execute(stmt)
        return int(result.scalar() or 0)
