"""Base repository with common database operations."""

from typing import Generic, TypeVar
from sqlalchemy.ext.asyncio import AsyncSession
from ..config.database import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """Base repository with common database operations."""

    def __init__(self, session: AsyncSession, model: type[ModelType]):
        """
        Initialize repository.
        Args:
            session: Async database session
            model: SQLAlchemy model class
        """
        self.session = session
        self.model = model

    async def add(self, **kwargs) -> ModelType:
        """Create new entity and commit."""
        entity = self.model(**kwargs)
        self.session.add(entity)
        await self.session.commit()
        await self.session.refresh(entity)
        return entity
