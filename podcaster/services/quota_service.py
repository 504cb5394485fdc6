"""Storage quota accounting per owner."""

from typing import Optional
from ..config import settings
from ..core.exceptions import ErrorKind, normalize_error
from ..repositories.podcast_repo import PodcastRepository
from ..schemas.quota import QuotaSnapshot
from ..utils.constants import StorageLevel
from ..utils.logger import get_logger

logger = get_logger(__name__)


def compute_percentage(usage: int, max_storage: int) -> int:
    """Share of the quota used, rounded half up and clamped to 0..100."""
    if max_storage <= 0:
        return 100
    percentage = (usage * 200 + max_storage) // (2 * max_storage)
    return max(0, min(100, percentage))


def compute_remaining(usage: int, max_storage: int) -> int:
    """Bytes left, never negative."""
    return max(0, max_storage - usage)


def storage_level(percentage: int) -> StorageLevel:
    """Band used to colour the usage bar."""
    if percentage >= 90:
        return StorageLevel.ALMOST_FULL
    if percentage >= 75:
        return StorageLevel.GETTING_FULL
    return StorageLevel.HEALTHY


class QuotaService:
    """Service for storage usage and quota figures."""

    def __init__(
        self,
        file_repo: PodcastRepository,
        max_user_storage: Optional[int] = None,
        fail_open: Optional[bool] = None,
    ):
        self.file_repo = file_repo
        self.max_user_storage = (
            max_user_storage if max_user_storage is not None else settings.max_user_storage
        )
        self.fail_open = settings.quota_fail_open if fail_open is None else fail_open

    async def usage(self, owner_id: str) -> int:
        """
        Bytes stored by an owner.
        A failed lookup counts as zero usage unless fail-open is switched off,
        so an outage never blocks uploads.
        """
        try:
            return await self.file_repo.get_total_size_by_user(owner_id)
        except Exception as e:
            await self._rollback()
            if not self.fail_open:
                logger.error("Storage usage lookup failed", owner_id=owner_id, error=str(e))
                raise normalize_error(e, ErrorKind.REMOTE_QUERY, "Failed to load storage usage")
            logger.warning(
                "Storage usage lookup failed, assuming zero usage",
                owner_id=owner_id,
                error=str(e),
            )
            return 0

    async def percentage(self, owner_id: str) -> int:
        """Rounded percentage of the quota in use."""
        return compute_percentage(await self.usage(owner_id), self.max_user_storage)

    async def remaining(self, owner_id: str) -> int:
        """Bytes the owner may still upload."""
        return compute_remaining(await self.usage(owner_id), self.max_user_storage)

    async def can_upload(self, owner_id: str, file_size: int) -> bool:
        """
        Whether a file of this size fits in the remaining quota.
        Unlike usage, a failed lookup refuses the upload.
        """
        try:
            usage = await self.file_repo.get_total_size_by_user(owner_id)
        except Exception as e:
            await self._rollback()
            logger.error("Upload permission check failed", owner_id=owner_id, error=str(e))
            return False
        return usage + file_size <= self.max_user_storage

    async def _rollback(self) -> None:
        # A failed statement leaves the session transaction unusable on PostgreSQL
        await self.file_repo.session.rollback()

    async def snapshot(self, owner_id: str) -> QuotaSnapshot:
        """Usage, percentage and remaining bytes from a single lookup."""
        usage = await self.usage(owner_id)
        percentage = compute_percentage(usage, self.max_user_storage)
        return QuotaSnapshot(
            usage=usage,
            percentage=percentage,
            remaining=compute_remaining(usage, self.max_user_storage),
            max_user_storage=self.max_user_storage,
            max_file_size=settings.max_file_size,
            supported_formats=len(settings.allowed_extensions),
            level=storage_level(percentage),
        )
