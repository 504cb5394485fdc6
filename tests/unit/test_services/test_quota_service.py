"""Unit tests for quota service."""

import pytest
from unittest.mock import AsyncMock, MagicMock
from sqlalchemy.exc import OperationalError
from podcaster.core.exceptions import RemoteQueryError
from podcaster.models.podcast import Podcast
from podcaster.repositories.podcast_repo import PodcastRepository
from podcaster.services.quota_service import (
    QuotaService,
    compute_percentage,
    compute_remaining,
    storage_level,
)
from podcaster.utils.constants import StorageLevel

GB = 1024 * 1024 * 1024


def make_service(usage=None, error=None, **kwargs) -> QuotaService:
    file_repo = MagicMock()
    file_repo.get_total_size_by_user = AsyncMock(return_value=usage, side_effect=error)
    file_repo.session.rollback = AsyncMock()
    return QuotaService(file_repo, max_user_storage=GB, **kwargs)


def test_compute_percentage_bounds():
    """Test percentage at zero, full and over the quota."""
    assert compute_percentage(0, GB) == 0
    assert compute_percentage(GB, GB) == 100
    assert compute_percentage(GB + 1, GB) == 100
    assert compute_percentage(2 * GB, GB) == 100


def test_compute_percentage_rounds_half_up():
    """Test percentage rounding."""
    assert compute_percentage(5, 1000) == 1
    assert compute_percentage(4, 1000) == 0
    assert compute_percentage(125, 1000) == 13


def test_compute_remaining_never_negative():
    """Test remaining bytes are clamped at zero."""
    assert compute_remaining(0, GB) == GB
    assert compute_remaining(2 * GB, GB) == 0


def test_storage_level_bands():
    """Test storage health bands."""
    assert storage_level(74) is StorageLevel.HEALTHY
    assert storage_level(75) is StorageLevel.GETTING_FULL
    assert storage_level(89) is StorageLevel.GETTING_FULL
    assert storage_level(90) is StorageLevel.ALMOST_FULL


@pytest.mark.asyncio
async def test_snapshot_figures():
    """Test snapshot derives everything from one lookup."""
    service = make_service(usage=GB // 2)
    snapshot = await service.snapshot("user-1")

    assert snapshot.usage == GB // 2
    assert snapshot.percentage == 50
    assert snapshot.remaining == GB // 2
    assert snapshot.max_user_storage == GB
    assert snapshot.supported_formats == 8
    assert snapshot.level is StorageLevel.HEALTHY
    service.file_repo.get_total_size_by_user.assert_awaited_once_with("user-1")


@pytest.mark.asyncio
async def test_usage_fails_open():
    """Test a failed lookup reports zero usage."""
    service = make_service(error=OperationalError("SELECT", {}, Exception("timeout")), fail_open=True)
    assert await service.usage("user-1") == 0
    assert await service.percentage("user-1") == 0
    assert await service.remaining("user-1") == GB


@pytest.mark.asyncio
async def test_usage_fail_closed_raises():
    """Test a failed lookup raises when fail-open is off."""
    service = make_service(error=OperationalError("SELECT", {}, Exception("timeout")), fail_open=False)
    with pytest.raises(RemoteQueryError, match="timeout"):
        await service.usage("user-1")


@pytest.mark.asyncio
async def test_can_upload():
    """Test quota admission at the boundary."""
    service = make_service(usage=GB - 100)
    assert await service.can_upload("user-1", 100)
    assert not await service.can_upload("user-1", 101)


@pytest.mark.asyncio
async def test_usage_failure_rolls_back_session():
    service = make_service(error=OperationalError("SELECT", {}, Exception("timeout")), fail_open=True)
    await service.usage("user-1")
    service.file_repo.session.rollback.assert_awaited_once()


@pytest.mark.asyncio
async def test_can_upload_refuses_when_lookup_fails():
    """Test the upload permission check fails closed even with fail-open usage."""
    service = make_service(error=OperationalError("SELECT", {}, Exception("timeout")), fail_open=True)

    assert not await service.can_upload("user-1", 1)
    service.file_repo.session.rollback.assert_awaited_once()


@pytest.mark.asyncio
async def test_session_accepts_insert_after_failed_usage(db_session):
    """Test a failed usage lookup does not poison the session for the record insert."""
    repo = PodcastRepository(db_session)

    async def fail_mid_transaction(user_id):
        # Leaves the session needing a rollback, as an aborted PostgreSQL transaction does
        db_session.add(
            Podcast(user_id=None, file_name="x", file_size=1, file_url="u", storage_key="k")
        )
        await db_session.flush()

    repo.get_total_size_by_user = fail_mid_transaction
    service = QuotaService(repo, max_user_storage=GB, fail_open=True)

    assert await service.usage("user-1") == 0
    record = await repo.create_podcast(
        user_id="user-1",
        file_name="show.mp3",
        file_size=10,
        file_url="http://cdn/show.mp3",
        storage_key="user-1/1-show.mp3",
    )
    assert record.id
