"""Unit tests for podcast repository."""

import pytest
from podcaster.repositories.podcast_repo import PodcastRepository


async def add(repo, user_id, name, size):
    return await repo.create_podcast(
        user_id=user_id,
        file_name=name,
        file_size=size,
        file_url=f"http://cdn/{user_id}/{name}",
        storage_key=f"{user_id}/1-{name}",
    )


@pytest.mark.asyncio
async def test_create_podcast_defaults(db_session):
    """Test new records start as uploaded with the file name as title."""
    repo = PodcastRepository(db_session)
    record = await add(repo, "user-1", "show.mp3", 5242880)

    assert record.id
    assert record.title == "show.mp3"
    assert record.status == "uploaded"
    assert record.file_size == 5242880
    assert record.created_at is not None


@pytest.mark.asyncio
async def test_total_size_by_user(db_session):
    repo = PodcastRepository(db_session)
    assert await repo.get_total_size_by_user("user-1") == 0

    await add(repo, "user-1", "a.mp3", 100)
    await add(repo, "user-1", "b.mp3", 250)
    await add(repo, "user-2", "c.mp3", 999)

    assert await repo.get_total_size_by_user("user-1") == 350


@pytest.mark.asyncio
async def test_delete_many_is_owner_scoped(db_session):
    repo = PodcastRepository(db_session)
    mine = await add(repo, "user-1", "a.mp3", 100)
    theirs = await add(repo, "user-2", "b.mp3", 100)

    deleted = await repo.delete_many([mine.id, theirs.id, "missing"], "user-1")

    assert deleted == [mine.id]
    assert await repo.get_by_id_and_user(theirs.id, "user-2") is not None
    assert await repo.list_by_user("user-1") == []


@pytest.mark.asyncio
async def test_update_title_other_owner(db_session):
    repo = PodcastRepository(db_session)
    record = await add(repo, "user-2", "b.mp3", 100)

    assert await repo.update_title(record.id, "user-1", "Stolen") is None
    assert (await repo.get_by_id_and_user(record.id, "user-2")).title == "b.mp3"


@pytest.mark.asyncio
async def test_get_storage_keys(db_session):
    repo = PodcastRepository(db_session)
    record = await add(repo, "user-1", "a.mp3", 100)

    assert await repo.get_storage_keys([record.id], "user-1") == ["user-1/1-a.mp3"]
    assert await repo.get_storage_keys([record.id], "user-2") == []
