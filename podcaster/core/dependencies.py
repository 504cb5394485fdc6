"""Reusable FastAPI dependencies."""

from typing import AsyncGenerator
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from ..config.database import get_db, get_session_factory
from ..core.session import SessionBroker
from ..integrations.auth_provider import AuthProviderClient
from ..repositories.podcast_repo import PodcastRepository
from ..repositories.storage_repo import StorageRepository
from ..services.auth_service import AuthService
from ..services.quota_service import QuotaService
from ..services.upload_tasks import UploadTaskRegistry


async def get_podcast_repo(
    db: AsyncSession = Depends(get_db),
) -> AsyncGenerator[PodcastRepository, None]:
    """Dependency to get podcast repository."""
    yield PodcastRepository(db)


async def get_storage_repo() -> AsyncGenerator[StorageRepository, None]:
    """Dependency to get storage repository."""
    yield StorageRepository()


async def get_quota_service(
    repo: PodcastRepository = Depends(get_podcast_repo),
) -> AsyncGenerator[QuotaService, None]:
    """Dependency to get quota service."""
    yield QuotaService(repo)


def get_auth_provider() -> AuthProviderClient:
    """Dependency to get the auth provider client."""
    return AuthProviderClient()


def get_session_broker(request: Request) -> SessionBroker:
    return request.app.state.session_broker


def get_upload_registry(request: Request) -> UploadTaskRegistry:
    return request.app.state.upload_tasks


def get_auth_service(
    client: AuthProviderClient = Depends(get_auth_provider),
    broker: SessionBroker = Depends(get_session_broker),
) -> AuthService:
    """Dependency to get auth service."""
    return AuthService(client, broker)


def get_db_session_factory() -> async_sessionmaker:
    """Session factory for work that outlives the request, such as uploads."""
    return get_session_factory()
