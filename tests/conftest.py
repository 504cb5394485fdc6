"""Pytest configuration and fixtures."""

import os

# Must be set before the application modules read their settings
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("SUPABASE_URL", "http://supabase.test")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-secret-with-at-least-32-characters-long")

import time
from typing import AsyncGenerator, Dict, List
import httpx
import pytest
from httpx import AsyncClient, ASGITransport
from jose import jwt
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from podcaster.main import app
from podcaster.config.database import Base, get_db
from podcaster.config import settings
from podcaster.core.dependencies import (
    get_auth_provider,
    get_db_session_factory,
    get_storage_repo,
)
from podcaster.integrations.auth_provider import AuthProviderClient
from podcaster.services.upload_tasks import UploadTaskRegistry
from podcaster.utils.helpers import build_public_url


TEST_USER_ID = "5f0c2a4e-7d1b-4c38-9a7e-2b1f6d9e0a11"
OTHER_USER_ID = "a3e9b7c1-2f4d-4e6a-8b0c-9d1e2f3a4b5c"


class InMemoryStorage:
    """Object store stand-in with the StorageRepository interface."""

    def __init__(self):
        self.objects: Dict[str, bytes] = {}
        self.removed: List[str] = []
        self.fail_put = False
        self.fail_remove = False

    async def put(self, key, data, content_type, on_progress=None):
        if self.fail_put:
            raise RuntimeError("Bucket not found")
        if on_progress:
            on_progress(len(data) // 2, len(data))
            on_progress(len(data), len(data))
        self.objects[key] = data
        return key

    def public_url(self, key):
        return build_public_url(settings.storage_public_url, key)

    async def remove(self, keys):
        if self.fail_remove:
            raise RuntimeError("Storage unavailable")
        for key in keys:
            self.objects.pop(key, None)
            self.removed.append(key)

    async def list_objects(self, prefix, limit=100):
        return []


def make_access_token(user_id: str = TEST_USER_ID, email: str = "test@example.com") -> str:
    """Access token shaped like the ones the auth provider issues."""
    claims = {
        "sub": user_id,
        "email": email,
        "aud": settings.jwt_audience,
        "role": "authenticated",
        "exp": int(time.time()) + 3600,
    }
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


@pytest.fixture(scope="function")
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker, None]:
    """
    Sessions on a fresh SQLite file per test.
    Background uploads open their own sessions, so each needs its own connection.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def auth_handler():
    """Replies of the fake auth provider. Tests replace entries as needed."""
    routes = {}

    def handler(request: httpx.Request) -> httpx.Response:
        key = (request.method, request.url.path)
        if key not in routes:
            return httpx.Response(404, json={"msg": "Not found"})
        reply = routes[key]
        return reply(request) if callable(reply) else reply

    handler.routes = routes
    return handler


@pytest.fixture(scope="function")
async def client(
    db_session: AsyncSession, session_factory, storage: InMemoryStorage, auth_handler
) -> AsyncGenerator[AsyncClient, None]:
    """Create test HTTP client."""
    async def override_get_db():
        yield db_session

    async def override_get_storage_repo():
        yield storage

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage_repo] = override_get_storage_repo
    app.dependency_overrides[get_db_session_factory] = lambda: session_factory
    app.dependency_overrides[get_auth_provider] = lambda: AuthProviderClient(
        base_url="http://supabase.test/auth/v1",
        api_key="test-anon-key",
        transport=httpx.MockTransport(auth_handler),
    )

    previous_registry = app.state.upload_tasks
    app.state.upload_tasks = UploadTaskRegistry(app.state.session_broker)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.state.upload_tasks.close()
    app.state.upload_tasks = previous_registry
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers() -> Dict[str, str]:
    return {"Authorization": f"Bearer {make_access_token()}"}


@pytest.fixture
def other_auth_headers() -> Dict[str, str]:
    return {"Authorization": f"Bearer {make_access_token(OTHER_USER_ID, 'other@example.com')}"}
