"""Pytest configuration and fixtures."""

import os

os.environ.setdefault("SESSION_SECRET_KEY", "test-session-secret-key-0123456789abcdef")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from collections.abc import AsyncGenerator, Iterator  # noqa: E402
from pathlib import Path  # noqa: E402

import fakeredis.aioredis  # noqa: E402
import pytest  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from langchain_core.language_models.fake_chat_models import GenericFakeChatModel  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine  # noqa: E402

from chathub.core.database import Base, Database  # noqa: E402
from chathub.models.chat import Chat  # noqa: E402, F401
from chathub.models.message import Message  # noqa: E402, F401
from chathub.models.stored_file import StoredFile  # noqa: E402, F401
from chathub.services.blob_storage import BlobStorage  # noqa: E402
from tests.factories import fake_llm_replying, make_auth_headers  # noqa: E402

# --- Test DB (SQLite in-memory) ---

test_database = Database(create_async_engine("sqlite+aiosqlite:///:memory:", echo=False))


@pytest.fixture(autouse=True)
async def setup_db() -> AsyncGenerator[None, None]:
    """Create all tables before each test, drop after."""
    await test_database.create_all()
    yield
    async with test_database.engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def database() -> Database:
    return test_database


@pytest.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide a raw async session for repository and service tests."""
    async with test_database.session_factory() as session:
        yield session


# --- Test Redis (fakeredis) ---


@pytest.fixture
def fake_redis() -> fakeredis.aioredis.FakeRedis:
    """Create a fresh fake Redis client."""
    return fakeredis.aioredis.FakeRedis(decode_responses=True)


# --- Fakes for the model and blob storage ---


@pytest.fixture
def fake_llm() -> GenericFakeChatModel:
    return fake_llm_replying("Hello from the model")


@pytest.fixture
def blob_storage(tmp_path: Path) -> BlobStorage:
    return BlobStorage(tmp_path / "files", "/files")


# --- App override & client fixtures ---


@pytest.fixture
def app(
    fake_redis: fakeredis.aioredis.FakeRedis,
    fake_llm: GenericFakeChatModel,
    blob_storage: BlobStorage,
) -> Iterator[FastAPI]:
    """Application wired to the test database, fake Redis and fake model."""
    from chathub.core.rate_limit import limiter
    from chathub.dependencies import get_blob_storage, get_llm
    from chathub.main import app as application

    application.state.database = test_database
    application.state.redis = fake_redis
    application.dependency_overrides[get_llm] = lambda: fake_llm
    application.dependency_overrides[get_blob_storage] = lambda: blob_storage
    limiter.reset()
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
async def async_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Unauthenticated client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def authed_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Client signed in as ``user-1``."""
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport, base_url="http://test", headers=make_auth_headers("user-1")
    ) as ac:
        yield ac


@pytest.fixture
async def other_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Client signed in as ``user-2``, who owns nothing of ``user-1``'s."""
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport, base_url="http://test", headers=make_auth_headers("user-2")
    ) as ac:
        yield ac
