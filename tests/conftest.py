"""Test fixtures for the shortlink application."""

import os

# Settings are read once at import, so the test environment must be in place first
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("LOG_TO_FILE", "false")
os.environ.setdefault("REQUEST_LOGGING_ENABLED", "true")

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from shortlinks.core.config import Settings
from shortlinks.db.session import SessionManager
# Import models to ensure they're registered with SQLModel metadata
import shortlinks.models  # noqa: F401

from tests.utils import FailingRedis, FailingSink, FakeRedis, FrozenClock, RecordingSink

# Test database URL - using SQLite in-memory
TEST_SQLALCHEMY_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def test_engine():
    """Create test database engine with in-memory SQLite."""
    engine = create_async_engine(
        TEST_SQLALCHEMY_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_manager(test_engine) -> SessionManager:
    """Session manager bound to the test engine."""
    factory = async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    return SessionManager(factory)


@pytest_asyncio.fixture
async def file_session_manager(tmp_path) -> SessionManager:
    """Session manager over a file database where every session has its own connection."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'shortlinks.db'}",
        connect_args={"timeout": 30},
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield SessionManager(
        async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    )

    await engine.dispose()


@pytest_asyncio.fixture
async def test_db(session_manager):
    """Plain session for direct repository tests."""
    async with session_manager.session() as session:
        yield session


@pytest.fixture
def clock():
    """Frozen clock starting at a fixed instant."""
    return FrozenClock()


@pytest.fixture
def mock_redis():
    """Dictionary-backed Redis stand-in."""
    return FakeRedis()


@pytest.fixture
def failing_redis():
    """Redis stand-in that is always unreachable."""
    return FailingRedis()


@pytest.fixture
def recording_sink():
    """Analytics sink that records rows in memory."""
    return RecordingSink()


@pytest.fixture
def failing_sink():
    """Analytics sink that always fails."""
    return FailingSink()


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Settings for an application wired to in-memory backends."""
    return Settings(
        ENVIRONMENT="testing",
        DATABASE_URL="sqlite+aiosqlite://",
        REDIS_URL=None,
        DURABLE_TIER_ENABLED=True,
        MAP_SHARED_SECRET="test-secret",
        LOG_TO_FILE=False,
        LOG_DIR=str(tmp_path),
        SWEEP_INTERVAL_SECONDS=3600,
    )
