"""Database base configuration for SQLAlchemy with SQLModel.

This module provides base database configuration for async SQLAlchemy with SQLModel.
It includes:
- Engine configuration per environment
- Session factory construction
- Table creation

Nothing here connects at import time; the runtime builds the engine at startup.
"""

from typing import Any, Dict
import logging

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool, StaticPool
from sqlmodel import SQLModel

from shortlinks.core.config import Settings

# Register table models with SQLModel metadata
import shortlinks.models  # noqa: F401

logger = logging.getLogger(__name__)


def get_engine_config(settings: Settings) -> Dict[str, Any]:
    """Get the appropriate engine configuration for the database URL and environment.

    Returns:
        Dict: Engine configuration parameters.
    """
    url = str(settings.SQLALCHEMY_DATABASE_URI)

    if url.startswith("sqlite"):
        config: Dict[str, Any] = {
            "echo": settings.DB_ECHO,
            "connect_args": {"check_same_thread": False},
        }
        if ":memory:" in url or url.rstrip("/").endswith("sqlite+aiosqlite:"):
            # One shared connection, otherwise every session sees an empty database
            config["poolclass"] = StaticPool
        return config

    if settings.ENVIRONMENT.value == "testing":
        return {"echo": False, "poolclass": NullPool}

    return {
        "echo": settings.DB_ECHO,
        "pool_size": settings.POSTGRES_POOL_SIZE,
        "max_overflow": settings.POSTGRES_POOL_MAX_OVERFLOW,
        "pool_timeout": settings.POSTGRES_POOL_TIMEOUT,
        "pool_recycle": settings.POSTGRES_POOL_RECYCLE,
        "pool_pre_ping": True,
    }


def create_engine(settings: Settings) -> AsyncEngine:
    """Create and configure an async SQLAlchemy engine.

    Returns:
        AsyncEngine: Configured SQLAlchemy async engine instance.
    """
    engine_url = str(settings.SQLALCHEMY_DATABASE_URI)
    logger.info("Creating database engine for %s", engine_url.split("@")[-1])
    return create_async_engine(engine_url, **get_engine_config(settings))


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Build the async session factory bound to engine."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def create_tables(engine: AsyncEngine) -> None:
    """Create all SQLModel tables that do not exist yet."""
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

