"""
Database connection and session management.

Any SQLAlchemy async URL works; SQLite with aiosqlite is the default.
"""

import os
import logging
from typing import AsyncGenerator, Optional
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from cryptoadvisor.db.models import Base
from cryptoadvisor.core.config import settings
from cryptoadvisor.services.base import ConfigurationError

logger = logging.getLogger(__name__)

# Default data directory: backend/data
DATA_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), "data")


def database_url() -> str:
    """Resolve the database URL from settings."""
    if settings.database_url is not None:
        url = settings.database_url.strip()
        if not url:
            raise ConfigurationError("Database", "DATABASE_URL is set but empty")
        return url

    os.makedirs(DATA_DIR, exist_ok=True)
    sqlite_path = settings.sqlite_path or os.path.join(DATA_DIR, "cryptoadvisor.db")
    return f"sqlite+aiosqlite:///{sqlite_path}"


def create_engine(url: str) -> AsyncEngine:
    """Create an async engine; SQLite gets a single shared connection."""
    if url.startswith("sqlite"):
        # SQLite requires check_same_thread=False for async
        return create_async_engine(
            url,
            echo=False,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_async_engine(url, echo=False, pool_pre_ping=True)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


def get_engine() -> AsyncEngine:
    global _engine
    if _engine is None:
        _engine = create_engine(database_url())
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    global _session_factory
    if _session_factory is None:
        _session_factory = create_session_factory(get_engine())
    return _session_factory


async def init_db(engine: Optional[AsyncEngine] = None) -> None:
    """
    Initialize the database - create all tables.
    Called on application startup.
    """
    engine = engine or get_engine()
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info(f"Database initialized at: {engine.url.render_as_string(hide_password=True)}")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise


async def close_db() -> None:
    """
    Close database connections.
    Called on application shutdown.
    """
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        logger.info("Database connections closed")
    _engine = None
    _session_factory = None


@asynccontextmanager
async def session_scope(
    factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """One session, one transaction: commit on success, roll back on error."""
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
