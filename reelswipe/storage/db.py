"""Async engine, session factory and the per-request session dependency."""

import os
from collections.abc import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from reelswipe.logging import get_logger

logger = get_logger(__name__)

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./reelswipe.db"

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


class Base(DeclarativeBase):
    """Declarative base shared by every table."""


def _database_settings() -> tuple[str, bool]:
    """(url, echo) from the environment, then from config.

    Config is imported lazily so scripts and tests can build an engine
    without SESSION_SECRET set.
    """
    url = os.getenv("DATABASE_URL")
    level = os.getenv("LOG_LEVEL")
    if url and level:
        return url, level.upper() == "DEBUG"

    try:
        from reelswipe.config import config
    except Exception:
        return url or DEFAULT_DATABASE_URL, (level or "").upper() == "DEBUG"
    return url or config.database_url, (level or config.log_level).upper() == "DEBUG"


def get_engine() -> AsyncEngine:
    """Create the engine on first use and return it afterwards."""
    global _engine

    if _engine is None:
        url, echo = _database_settings()
        logger.info(f"Creating database engine for {url}")
        _engine = create_async_engine(url, echo=echo, pool_pre_ping=True)
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    global _session_factory

    if _session_factory is None:
        _session_factory = async_sessionmaker(get_engine(), class_=AsyncSession, expire_on_commit=False)
    return _session_factory


async def get_db_session() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency yielding one session per request."""
    async with get_session_factory()() as session:
        yield session


async def close_engine() -> None:
    """Dispose pooled connections; the next get_engine() starts fresh."""
    global _engine, _session_factory

    if _engine is None:
        return
    logger.info("Closing database engine")
    await _engine.dispose()
    _engine = None
    _session_factory = None
