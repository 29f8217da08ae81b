"""Database engine and session handling."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from launchproxy.config import get_settings
from launchproxy.ledger.models import Base

logger = logging.getLogger(__name__)

_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


def _normalize_url(url: str) -> str:
    """Use the async sqlite driver for plain sqlite URLs."""
    if url.startswith("sqlite:///") and "aiosqlite" not in url:
        return url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    return url


def _ensure_sqlite_dir(url: str) -> None:
    """Create the parent directory of a file-backed sqlite database."""
    marker = ":///"
    if not url.startswith("sqlite") or ":memory:" in url or marker not in url:
        return
    path = Path(url.split(marker, 1)[1])
    path.parent.mkdir(parents=True, exist_ok=True)


def configure_engine(url: Optional[str] = None) -> AsyncEngine:
    """(Re)create the engine, e.g. for an in-memory database in tests."""
    global _engine, _session_factory

    settings = get_settings()
    db_url = _normalize_url(url or settings.database_url)

    kwargs = {"echo": settings.debug and not settings.is_production}
    if ":memory:" in db_url:
        # One shared connection, or every session would see an empty database
        kwargs.update(poolclass=StaticPool, connect_args={"check_same_thread": False})
    else:
        _ensure_sqlite_dir(db_url)

    _engine = create_async_engine(db_url, **kwargs)
    _session_factory = async_sessionmaker(
        bind=_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    return _engine


def get_engine() -> AsyncEngine:
    """Get or create the database engine."""
    if _engine is None:
        return configure_engine()
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get or create the session factory."""
    if _session_factory is None:
        configure_engine()
    return _session_factory


@asynccontextmanager
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Session that commits on success and rolls back on error."""
    async with get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Create all tables."""
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.debug("Database schema ready")


async def close_db() -> None:
    """Dispose of the engine."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_factory = None
