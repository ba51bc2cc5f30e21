"""Async engine and sessions for the ledger.

The API and the standalone monitor share one SQLite file, so connections run
in WAL mode with a busy timeout instead of failing on a concurrent write.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator, Optional

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from xmrsplit.config import get_settings
from xmrsplit.ledger.models import Base

logger = logging.getLogger(__name__)

SQLITE_BUSY_TIMEOUT_MS = 5000

_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


def _file_database(database_url: str) -> Optional[str]:
    """Path of a file-backed SQLite database, None for anything else."""
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite" or url.database in (None, "", ":memory:"):
        return None
    return url.database


def _async_url(database_url: str) -> str:
    """Plain sqlite URLs get the aiosqlite driver; the data directory is created."""
    if make_url(database_url).drivername == "sqlite":
        database_url = "sqlite+aiosqlite" + database_url[len("sqlite"):]

    path = _file_database(database_url)
    if path is not None:
        Path(path).expanduser().parent.mkdir(parents=True, exist_ok=True)
    return database_url


def _sqlite_pragmas(dbapi_connection, _record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute(f"PRAGMA busy_timeout={SQLITE_BUSY_TIMEOUT_MS}")
    cursor.close()


def get_engine() -> AsyncEngine:
    """Process-wide engine, built from settings on first use."""
    global _engine
    if _engine is None:
        settings = get_settings()
        db_url = _async_url(settings.database_url)
        _engine = create_async_engine(
            db_url,
            echo=settings.debug and not settings.is_production,
        )
        if _file_database(db_url) is not None:
            event.listen(_engine.sync_engine, "connect", _sqlite_pragmas)
        logger.debug(f"Ledger database: {_engine.url.render_as_string(hide_password=True)}")
    return _engine


def set_engine(engine: Optional[AsyncEngine]) -> None:
    """Swap in an already-built engine (tests use an in-memory one)."""
    global _engine, _session_factory
    _engine = engine
    _session_factory = None


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(
            bind=get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
    return _session_factory


@asynccontextmanager
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """One unit of work: commit on success, roll back on any error."""
    async with get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Create missing tables. Existing databases are upgraded with alembic."""
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None
