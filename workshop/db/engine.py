"""Async SQLAlchemy engine and session factory."""

from __future__ import annotations

from pathlib import Path
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from workshop.config import get_settings

_settings = get_settings()


def use_immediate_transactions(eng: AsyncEngine) -> AsyncEngine:
    """Make every SQLite transaction start with BEGIN IMMEDIATE.

    Concurrent sessions then queue on the write lock instead of failing with
    "database is locked" when a reader tries to upgrade to a writer.
    """

    @event.listens_for(eng.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(eng.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return eng


def _sqlite_file(url: str) -> str | None:
    if not url.startswith("sqlite+aiosqlite:///"):
        return None
    path = url.replace("sqlite+aiosqlite:///", "")
    if not path or path == ":memory:":
        return None
    return path


_db_path = _sqlite_file(_settings.database_url)
if _db_path:
    Path(_db_path).parent.mkdir(parents=True, exist_ok=True)

engine = create_async_engine(_settings.database_url, echo=False)
if _db_path:
    use_immediate_transactions(engine)
async_session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db():
    """FastAPI dependency that yields an async DB session."""
    async with async_session_factory() as session:
        yield session


async def create_all(eng: AsyncEngine | None = None) -> None:
    """Create every table on the given engine (defaults to the app engine)."""
    from workshop.models import Base

    async with (eng or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
