"""
Async database engine and connection helpers.

get_connection() is for reads, get_transaction() commits on exit.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

from core.config import DATABASE_URL
from core.tables import metadata

_engine: AsyncEngine | None = None


def _get_async_url() -> str:
    database_url = DATABASE_URL
    if not database_url:
        raise RuntimeError("DATABASE_URL is not set")
    if database_url.startswith("postgresql://"):
        database_url = database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return database_url


def get_engine() -> AsyncEngine:
    global _engine
    if _engine is None:
        _engine = create_async_engine(_get_async_url(), pool_pre_ping=True)
    return _engine


@asynccontextmanager
async def get_connection() -> AsyncIterator[AsyncConnection]:
    async with get_engine().connect() as conn:
        yield conn


@asynccontextmanager
async def get_transaction() -> AsyncIterator[AsyncConnection]:
    async with get_engine().begin() as conn:
        yield conn


async def create_tables() -> None:
    """Create missing tables. Safe to call on every startup."""
    async with get_engine().begin() as conn:
        await conn.run_sync(metadata.create_all)


async def close_engine() -> None:
    global _engine
    if _engine is not None:
        await _engine.dispose()
        _engine = None
