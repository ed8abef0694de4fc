"""Async engine and session factory for the pricing database."""

from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from sliding_pricing.core.config import get_settings


@dataclass(slots=True)
class _Database:
    url: str
    engine: AsyncEngine
    sessionmaker: async_sessionmaker[AsyncSession]


_database: _Database | None = None


def get_sessionmaker(
    database_url: str | None = None,
) -> async_sessionmaker[AsyncSession]:
    """Return the sessionmaker bound to ``database_url`` (default: settings).

    One engine is kept at a time; asking for a different URL replaces it, so
    callers switching databases should ``dispose_engine()`` first.
    """
    global _database
    url = database_url or get_settings().database_url
    if _database is None or _database.url != url:
        engine = create_async_engine(url, future=True)
        _database = _Database(
            url=url,
            engine=engine,
            sessionmaker=async_sessionmaker(engine, expire_on_commit=False),
        )
    return _database.sessionmaker


async def get_session() -> AsyncIterator[AsyncSession]:
    """Yield a session for one unit of work, such as an API request."""
    async with get_sessionmaker()() as session:
        yield session


async def dispose_engine() -> None:
    """Close pooled connections and forget the current engine."""
    global _database
    database, _database = _database, None
    if database is not None:
        await database.engine.dispose()
