"""Test fixtures for the sliding pricing service."""
from __future__ import annotations

import datetime
import os
from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")

from sliding_pricing.api.v1.pricing import quote_cache
from sliding_pricing.core.config import get_settings
from sliding_pricing.db.base import Base
from sliding_pricing.db.session import dispose_engine
from sliding_pricing.main import app
import sliding_pricing.models  # noqa: F401  (registers tables on Base.metadata)

FIXED_NOW = datetime.datetime(2025, 6, 1, 12, 0, tzinfo=datetime.UTC)


class StubBookings:
    """Booking collaborator returning canned numbers."""

    def __init__(self, count: int = 0, availability: float = 100.0) -> None:
        self.count = count
        self.availability = availability
        self.calls: list[tuple[int, datetime.date]] = []

    async def count_bookings(self, service_id: int, date: datetime.date) -> int:
        self.calls.append((service_id, date))
        return self.count

    async def availability_percent(
        self, service_id: int, date: datetime.date
    ) -> float:
        self.calls.append((service_id, date))
        return self.availability


def fixed_clock() -> datetime.datetime:
    return FIXED_NOW


@pytest.fixture(scope="session")
def db_url(tmp_path_factory: pytest.TempPathFactory) -> str:
    """Provide a temporary SQLite database URL for the test session."""
    db_path = tmp_path_factory.mktemp("db") / "test.db"
    return f"sqlite+aiosqlite:///{db_path}"


@pytest_asyncio.fixture()
async def reset_database(db_url: str) -> AsyncIterator[None]:
    """Drop and recreate the database schema for an isolated test."""
    os.environ["DATABASE_URL"] = db_url
    get_settings.cache_clear()
    get_settings()
    quote_cache.clear()

    await dispose_engine()
    engine = create_async_engine(db_url, future=True)
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.drop_all)
        await connection.run_sync(Base.metadata.create_all)
    await engine.dispose()
    yield
    quote_cache.clear()
    await dispose_engine()


@pytest_asyncio.fixture()
async def client(reset_database: None) -> AsyncIterator[AsyncClient]:
    """Yield an async HTTP client bound to the application."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http:
        yield http


@pytest.fixture()
def bookings() -> StubBookings:
    """Stub booking collaborator; adjust ``count``/``availability`` per test."""
    return StubBookings()


@pytest.fixture()
def clock():
    """Clock frozen at 2025-06-01 12:00 UTC."""
    return fixed_clock
