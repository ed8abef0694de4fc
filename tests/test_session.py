"""Tests for the engine and session factory."""

from __future__ import annotations

import pytest
from sqlalchemy import text

from sliding_pricing.db.session import dispose_engine, get_session, get_sessionmaker

pytestmark = pytest.mark.asyncio


async def test_sessionmaker_is_reused_until_disposed(reset_database, db_url: str) -> None:
    sessionmaker = get_sessionmaker(db_url)
    assert get_sessionmaker(db_url) is sessionmaker
    # Settings point at the same database, so the default lookup shares it.
    assert get_sessionmaker() is sessionmaker

    await dispose_engine()
    assert get_sessionmaker(db_url) is not sessionmaker


async def test_get_session_yields_working_session(reset_database) -> None:
    async for session in get_session():
        result = await session.execute(text("SELECT 1"))
        assert result.scalar_one() == 1
