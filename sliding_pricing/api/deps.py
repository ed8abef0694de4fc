"""Common API dependencies."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from sliding_pricing.db.session import get_session
from sliding_pricing.services.price_calculator import PriceCalculator, create_calculator


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide an async database session."""
    async for session in get_session():
        yield session


async def get_price_calculator(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> PriceCalculator:
    """Build a price calculator bound to the request session."""
    return await create_calculator(session)
