"""Pricing-related API endpoints."""

from __future__ import annotations

import datetime
from decimal import Decimal
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from sliding_pricing.api import deps
from sliding_pricing.core.config import get_settings
from sliding_pricing.schemas.pricing import (
    BadgeRead,
    PriceBreakdownRead,
    PricingHistoryRead,
)
from sliding_pricing.services import history_service
from sliding_pricing.services.price_calculator import PriceCalculator
from sliding_pricing.services.quote_cache import QuoteCache

router = APIRouter(prefix="/pricing", tags=["pricing"])

quote_cache = QuoteCache(ttl_seconds=get_settings().pricing_quote_cache_seconds)

_TIME_PATTERN = r"^\d{1,2}:\d{2}(:\d{2})?$"


@router.get("/price", response_model=PriceBreakdownRead, summary="Quote a dynamic price")
async def get_price(
    calculator: Annotated[PriceCalculator, Depends(deps.get_price_calculator)],
    service_id: Annotated[int, Query(ge=0)],
    base_price: Annotated[Decimal, Query(ge=0)],
    staff_id: Annotated[int, Query(ge=0)] = 0,
    date: datetime.date | None = None,
    time: Annotated[str | None, Query(pattern=_TIME_PATTERN)] = None,
) -> PriceBreakdownRead:
    breakdown = await quote_cache.get_breakdown(
        calculator, base_price, service_id, staff_id, date, time
    )
    return PriceBreakdownRead.model_validate(breakdown.to_dict())


@router.get("/badges", response_model=list[BadgeRead], summary="Pricing badges")
async def get_badges(
    calculator: Annotated[PriceCalculator, Depends(deps.get_price_calculator)],
    service_id: Annotated[int, Query(ge=0)],
    date: datetime.date | None = None,
    time: Annotated[str | None, Query(pattern=_TIME_PATTERN)] = None,
) -> list[BadgeRead]:
    badges = await calculator.get_pricing_info(service_id, date, time)
    return [BadgeRead.model_validate(badge) for badge in badges]


@router.get(
    "/history/{booking_id}",
    response_model=list[PricingHistoryRead],
    summary="Recorded prices for a booking",
)
async def get_booking_history(
    booking_id: int,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> list[PricingHistoryRead]:
    entries = await history_service.list_history(session, booking_id)
    return [PricingHistoryRead.model_validate(entry) for entry in entries]
