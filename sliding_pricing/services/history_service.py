"""Audit trail of the prices charged for bookings."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sliding_pricing.models.booking import Booking
from sliding_pricing.models.pricing import PricingHistory
from sliding_pricing.services.price_calculator import PriceBreakdown, PriceCalculator

logger = logging.getLogger(__name__)


async def record_history(
    session: AsyncSession, booking_id: int, breakdown: PriceBreakdown
) -> PricingHistory:
    """Persist ``breakdown`` against a booking.

    Each call inserts a new row; callers that need one row per booking must
    avoid recording twice.
    """
    entry = PricingHistory(
        booking_id=booking_id,
        base_price=breakdown.base_price,
        final_price=breakdown.final_price,
        adjustments=breakdown.to_dict()["adjustments"],
        price_date=breakdown.date,
        price_time=breakdown.time,
    )
    session.add(entry)
    await session.commit()
    await session.refresh(entry)
    logger.info(
        "Recorded pricing history for booking %s: %s -> %s",
        booking_id,
        breakdown.base_price,
        breakdown.final_price,
    )
    return entry


async def record_booking_history(
    session: AsyncSession, calculator: PriceCalculator, booking: Booking
) -> PricingHistory:
    """Price a booking as of its slot and store the breakdown."""
    breakdown = await calculator.calculate_breakdown(
        booking.base_price,
        booking.service_id,
        booking.staff_id,
        booking.booking_date,
        booking.booking_time,
    )
    return await record_history(session, booking.id, breakdown)


async def list_history(session: AsyncSession, booking_id: int) -> list[PricingHistory]:
    """Return history rows for a booking, oldest first."""
    result = await session.execute(
        select(PricingHistory)
        .where(PricingHistory.booking_id == booking_id)
        .order_by(PricingHistory.id)
    )
    return list(result.scalars().all())
