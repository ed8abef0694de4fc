"""Booking aggregates used by demand-sensitive rule conditions."""

from __future__ import annotations

import datetime
from typing import Protocol

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from sliding_pricing.models.booking import Booking, BookingStatus


class BookingStats(Protocol):
    """Source of booking counts and remaining capacity."""

    async def count_bookings(self, service_id: int, date: datetime.date) -> int: ...

    async def availability_percent(
        self, service_id: int, date: datetime.date
    ) -> float: ...


class SqlBookingStats:
    """Answer booking questions from the ``bookings`` table."""

    def __init__(self, session: AsyncSession, *, daily_capacity: int = 10) -> None:
        self._session = session
        self._capacity = max(1, daily_capacity)

    async def count_bookings(self, service_id: int, date: datetime.date) -> int:
        """Count bookings for the service on ``date`` that are not cancelled."""
        stmt = select(func.count(Booking.id)).where(
            Booking.service_id == service_id,
            Booking.booking_date == date,
            Booking.status != BookingStatus.CANCELLED,
        )
        result = await self._session.execute(stmt)
        return int(result.scalar_one())

    async def availability_percent(
        self, service_id: int, date: datetime.date
    ) -> float:
        """Return remaining capacity for the day as a percentage (100 = open)."""
        booked = await self.count_bookings(service_id, date)
        remaining = max(0, self._capacity - booked)
        return remaining / self._capacity * 100
