"""Timeslot storage and peak/off-peak band lookup."""

from __future__ import annotations

import datetime
import logging
import re

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from sliding_pricing.models.pricing import DayOfWeek, PricingTimeslot
from sliding_pricing.schemas.pricing import TimeslotData
from sliding_pricing.services import pricing_events
from sliding_pricing.services.condition_service import weekday_name
from sliding_pricing.services.pricing_common import (
    SaveError,
    SaveResult,
    applies_to_service,
    best_by_magnitude,
    normalize_ids,
)

logger = logging.getLogger(__name__)

_TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})(?::\d{2})?$")

_WEEKDAYS = {"monday", "tuesday", "wednesday", "thursday", "friday"}
_WEEKEND = {"saturday", "sunday"}


def normalize_time(value: str | None) -> str | None:
    """Return ``HH:MM`` for inputs like ``9:00`` or ``09:00:00``; ``None`` if invalid."""
    if not value:
        return None
    match = _TIME_PATTERN.match(value.strip())
    if match is None:
        return None
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        return None
    return f"{hour:02d}:{minute:02d}"


def get_day_options() -> dict[str, str]:
    """Selectable day values with display labels."""
    return {day.value: day.value.capitalize() for day in DayOfWeek} | {
        DayOfWeek.ALL.value: "All Days",
        DayOfWeek.WEEKDAY.value: "Weekdays",
        DayOfWeek.WEEKEND.value: "Weekends",
    }


async def list_timeslots(
    session: AsyncSession, *, active_only: bool = False
) -> list[PricingTimeslot]:
    """Return timeslots ordered by start time."""
    stmt = select(PricingTimeslot).order_by(
        PricingTimeslot.start_time, PricingTimeslot.id
    )
    if active_only:
        stmt = stmt.where(PricingTimeslot.is_active.is_(True))
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def get_timeslot(
    session: AsyncSession, timeslot_id: int
) -> PricingTimeslot | None:
    return await session.get(PricingTimeslot, timeslot_id)


async def save_timeslot(session: AsyncSession, data: TimeslotData) -> SaveResult:
    """Insert a timeslot when ``data.id`` is empty, otherwise update it."""
    if not data.name.strip():
        return SaveResult.failed(SaveError.MISSING_NAME)
    start_time = normalize_time(data.start_time)
    end_time = normalize_time(data.end_time)
    if start_time is None or end_time is None:
        return SaveResult.failed(SaveError.MISSING_TIMES)

    try:
        if data.id:
            timeslot = await session.get(PricingTimeslot, data.id)
            if timeslot is None:
                return SaveResult.failed(
                    SaveError.PERSISTENCE_ERROR, f"Timeslot {data.id} not found"
                )
        else:
            timeslot = PricingTimeslot()
            session.add(timeslot)

        timeslot.name = data.name.strip()
        timeslot.day_of_week = data.day_of_week
        timeslot.start_time = start_time
        timeslot.end_time = end_time
        timeslot.adjustment_type = data.adjustment_type.value
        timeslot.adjustment_value = data.adjustment_value
        timeslot.applies_to = data.applies_to
        timeslot.service_ids = normalize_ids(data.service_ids)
        timeslot.is_active = data.is_active
        await session.commit()
    except SQLAlchemyError:
        await session.rollback()
        logger.exception("Failed to save timeslot %r", data.name)
        return SaveResult.failed(SaveError.PERSISTENCE_ERROR)

    action = "updated" if data.id else "created"
    pricing_events.publish(
        pricing_events.PricingChanged("timeslot", timeslot.id, action)
    )
    return SaveResult(id=timeslot.id)


async def delete_timeslot(session: AsyncSession, timeslot_id: int) -> bool:
    """Remove a timeslot; ``False`` when it does not exist."""
    timeslot = await session.get(PricingTimeslot, timeslot_id)
    if timeslot is None:
        return False
    await session.delete(timeslot)
    await session.commit()
    pricing_events.publish(
        pricing_events.PricingChanged("timeslot", timeslot_id, "deleted")
    )
    return True


async def toggle_timeslot(session: AsyncSession, timeslot_id: int) -> bool | None:
    """Flip ``is_active`` and return the new state, or ``None`` if missing."""
    timeslot = await session.get(PricingTimeslot, timeslot_id)
    if timeslot is None:
        return None
    timeslot.is_active = not timeslot.is_active
    await session.commit()
    pricing_events.publish(
        pricing_events.PricingChanged("timeslot", timeslot_id, "toggled")
    )
    return timeslot.is_active


def matches_day(day_of_week: DayOfWeek | str, date: datetime.date) -> bool:
    day = DayOfWeek(day_of_week)
    name = weekday_name(date)
    if day is DayOfWeek.ALL:
        return True
    if day is DayOfWeek.WEEKDAY:
        return name in _WEEKDAYS
    if day is DayOfWeek.WEEKEND:
        return name in _WEEKEND
    return day.value == name


def timeslot_covers(timeslot: PricingTimeslot, date: datetime.date, time: str) -> bool:
    """Day matches and ``time`` lies in [start_time, end_time], both ends inclusive."""
    return matches_day(timeslot.day_of_week, date) and (
        timeslot.start_time <= time <= timeslot.end_time
    )


async def find_best_timeslot(
    session: AsyncSession, service_id: int, date: datetime.date, time: str
) -> PricingTimeslot | None:
    """Return the matching timeslot with the largest adjustment magnitude."""
    timeslots = await list_timeslots(session, active_only=True)
    timeslots.sort(key=lambda timeslot: timeslot.id)
    candidates = [
        timeslot
        for timeslot in timeslots
        if timeslot_covers(timeslot, date, time)
        and applies_to_service(timeslot.applies_to, timeslot.service_ids, service_id)
    ]
    return best_by_magnitude(candidates)
