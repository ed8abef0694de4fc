"""Season storage and current-season lookup."""

from __future__ import annotations

import datetime
import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from sliding_pricing.models.pricing import PricingSeason
from sliding_pricing.schemas.pricing import SeasonData
from sliding_pricing.services import pricing_events
from sliding_pricing.services.pricing_common import (
    SaveError,
    SaveResult,
    applies_to_service,
    best_by_magnitude,
    normalize_ids,
)

logger = logging.getLogger(__name__)


async def list_seasons(
    session: AsyncSession, *, active_only: bool = False
) -> list[PricingSeason]:
    """Return seasons ordered by start date."""
    stmt = select(PricingSeason).order_by(PricingSeason.start_date, PricingSeason.id)
    if active_only:
        stmt = stmt.where(PricingSeason.is_active.is_(True))
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def get_season(session: AsyncSession, season_id: int) -> PricingSeason | None:
    return await session.get(PricingSeason, season_id)


async def save_season(session: AsyncSession, data: SeasonData) -> SaveResult:
    """Insert a season when ``data.id`` is empty, otherwise update it."""
    if not data.name.strip():
        return SaveResult.failed(SaveError.MISSING_NAME)
    if data.start_date is None or data.end_date is None:
        return SaveResult.failed(SaveError.MISSING_DATES)

    try:
        if data.id:
            season = await session.get(PricingSeason, data.id)
            if season is None:
                return SaveResult.failed(
                    SaveError.PERSISTENCE_ERROR, f"Season {data.id} not found"
                )
        else:
            season = PricingSeason()
            session.add(season)

        season.name = data.name.strip()
        season.start_date = data.start_date
        season.end_date = data.end_date
        season.adjustment_type = data.adjustment_type.value
        season.adjustment_value = data.adjustment_value
        season.applies_to = data.applies_to
        season.service_ids = normalize_ids(data.service_ids)
        season.recurs_yearly = data.recurs_yearly
        season.is_active = data.is_active
        await session.commit()
    except SQLAlchemyError:
        await session.rollback()
        logger.exception("Failed to save season %r", data.name)
        return SaveResult.failed(SaveError.PERSISTENCE_ERROR)

    action = "updated" if data.id else "created"
    pricing_events.publish(pricing_events.PricingChanged("season", season.id, action))
    return SaveResult(id=season.id)


async def delete_season(session: AsyncSession, season_id: int) -> bool:
    """Remove a season; ``False`` when it does not exist."""
    season = await session.get(PricingSeason, season_id)
    if season is None:
        return False
    await session.delete(season)
    await session.commit()
    pricing_events.publish(pricing_events.PricingChanged("season", season_id, "deleted"))
    return True


async def toggle_season(session: AsyncSession, season_id: int) -> bool | None:
    """Flip ``is_active`` and return the new state, or ``None`` if missing."""
    season = await session.get(PricingSeason, season_id)
    if season is None:
        return None
    season.is_active = not season.is_active
    await session.commit()
    pricing_events.publish(pricing_events.PricingChanged("season", season_id, "toggled"))
    return season.is_active


def season_covers(season: PricingSeason, date: datetime.date) -> bool:
    """Whether ``date`` falls inside the season.

    Yearly seasons compare month-day only; a start later in the year than the
    end wraps over New Year (Dec 15 - Jan 15).
    """
    if not season.recurs_yearly:
        return season.start_date <= date <= season.end_date

    day = date.strftime("%m-%d")
    start = season.start_date.strftime("%m-%d")
    end = season.end_date.strftime("%m-%d")
    if start <= end:
        return start <= day <= end
    return day >= start or day <= end


async def find_best_season(
    session: AsyncSession, service_id: int, date: datetime.date
) -> PricingSeason | None:
    """Return the current season with the largest adjustment magnitude."""
    seasons = await list_seasons(session, active_only=True)
    seasons.sort(key=lambda season: season.id)
    candidates = [
        season
        for season in seasons
        if season_covers(season, date)
        and applies_to_service(season.applies_to, season.service_ids, service_id)
    ]
    return best_by_magnitude(candidates)
