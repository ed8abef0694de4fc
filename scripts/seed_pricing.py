"""Seed a baseline set of seasons, timeslots and pricing rules."""

from __future__ import annotations

import asyncio
from datetime import date
from decimal import Decimal

from sliding_pricing.db.session import get_sessionmaker
from sliding_pricing.models import AdjustmentType, DayOfWeek, RuleType
from sliding_pricing.schemas.pricing import (
    ConditionData,
    RuleData,
    SeasonData,
    TimeslotData,
)
from sliding_pricing.services import rule_service, season_service, timeslot_service


def _seed_seasons(today: date) -> list[SeasonData]:
    return [
        SeasonData(
            name="Summer Peak",
            start_date=date(today.year, 6, 15),
            end_date=date(today.year, 8, 31),
            adjustment_type=AdjustmentType.PERCENTAGE,
            adjustment_value=Decimal("15"),
            recurs_yearly=True,
        ),
        SeasonData(
            name="Holiday Season",
            start_date=date(today.year, 12, 15),
            end_date=date(today.year + 1, 1, 15),
            adjustment_type=AdjustmentType.PERCENTAGE,
            adjustment_value=Decimal("20"),
            recurs_yearly=True,
        ),
    ]


def _seed_timeslots() -> list[TimeslotData]:
    return [
        TimeslotData(
            name="Weekday Mornings",
            day_of_week=DayOfWeek.WEEKDAY,
            start_time="06:00",
            end_time="09:59",
            adjustment_value=Decimal("-10"),
        ),
        TimeslotData(
            name="Weekend Peak",
            day_of_week=DayOfWeek.WEEKEND,
            start_time="10:00",
            end_time="16:00",
            adjustment_value=Decimal("20"),
        ),
    ]


def _seed_rules() -> list[RuleData]:
    return [
        RuleData(
            name="Early Bird 14 Days",
            rule_type=RuleType.EARLY_BIRD,
            priority=10,
            adjustment_value=Decimal("-10"),
            conditions=[
                ConditionData(type="days_before", operator="greater_equals", value="14")
            ],
        ),
        RuleData(
            name="Last Minute",
            rule_type=RuleType.LAST_MINUTE,
            priority=20,
            adjustment_value=Decimal("-15"),
            conditions=[
                ConditionData(type="days_before", operator="less_equals", value="1"),
                ConditionData(type="availability", operator="greater", value="50"),
            ],
        ),
        RuleData(
            name="High Demand",
            rule_type=RuleType.DEMAND_BASED,
            priority=30,
            adjustment_value=Decimal("10"),
            conditions=[
                ConditionData(type="availability", operator="less", value="20")
            ],
        ),
    ]


async def seed_pricing() -> None:
    sessionmaker = get_sessionmaker()
    async with sessionmaker() as session:
        existing = {
            "season": {s.name for s in await season_service.list_seasons(session)},
            "timeslot": {t.name for t in await timeslot_service.list_timeslots(session)},
            "rule": {r.name for r in await rule_service.list_rules(session)},
        }
        created = 0

        for season in _seed_seasons(date.today()):
            if season.name not in existing["season"]:
                created += (await season_service.save_season(session, season)).ok
        for timeslot in _seed_timeslots():
            if timeslot.name not in existing["timeslot"]:
                created += (await timeslot_service.save_timeslot(session, timeslot)).ok
        for rule in _seed_rules():
            if rule.name not in existing["rule"]:
                created += (await rule_service.save_rule(session, rule)).ok

        print(f"Seeded {created} pricing record(s).")


def main() -> None:
    asyncio.run(seed_pricing())


if __name__ == "__main__":
    main()
