"""Tests for the dynamic price calculator."""

from __future__ import annotations

import datetime
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from sliding_pricing.db.session import get_sessionmaker
from sliding_pricing.schemas.pricing import RuleData, SeasonData, TimeslotData
from sliding_pricing.services import (
    price_calculator,
    rule_service,
    season_service,
    timeslot_service,
)
from sliding_pricing.services.option_service import StaticPricingConfig
from sliding_pricing.services.price_calculator import (
    PriceCalculator,
    format_price_display,
)

MONDAY = datetime.date(2025, 6, 2)


async def _add_season(session, value: str = "-10", **overrides) -> int:
    payload = {
        "name": "Summer",
        "start_date": datetime.date(2025, 6, 1),
        "end_date": datetime.date(2025, 8, 31),
        "adjustment_type": "percentage",
        "adjustment_value": value,
    }
    payload.update(overrides)
    result = await season_service.save_season(session, SeasonData(**payload))
    assert result.ok
    return result.id


async def _add_timeslot(session, value: str = "-15", **overrides) -> int:
    payload = {
        "name": "Morning",
        "start_time": "09:00",
        "end_time": "12:00",
        "adjustment_type": "percentage",
        "adjustment_value": value,
    }
    payload.update(overrides)
    result = await timeslot_service.save_timeslot(session, TimeslotData(**payload))
    assert result.ok
    return result.id


async def _add_rule(session, value: str, **overrides) -> int:
    payload = {
        "name": "Rule",
        "rule_type": "custom",
        "adjustment_type": "percentage",
        "adjustment_value": value,
    }
    payload.update(overrides)
    result = await rule_service.save_rule(session, RuleData(**payload))
    assert result.ok
    return result.id


def _calculator(session, bookings, clock, **options) -> PriceCalculator:
    return PriceCalculator(
        session,
        bookings=bookings,
        config=StaticPricingConfig(**options),
        clock=clock,
    )


@pytest.mark.asyncio
async def test_no_rules_returns_base_price(reset_database, db_url: str, bookings, clock) -> None:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        calculator = _calculator(session, bookings, clock)
        breakdown = await calculator.calculate_breakdown("100", 1, 0, MONDAY, "10:00")
        assert breakdown.final_price == Decimal("100.00")
        assert breakdown.total_saving == Decimal("0.00")
        assert breakdown.discount_pct == Decimal("0.0")
        assert dict(breakdown.adjustments) == {}
        assert await calculator.calculate_price(Decimal("42.50"), 1, 0, MONDAY, "10:00") == Decimal("42.50")


@pytest.mark.asyncio
async def test_stacking_applies_every_source(reset_database, db_url: str, bookings, clock) -> None:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        await _add_season(session)
        await _add_timeslot(session)
        calculator = _calculator(session, bookings, clock, stack_rules=True)

        breakdown = await calculator.calculate_breakdown("100.00", 1, 0, MONDAY, "10:00")
        assert breakdown.final_price == Decimal("76.50")
        assert list(breakdown.adjustments) == ["season", "timeslot"]
        assert breakdown.adjustments["season"].amount == Decimal("-10")
        assert breakdown.adjustments["timeslot"].amount == Decimal("-13.5")

        data = breakdown.to_dict()
        assert data["final_price"] == "76.50"
        assert data["total_saving"] == "23.50"
        assert data["discount_pct"] == "23.5"
        assert data["date"] == "2025-06-02"
        assert data["adjustments"]["timeslot"]["name"] == "Morning"


@pytest.mark.asyncio
async def test_without_stacking_only_first_source_applies(
    reset_database, db_url: str, bookings, clock
) -> None:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        await _add_season(session)
        await _add_timeslot(session)
        await _add_rule(session, "-5")
        calculator = _calculator(session, bookings, clock, stack_rules=False)

        breakdown = await calculator.calculate_breakdown("100.00", 1, 0, MONDAY, "10:00")
        assert breakdown.final_price == Decimal("90.00")
        assert list(breakdown.adjustments) == ["season"]


@pytest.mark.asyncio
async def test_unstacked_rules_are_still_evaluated(
    reset_database, db_url: str, bookings, clock
) -> None:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        await _add_season(session)
        await _add_rule(
            session,
            "-20",
            conditions=[{"type": "booking_count", "operator": "<", "value": "3"}],
        )
        calculator = _calculator(session, bookings, clock, stack_rules=False)

        breakdown = await calculator.calculate_breakdown("100.00", 1, 0, MONDAY, "10:00")
        assert breakdown.final_price == Decimal("90.00")
        assert "rule_1" not in breakdown.adjustments
        assert bookings.calls == [(1, MONDAY)]


@pytest.mark.asyncio
async def test_rules_apply_in_priority_order(reset_database, db_url: str, bookings, clock) -> None:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        later = await _add_rule(session, "10", name="Fee", adjustment_type="fixed", priority=5)
        first = await _add_rule(session, "-50", name="Half", priority=1)
        calculator = _calculator(session, bookings, clock, max_discount_percent=100)

        breakdown = await calculator.calculate_breakdown("80", 1, 0, MONDAY, "10:00")
        assert list(breakdown.adjustments) == [f"rule_{first}", f"rule_{later}"]
        assert breakdown.final_price == Decimal("50.00")


@pytest.mark.asyncio
async def test_set_adjustment(reset_database, db_url: str, bookings, clock) -> None:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        rule_id = await _add_rule(session, "80", adjustment_type="set")
        calculator = _calculator(session, bookings, clock)

        breakdown = await calculator.calculate_breakdown("100.00", 1, 0, MONDAY, "10:00")
        assert breakdown.final_price == Decimal("80.00")
        assert breakdown.adjustments[f"rule_{rule_id}"].amount == Decimal("-20")


@pytest.mark.asyncio
async def test_max_discount_floor(reset_database, db_url: str, bookings, clock) -> None:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        rule_id = await _add_rule(session, "-70")
        calculator = _calculator(session, bookings, clock, max_discount_percent=50)

        breakdown = await calculator.calculate_breakdown("100.00", 1, 0, MONDAY, "10:00")
        assert breakdown.final_price == Decimal("50.00")
        assert breakdown.total_saving == Decimal("50.00")
        assert breakdown.discount_pct == Decimal("50.0")
        # The recorded line keeps its unfloored amount.
        assert breakdown.adjustments[f"rule_{rule_id}"].amount == Decimal("-70")


@pytest.mark.asyncio
async def test_price_never_negative(reset_database, db_url: str, bookings, clock) -> None:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        await _add_rule(session, "-150", adjustment_type="fixed")
        calculator = _calculator(session, bookings, clock, max_discount_percent=100)

        breakdown = await calculator.calculate_breakdown("100.00", 1, 0, MONDAY, "10:00")
        assert breakdown.final_price == Decimal("0.00")
        assert breakdown.discount_pct == Decimal("100.0")


@pytest.mark.asyncio
async def test_out_of_range_max_discount_is_clamped(
    reset_database, db_url: str, bookings, clock
) -> None:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        await _add_rule(session, "-150", adjustment_type="fixed")
        calculator = _calculator(session, bookings, clock, max_discount_percent=250)

        assert await calculator.calculate_price("100", 1, 0, MONDAY, "10:00") == Decimal("0.00")


@pytest.mark.asyncio
async def test_rounding_half_up(reset_database, db_url: str, bookings, clock) -> None:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        await _add_rule(session, "-15")
        calculator = _calculator(session, bookings, clock)

        breakdown = await calculator.calculate_breakdown("19.99", 1, 0, MONDAY, "10:00")
        # 19.99 * 0.85 = 16.9915
        assert breakdown.final_price == Decimal("16.99")
        assert breakdown.discount_pct == Decimal("15.0")

        zero = await calculator.calculate_breakdown("0", 1, 0, MONDAY, "10:00")
        assert zero.discount_pct == Decimal("0.0")


@pytest.mark.asyncio
async def test_calculation_is_idempotent(reset_database, db_url: str, bookings, clock) -> None:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        await _add_season(session)
        await _add_timeslot(session, "12.5")
        await _add_rule(session, "-3", adjustment_type="fixed")
        calculator = _calculator(session, bookings, clock)

        first = await calculator.calculate_breakdown("64.90", 1, 0, MONDAY, "11:00")
        second = await calculator.calculate_breakdown("64.90", 1, 0, MONDAY, "11:00")
        assert first.to_dict() == second.to_dict()


@pytest.mark.asyncio
async def test_defaults_date_and_time_from_clock(
    reset_database, db_url: str, bookings, clock
) -> None:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        calculator = _calculator(session, bookings, clock)
        breakdown = await calculator.calculate_breakdown("10", 1)
        assert breakdown.date == datetime.date(2025, 6, 1)
        assert breakdown.time == "12:00"

        padded = await calculator.calculate_breakdown("10", 1, 0, MONDAY, "9:30")
        assert padded.time == "09:30"


@pytest.mark.asyncio
@pytest.mark.parametrize("raw", ["inf", "1e400", "nan"])
async def test_non_numeric_condition_values_do_not_break_pricing(
    reset_database, db_url: str, bookings, clock, raw: str
) -> None:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        await _add_rule(
            session,
            "-10",
            conditions=[{"type": "booking_count", "operator": "greater", "value": raw}],
        )
        calculator = _calculator(session, bookings, clock)

        breakdown = await calculator.calculate_breakdown("100", 1, 0, MONDAY, "10:00")
        assert breakdown.final_price == Decimal("100.00")
        bookings.count = 2
        assert await calculator.calculate_price("100", 1, 0, MONDAY, "10:00") == Decimal("90.00")


@pytest.mark.asyncio
async def test_store_failure_returns_base_price(
    reset_database, db_url: str, bookings, clock, monkeypatch
) -> None:
    async def _broken(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    monkeypatch.setattr(price_calculator, "find_best_season", _broken)
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        await _add_rule(session, "-10")
        calculator = _calculator(session, bookings, clock)

        breakdown = await calculator.calculate_breakdown("100", 1, 0, MONDAY, "10:00")
        assert breakdown.final_price == Decimal("100.00")
        assert dict(breakdown.adjustments) == {}
        assert await calculator.get_pricing_info(1, MONDAY, "10:00") == []


@pytest.mark.asyncio
async def test_badges(reset_database, db_url: str, bookings, clock) -> None:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        await _add_season(session, "5")
        await _add_timeslot(session, "20", name="Rush", start_time="17:00", end_time="20:00")
        await _add_timeslot(session, "-10", name="Quiet", start_time="06:00", end_time="08:00")
        calculator = _calculator(session, bookings, clock)

        badges = await calculator.get_pricing_info(1, datetime.date(2025, 6, 20), "18:00")
        assert [(badge.type, badge.label) for badge in badges] == [
            ("peak", "Peak Hours"),
            ("season", "Summer"),
            ("early-bird", "Early Bird"),
        ]

        badges = await calculator.get_pricing_info(1, MONDAY, "07:00")
        assert [badge.type for badge in badges] == ["off-peak", "season", "last-minute"]

        badges = await calculator.get_pricing_info(1, datetime.date(2025, 6, 5), "12:30")
        assert [badge.type for badge in badges] == ["season"]

        badges = await calculator.get_pricing_info(1, datetime.date(2025, 5, 30), "12:30")
        assert badges == []


def test_format_price_display() -> None:
    display = format_price_display(Decimal("80.00"), Decimal("100.00"))
    assert display.original_price == Decimal("100.00")
    assert display.savings == Decimal("20.00")
    assert display.savings_pct == 20

    hidden = format_price_display(
        Decimal("80.00"), Decimal("100.00"), show_original=False, show_savings=False
    )
    assert hidden.original_price is None
    assert hidden.savings is None

    surcharge = format_price_display(Decimal("120.00"), Decimal("100.00"))
    assert surcharge.original_price is None
    assert format_price_display(Decimal("5"), None).price == Decimal("5")


@pytest.mark.asyncio
async def test_price_display_uses_options(reset_database, db_url: str, bookings, clock) -> None:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        calculator = _calculator(session, bookings, clock, show_savings=False)
        display = await calculator.price_display(Decimal("45"), Decimal("60"))
        assert display.original_price == Decimal("60")
        assert display.savings is None
