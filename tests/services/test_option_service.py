"""Tests for pricing options, booking statistics and calculator wiring."""

from __future__ import annotations

import datetime
from decimal import Decimal

import pytest

from sliding_pricing.core.config import get_settings
from sliding_pricing.db.session import get_sessionmaker
from sliding_pricing.models import Booking, BookingStatus
from sliding_pricing.schemas.pricing import RuleData
from sliding_pricing.services import option_service, pricing_events, rule_service
from sliding_pricing.services.booking_stats import SqlBookingStats
from sliding_pricing.services.option_service import DatabasePricingConfig
from sliding_pricing.services.price_calculator import create_calculator

DAY = datetime.date(2025, 6, 12)


def _booking(service_id: int = 1, date: datetime.date = DAY, **overrides) -> Booking:
    payload = {
        "service_id": service_id,
        "booking_date": date,
        "booking_time": "10:00",
        "base_price": Decimal("50.00"),
    }
    payload.update(overrides)
    return Booking(**payload)


def test_parse_helpers() -> None:
    assert option_service.parse_bool("Yes", False) is True
    assert option_service.parse_bool("off", True) is False
    assert option_service.parse_bool(None, True) is True
    assert option_service.parse_int("35", 50) == 35
    assert option_service.parse_int("12.9", 50) == 12
    assert option_service.parse_int("lots", 50) == 50
    assert option_service.parse_int("", 50) == 50


def test_default_options_follow_settings(monkeypatch) -> None:
    monkeypatch.setenv("PRICING_STACK_RULES", "false")
    monkeypatch.setenv("PRICING_MAX_DISCOUNT_PERCENT", "30")
    get_settings.cache_clear()
    try:
        defaults = option_service.default_options()
    finally:
        monkeypatch.undo()
        get_settings.cache_clear()
    assert defaults[option_service.STACK_RULES] == "no"
    assert defaults[option_service.MAX_DISCOUNT_PERCENT] == "30"
    assert defaults[option_service.DAILY_CAPACITY] == "10"


@pytest.mark.asyncio
async def test_stored_options_override_defaults(reset_database, db_url: str) -> None:
    events: list[pricing_events.PricingChanged] = []
    pricing_events.subscribe(events.append)
    sessionmaker = get_sessionmaker(db_url)
    try:
        async with sessionmaker() as session:
            config = DatabasePricingConfig(session)
            assert await config.get_bool(option_service.STACK_RULES, False) is True
            assert await config.get_int(option_service.MAX_DISCOUNT_PERCENT, 0) == 50

            await option_service.set_option(session, option_service.STACK_RULES, False)
            await option_service.set_option(
                session, option_service.MAX_DISCOUNT_PERCENT, 25
            )
            await option_service.set_option(
                session, option_service.MAX_DISCOUNT_PERCENT, 35
            )

            assert await option_service.get_option(session, "stack_rules") == "no"
            assert await config.get_bool(option_service.STACK_RULES, True) is False
            assert await config.get_int(option_service.MAX_DISCOUNT_PERCENT, 0) == 35
    finally:
        pricing_events.unsubscribe(events.append)

    assert [event.entity_id for event in events] == [
        "stack_rules",
        "max_discount_percent",
        "max_discount_percent",
    ]
    assert {event.entity for event in events} == {"option"}


@pytest.mark.asyncio
async def test_booking_stats_ignore_cancelled(reset_database, db_url: str) -> None:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        session.add_all(
            [
                _booking(),
                _booking(status=BookingStatus.COMPLETED),
                _booking(status=BookingStatus.CANCELLED),
                _booking(service_id=2),
                _booking(date=DAY + datetime.timedelta(days=1)),
            ]
        )
        await session.commit()

        stats = SqlBookingStats(session, daily_capacity=4)
        assert await stats.count_bookings(1, DAY) == 2
        assert await stats.availability_percent(1, DAY) == 50.0
        assert await stats.availability_percent(3, DAY) == 100.0

        full = SqlBookingStats(session, daily_capacity=1)
        assert await full.availability_percent(1, DAY) == 0.0


@pytest.mark.asyncio
async def test_create_calculator_uses_stored_capacity(
    reset_database, db_url: str, clock
) -> None:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        await option_service.set_option(session, option_service.DAILY_CAPACITY, 4)
        await rule_service.save_rule(
            session,
            RuleData(
                name="Half full",
                rule_type="demand_based",
                adjustment_type="percentage",
                adjustment_value="10",
                conditions=[{"type": "availability", "operator": "<=", "value": "50"}],
            ),
        )
        session.add_all([_booking(), _booking()])
        await session.commit()

        calculator = await create_calculator(session, clock=clock)
        price = await calculator.calculate_price("100", 1, 0, DAY, "10:00")
        assert price == Decimal("110.00")
        assert await calculator.calculate_price("100", 2, 0, DAY, "10:00") == Decimal(
            "100.00"
        )
