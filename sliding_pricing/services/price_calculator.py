"""Dynamic price calculation for bookable services."""

from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from types import MappingProxyType
from typing import Any, Mapping

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from sliding_pricing.core.config import get_settings
from sliding_pricing.services import option_service
from sliding_pricing.services.adjustment_service import apply_adjustment, to_decimal
from sliding_pricing.services.booking_stats import BookingStats, SqlBookingStats
from sliding_pricing.services.condition_service import (
    Clock,
    ConditionEvaluator,
    days_until,
    utc_now,
)
from sliding_pricing.services.option_service import DatabasePricingConfig, PricingConfig
from sliding_pricing.services.rule_service import get_applicable_rules
from sliding_pricing.services.season_service import find_best_season
from sliding_pricing.services.timeslot_service import find_best_timeslot, normalize_time

logger = logging.getLogger(__name__)

MONEY_PLACES = Decimal("0.01")
PERCENT_PLACES = Decimal("0.1")
EARLY_BIRD_DAYS = 14
LAST_MINUTE_DAYS = 1


def _round(value: Decimal, places: Decimal) -> Decimal:
    return value.quantize(places, rounding=ROUND_HALF_UP)


def _to_str(value: Decimal) -> str:
    return f"{_round(value, MONEY_PLACES):.2f}"


@dataclass(frozen=True, slots=True)
class AdjustmentLine:
    """One adjustment recorded in a breakdown."""

    name: str
    type: str
    value: Decimal
    amount: Decimal

    def to_dict(self) -> dict[str, str]:
        return {
            "name": self.name,
            "type": self.type,
            "value": str(self.value),
            "amount": str(self.amount),
        }


@dataclass(frozen=True, slots=True)
class PriceBreakdown:
    """Final price plus every adjustment that contributed to it."""

    base_price: Decimal
    final_price: Decimal
    total_saving: Decimal
    discount_pct: Decimal
    adjustments: Mapping[str, AdjustmentLine]
    date: datetime.date
    time: str

    def to_dict(self) -> dict[str, Any]:
        """Serialize the breakdown to plain types for storage and responses."""
        return {
            "base_price": _to_str(self.base_price),
            "final_price": _to_str(self.final_price),
            "total_saving": _to_str(self.total_saving),
            "discount_pct": str(self.discount_pct),
            "adjustments": {
                key: line.to_dict() for key, line in self.adjustments.items()
            },
            "date": self.date.isoformat(),
            "time": self.time,
        }


@dataclass(frozen=True, slots=True)
class Badge:
    """Advisory label for a quoted price."""

    type: str
    label: str


@dataclass(frozen=True, slots=True)
class PriceDisplay:
    """What to show for a price: optional struck-through original and savings."""

    price: Decimal
    original_price: Decimal | None = None
    savings: Decimal | None = None
    savings_pct: int | None = None


def format_price_display(
    price: Decimal,
    original_price: Decimal | None,
    *,
    show_original: bool = True,
    show_savings: bool = True,
) -> PriceDisplay:
    """Describe how a discounted price should be presented."""
    if original_price is None or original_price <= price:
        return PriceDisplay(price=price)
    savings = original_price - price
    savings_pct = int(_round(savings / original_price * 100, Decimal("1")))
    return PriceDisplay(
        price=price,
        original_price=original_price if show_original else None,
        savings=savings if show_savings else None,
        savings_pct=savings_pct if show_savings else None,
    )


class PriceCalculator:
    """Applies seasons, timeslots and rules to a base price.

    The calculator only reads pricing data; one instance per session.
    """

    def __init__(
        self,
        session: AsyncSession,
        *,
        bookings: BookingStats | None = None,
        config: PricingConfig | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._session = session
        self._config = config or DatabasePricingConfig(session)
        self._bookings = bookings or SqlBookingStats(
            session, daily_capacity=get_settings().pricing_daily_capacity
        )
        self._clock = clock or utc_now
        self._evaluator = ConditionEvaluator(self._bookings, clock=self._clock)

    async def calculate_price(
        self,
        base_price: Decimal | float | int | str,
        service_id: int,
        staff_id: int = 0,
        date: datetime.date | None = None,
        time: str | None = None,
    ) -> Decimal:
        """Return only the final price."""
        breakdown = await self.calculate_breakdown(
            base_price, service_id, staff_id, date, time
        )
        return breakdown.final_price

    async def calculate_breakdown(
        self,
        base_price: Decimal | float | int | str,
        service_id: int,
        staff_id: int = 0,
        date: datetime.date | None = None,
        time: str | None = None,
    ) -> PriceBreakdown:
        """Compute the final price and the adjustments behind it.

        Season, then timeslot, then rules in priority order. With stacking
        off only the first source found is applied; later ones are still
        computed but dropped. The result is floored at the maximum discount
        and at zero; recorded line amounts are not rescaled by the floor.
        """
        date, time = self._resolve_moment(date, time)
        base = to_decimal(base_price)

        try:
            stack = await self._config.get_bool(option_service.STACK_RULES, True)
            max_discount = await self._config.get_int(
                option_service.MAX_DISCOUNT_PERCENT, 50
            )
            season = await find_best_season(self._session, service_id, date)
            timeslot = await find_best_timeslot(self._session, service_id, date, time)
            rules = await get_applicable_rules(
                self._session, self._evaluator, service_id, staff_id, date, time
            )
        except SQLAlchemyError:
            logger.exception(
                "Pricing data unavailable for service %s on %s; using base price",
                service_id,
                date,
            )
            return self._build(base, base, {}, date, time)

        max_discount = min(100, max(0, max_discount))

        sources: list[tuple[str, Any]] = []
        if season is not None:
            sources.append(("season", season))
        if timeslot is not None:
            sources.append(("timeslot", timeslot))
        sources.extend((f"rule_{rule.id}", rule) for rule in rules)

        current = base
        adjustments: dict[str, AdjustmentLine] = {}
        for key, source in sources:
            applied = apply_adjustment(
                current, source.adjustment_type, source.adjustment_value
            )
            if stack or not adjustments:
                current = applied.new_price
                adjustments[key] = AdjustmentLine(
                    name=source.name,
                    type=str(source.adjustment_type),
                    value=to_decimal(source.adjustment_value),
                    amount=applied.amount,
                )

        min_price = base * (1 - Decimal(max_discount) / Decimal("100"))
        if current < min_price:
            current = min_price
        if current < 0:
            current = Decimal("0")

        return self._build(base, current, adjustments, date, time)

    async def get_pricing_info(
        self,
        service_id: int,
        date: datetime.date | None = None,
        time: str | None = None,
    ) -> list[Badge]:
        """Return display badges for a service slot (peak, season, early bird...)."""
        date, time = self._resolve_moment(date, time)
        badges: list[Badge] = []

        try:
            timeslot = await find_best_timeslot(self._session, service_id, date, time)
            season = await find_best_season(self._session, service_id, date)
        except SQLAlchemyError:
            logger.exception("Pricing data unavailable for badges of service %s", service_id)
            return badges

        if timeslot is not None:
            if to_decimal(timeslot.adjustment_value) > 0:
                badges.append(Badge(type="peak", label="Peak Hours"))
            else:
                badges.append(Badge(type="off-peak", label="Off-Peak"))

        if season is not None:
            badges.append(Badge(type="season", label=season.name))

        days_ahead = days_until(date, self._clock())
        if days_ahead >= EARLY_BIRD_DAYS:
            badges.append(Badge(type="early-bird", label="Early Bird"))
        elif 0 <= days_ahead <= LAST_MINUTE_DAYS:
            badges.append(Badge(type="last-minute", label="Last Minute"))

        return badges

    async def price_display(
        self, price: Decimal, original_price: Decimal | None
    ) -> PriceDisplay:
        """``format_price_display`` using the configured show options."""
        show_original = await self._config.get_bool(option_service.SHOW_ORIGINAL, True)
        show_savings = await self._config.get_bool(option_service.SHOW_SAVINGS, True)
        return format_price_display(
            price,
            original_price,
            show_original=show_original,
            show_savings=show_savings,
        )

    def _resolve_moment(
        self, date: datetime.date | None, time: str | None
    ) -> tuple[datetime.date, str]:
        now = self._clock()
        resolved_date = date or now.date()
        if time:
            resolved_time = normalize_time(time) or time
        else:
            resolved_time = now.strftime("%H:%M")
        return resolved_date, resolved_time

    @staticmethod
    def _build(
        base: Decimal,
        current: Decimal,
        adjustments: dict[str, AdjustmentLine],
        date: datetime.date,
        time: str,
    ) -> PriceBreakdown:
        final_price = _round(current, MONEY_PLACES)
        if base > 0:
            discount_pct = _round((base - final_price) / base * 100, PERCENT_PLACES)
        else:
            discount_pct = Decimal("0.0")
        return PriceBreakdown(
            base_price=base,
            final_price=final_price,
            total_saving=_round(base - final_price, MONEY_PLACES),
            discount_pct=discount_pct,
            adjustments=MappingProxyType(adjustments),
            date=date,
            time=time,
        )


async def create_calculator(
    session: AsyncSession, *, clock: Clock | None = None
) -> PriceCalculator:
    """Build a calculator wired to the database option store and bookings table."""
    config = DatabasePricingConfig(session)
    capacity = await config.get_int(
        option_service.DAILY_CAPACITY, get_settings().pricing_daily_capacity
    )
    bookings = SqlBookingStats(session, daily_capacity=capacity)
    return PriceCalculator(session, bookings=bookings, config=config, clock=clock)
