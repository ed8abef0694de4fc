"""Pricing rule, season, timeslot and history models."""

from __future__ import annotations

import datetime
import enum
from decimal import Decimal
from typing import Any

from sqlalchemy import Boolean, Date, Enum, Index, Integer, Numeric, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import JSON

from sliding_pricing.db.base import Base
from sliding_pricing.models.mixins import TimestampMixin

JSONB_TYPE = JSONB().with_variant(JSON(), "sqlite")


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


class RuleType(str, enum.Enum):
    """Descriptive category of a pricing rule; evaluation ignores it."""

    EARLY_BIRD = "early_bird"
    LAST_MINUTE = "last_minute"
    DEMAND_BASED = "demand_based"
    QUANTITY = "quantity"
    CUSTOMER_TYPE = "customer_type"
    CUSTOM = "custom"


class AdjustmentType(str, enum.Enum):
    """How an adjustment value transforms the running price."""

    PERCENTAGE = "percentage"
    FIXED = "fixed"
    SET = "set"


class AppliesTo(str, enum.Enum):
    """Service scoping for rules, seasons and timeslots."""

    ALL = "all"
    SPECIFIC = "specific"


class DayOfWeek(str, enum.Enum):
    """Day selector used by timeslots."""

    ALL = "all"
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"
    WEEKDAY = "weekday"
    WEEKEND = "weekend"


class PricingRule(TimestampMixin, Base):
    """Operator-authored conditional price adjustment."""

    __tablename__ = "pricing_rules"
    __table_args__ = (
        Index("ix_pricing_rules_active_priority", "is_active", "priority"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    rule_type: Mapped[RuleType] = mapped_column(
        Enum(RuleType, values_callable=_enum_values), nullable=False
    )
    applies_to: Mapped[AppliesTo] = mapped_column(
        Enum(AppliesTo, values_callable=_enum_values),
        default=AppliesTo.ALL,
        nullable=False,
    )
    service_ids: Mapped[list[int]] = mapped_column(
        JSONB_TYPE, default=list, nullable=False
    )
    staff_ids: Mapped[list[int]] = mapped_column(
        JSONB_TYPE, default=list, nullable=False
    )
    priority: Mapped[int] = mapped_column(Integer, default=10, nullable=False)
    adjustment_type: Mapped[str] = mapped_column(
        String(20), default=AdjustmentType.PERCENTAGE.value, nullable=False
    )
    adjustment_value: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), default=Decimal("0"), nullable=False
    )
    conditions: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONB_TYPE, default=list, nullable=False
    )
    valid_from: Mapped[datetime.date | None] = mapped_column(Date, nullable=True)
    valid_to: Mapped[datetime.date | None] = mapped_column(Date, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class PricingSeason(TimestampMixin, Base):
    """Calendar date range carrying one adjustment."""

    __tablename__ = "pricing_seasons"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    start_date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    end_date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    adjustment_type: Mapped[str] = mapped_column(
        String(20), default=AdjustmentType.PERCENTAGE.value, nullable=False
    )
    adjustment_value: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), default=Decimal("0"), nullable=False
    )
    applies_to: Mapped[AppliesTo] = mapped_column(
        Enum(AppliesTo, values_callable=_enum_values),
        default=AppliesTo.ALL,
        nullable=False,
    )
    service_ids: Mapped[list[int]] = mapped_column(
        JSONB_TYPE, default=list, nullable=False
    )
    recurs_yearly: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class PricingTimeslot(TimestampMixin, Base):
    """Day-of-week and clock-time band carrying one adjustment."""

    __tablename__ = "pricing_timeslots"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    day_of_week: Mapped[DayOfWeek] = mapped_column(
        Enum(DayOfWeek, values_callable=_enum_values),
        default=DayOfWeek.ALL,
        nullable=False,
    )
    # Zero-padded 24h "HH:MM"; string order equals clock order.
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)
    adjustment_type: Mapped[str] = mapped_column(
        String(20), default=AdjustmentType.PERCENTAGE.value, nullable=False
    )
    adjustment_value: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), default=Decimal("0"), nullable=False
    )
    applies_to: Mapped[AppliesTo] = mapped_column(
        Enum(AppliesTo, values_callable=_enum_values),
        default=AppliesTo.ALL,
        nullable=False,
    )
    service_ids: Mapped[list[int]] = mapped_column(
        JSONB_TYPE, default=list, nullable=False
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class PricingHistory(TimestampMixin, Base):
    """Price breakdown captured for a booking at confirmation time."""

    __tablename__ = "pricing_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    booking_id: Mapped[int] = mapped_column(Integer, index=True, nullable=False)
    base_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    final_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    adjustments: Mapped[dict[str, Any]] = mapped_column(
        JSONB_TYPE, default=dict, nullable=False
    )
    price_date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    price_time: Mapped[str] = mapped_column(String(5), nullable=False)


class PricingOption(Base):
    """Runtime key/value pricing options."""

    __tablename__ = "pricing_options"

    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    value: Mapped[str] = mapped_column(String(255), nullable=False)
