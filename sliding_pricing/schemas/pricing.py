"""Pricing schema definitions."""

from __future__ import annotations

import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from sliding_pricing.models.pricing import (
    AdjustmentType,
    AppliesTo,
    DayOfWeek,
    RuleType,
)


def _coerce_ids(value: Any) -> Any:
    if value is None or value == "":
        return []
    if isinstance(value, (int, str)):
        value = [value]
    return value


class ConditionData(BaseModel):
    """A single rule condition as authored."""

    type: str = ""
    operator: str = "equals"
    value: str = ""

    @field_validator("type", "operator", "value", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> Any:
        if value is None:
            return ""
        return str(value).strip()


class RuleData(BaseModel):
    """Input for creating (no ``id``) or updating a pricing rule."""

    id: int | None = None
    name: str = ""
    rule_type: RuleType | None = None
    applies_to: AppliesTo = AppliesTo.ALL
    service_ids: list[int] = Field(default_factory=list)
    staff_ids: list[int] = Field(default_factory=list)
    priority: int = Field(default=10, ge=0)
    adjustment_type: AdjustmentType = AdjustmentType.PERCENTAGE
    adjustment_value: Decimal = Decimal("0")
    conditions: list[ConditionData] = Field(default_factory=list)
    valid_from: datetime.date | None = None
    valid_to: datetime.date | None = None
    is_active: bool = True

    @field_validator("service_ids", "staff_ids", mode="before")
    @classmethod
    def _ids(cls, value: Any) -> Any:
        return _coerce_ids(value)

    @field_validator("valid_from", "valid_to", mode="before")
    @classmethod
    def _blank_date(cls, value: Any) -> Any:
        return None if value == "" else value


class SeasonData(BaseModel):
    """Input for creating or updating a season."""

    id: int | None = None
    name: str = ""
    start_date: datetime.date | None = None
    end_date: datetime.date | None = None
    adjustment_type: AdjustmentType = AdjustmentType.PERCENTAGE
    adjustment_value: Decimal = Decimal("0")
    applies_to: AppliesTo = AppliesTo.ALL
    service_ids: list[int] = Field(default_factory=list)
    recurs_yearly: bool = False
    is_active: bool = True

    @field_validator("service_ids", mode="before")
    @classmethod
    def _ids(cls, value: Any) -> Any:
        return _coerce_ids(value)

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _blank_date(cls, value: Any) -> Any:
        return None if value == "" else value


class TimeslotData(BaseModel):
    """Input for creating or updating a timeslot."""

    id: int | None = None
    name: str = ""
    day_of_week: DayOfWeek = DayOfWeek.ALL
    start_time: str | None = None
    end_time: str | None = None
    adjustment_type: AdjustmentType = AdjustmentType.PERCENTAGE
    adjustment_value: Decimal = Decimal("0")
    applies_to: AppliesTo = AppliesTo.ALL
    service_ids: list[int] = Field(default_factory=list)
    is_active: bool = True

    @field_validator("service_ids", mode="before")
    @classmethod
    def _ids(cls, value: Any) -> Any:
        return _coerce_ids(value)


class AdjustmentLineRead(BaseModel):
    """One contributing adjustment inside a breakdown."""

    name: str
    type: str
    value: Decimal
    amount: Decimal

    model_config = ConfigDict(from_attributes=True)


class PriceBreakdownRead(BaseModel):
    """Calculated price with every applied adjustment."""

    base_price: Decimal
    final_price: Decimal
    total_saving: Decimal
    discount_pct: Decimal
    adjustments: dict[str, AdjustmentLineRead]
    date: datetime.date
    time: str

    model_config = ConfigDict(from_attributes=True)


class BadgeRead(BaseModel):
    """Advisory label shown next to a price."""

    type: str
    label: str

    model_config = ConfigDict(from_attributes=True)


class PricingHistoryRead(BaseModel):
    """Stored price breakdown for a booking."""

    id: int
    booking_id: int
    base_price: Decimal
    final_price: Decimal
    adjustments: dict[str, Any]
    price_date: datetime.date
    price_time: str
    created_at: datetime.datetime

    model_config = ConfigDict(from_attributes=True)
