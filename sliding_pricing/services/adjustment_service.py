"""Price adjustment arithmetic."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from sliding_pricing.models.pricing import AdjustmentType


@dataclass(frozen=True, slots=True)
class AppliedAdjustment:
    """Result of applying one adjustment to a running price."""

    new_price: Decimal
    amount: Decimal


def parse_adjustment_type(value: AdjustmentType | str | None) -> AdjustmentType | None:
    """Return the adjustment type, or ``None`` when it is not recognised."""
    if isinstance(value, AdjustmentType):
        return value
    try:
        return AdjustmentType(value)
    except ValueError:
        return None


def to_decimal(value: Decimal | float | int | str | None) -> Decimal:
    """Coerce stored or user supplied numbers to ``Decimal``; junk becomes zero."""
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return Decimal("0")


def apply_adjustment(
    price: Decimal,
    adjustment_type: AdjustmentType | str | None,
    adjustment_value: Decimal | float | int | str | None,
) -> AppliedAdjustment:
    """Apply an adjustment and report the signed change.

    ``percentage`` scales the running price (negative values discount),
    ``fixed`` adds the value and ``set`` replaces the price outright. Unknown
    types leave the price untouched.
    """
    value = to_decimal(adjustment_value)
    kind = parse_adjustment_type(adjustment_type)

    if kind is AdjustmentType.PERCENTAGE:
        amount = price * (value / Decimal("100"))
        return AppliedAdjustment(new_price=price + amount, amount=amount)
    if kind is AdjustmentType.FIXED:
        return AppliedAdjustment(new_price=price + value, amount=value)
    if kind is AdjustmentType.SET:
        return AppliedAdjustment(new_price=value, amount=value - price)
    return AppliedAdjustment(new_price=price, amount=Decimal("0"))
