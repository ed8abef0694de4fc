"""Evaluation of the conditions attached to pricing rules."""

from __future__ import annotations

import datetime
import enum
import math
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from sliding_pricing.services.booking_stats import BookingStats

SECONDS_PER_DAY = 86400

Clock = Callable[[], datetime.datetime]


class ConditionType(str, enum.Enum):
    """What a condition inspects."""

    DAYS_BEFORE = "days_before"
    DAY_OF_WEEK = "day_of_week"
    TIME_OF_DAY = "time_of_day"
    BOOKING_COUNT = "booking_count"
    AVAILABILITY = "availability"


class ConditionOperator(str, enum.Enum):
    """Comparison applied between the observed and the configured value."""

    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    GREATER = "greater"
    GREATER_EQUALS = "greater_equals"
    LESS = "less"
    LESS_EQUALS = "less_equals"
    CONTAINS = "contains"


_OPERATOR_ALIASES = {
    "=": ConditionOperator.EQUALS,
    "!=": ConditionOperator.NOT_EQUALS,
    ">": ConditionOperator.GREATER,
    ">=": ConditionOperator.GREATER_EQUALS,
    "<": ConditionOperator.LESS,
    "<=": ConditionOperator.LESS_EQUALS,
}


def utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


def parse_operator(raw: Any) -> ConditionOperator | None:
    """Map an operator name or symbol to ``ConditionOperator``; ``None`` if unknown."""
    if isinstance(raw, ConditionOperator):
        return raw
    text = str(raw).strip() if raw is not None else ""
    if text in _OPERATOR_ALIASES:
        return _OPERATOR_ALIASES[text]
    try:
        return ConditionOperator(text)
    except ValueError:
        return None


def parse_condition_type(raw: Any) -> ConditionType | None:
    if isinstance(raw, ConditionType):
        return raw
    try:
        return ConditionType(str(raw).strip())
    except ValueError:
        return None


@dataclass(frozen=True, slots=True)
class Condition:
    """One predicate of a rule.

    ``type`` and ``operator`` are ``None`` when the stored payload names
    something this version does not know; ``raw_type``/``raw_operator`` keep
    the original text.
    """

    type: ConditionType | None
    operator: ConditionOperator | None
    value: str
    raw_type: str = ""
    raw_operator: str = ""

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> Condition:
        raw_type = str(payload.get("type") or "")
        raw_operator = str(payload.get("operator") or ConditionOperator.EQUALS.value)
        value = payload.get("value")
        return cls(
            type=parse_condition_type(raw_type),
            operator=parse_operator(raw_operator),
            value="" if value is None else str(value),
            raw_type=raw_type,
            raw_operator=raw_operator,
        )

    def to_dict(self) -> dict[str, str]:
        return {
            "type": self.type.value if self.type else self.raw_type,
            "operator": self.operator.value if self.operator else self.raw_operator,
            "value": self.value,
        }


def parse_conditions(payload: Iterable[Mapping[str, Any]] | None) -> list[Condition]:
    """Build conditions from their stored JSON form, skipping non-mapping entries."""
    if not payload:
        return []
    return [Condition.from_dict(item) for item in payload if isinstance(item, Mapping)]


def _as_number(value: Any) -> float | None:
    """Numeric reading of ``value``; ``None`` for text and for nan/inf."""
    raw = value if isinstance(value, (bool, int, float)) else str(value).strip()
    try:
        number = float(raw)
    except (OverflowError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _to_float(value: str) -> float:
    number = _as_number(value)
    return 0.0 if number is None else number


def _to_count(value: str) -> int:
    return abs(int(_to_float(value)))


def _loose_equals(actual: Any, expected: Any) -> bool:
    left, right = _as_number(actual), _as_number(expected)
    if left is not None and right is not None:
        return left == right
    return str(actual) == str(expected)


def _ordering(actual: Any, expected: Any) -> tuple[Any, Any]:
    left, right = _as_number(actual), _as_number(expected)
    if left is not None and right is not None:
        return left, right
    return str(actual), str(expected)


def compare_values(actual: Any, operator: ConditionOperator | str | None, expected: Any) -> bool:
    """Compare ``actual`` against ``expected``; unknown operators never match."""
    op = parse_operator(operator)
    if op is ConditionOperator.EQUALS:
        return _loose_equals(actual, expected)
    if op is ConditionOperator.NOT_EQUALS:
        return not _loose_equals(actual, expected)
    if op is ConditionOperator.CONTAINS:
        return str(expected) in str(actual)
    if op is None:
        return False

    left, right = _ordering(actual, expected)
    if op is ConditionOperator.GREATER:
        return left > right
    if op is ConditionOperator.GREATER_EQUALS:
        return left >= right
    if op is ConditionOperator.LESS:
        return left < right
    return left <= right


def weekday_name(date: datetime.date) -> str:
    return date.strftime("%A").lower()


def days_until(date: datetime.date, now: datetime.datetime) -> float:
    """Fractional days from ``now`` until midnight UTC at the start of ``date``."""
    start = datetime.datetime.combine(date, datetime.time.min, tzinfo=datetime.UTC)
    if now.tzinfo is None:
        now = now.replace(tzinfo=datetime.UTC)
    return (start - now).total_seconds() / SECONDS_PER_DAY


class ConditionEvaluator:
    """Decides whether a single condition holds for a pricing context."""

    def __init__(self, bookings: BookingStats, *, clock: Clock | None = None) -> None:
        self._bookings = bookings
        self._clock = clock or utc_now

    async def evaluate(
        self,
        condition: Condition,
        service_id: int,
        date: datetime.date,
        time: str,
    ) -> bool:
        kind = condition.type
        if kind is ConditionType.DAYS_BEFORE:
            actual: Any = days_until(date, self._clock())
            expected: Any = _to_float(condition.value)
        elif kind is ConditionType.DAY_OF_WEEK:
            actual = weekday_name(date)
            expected = condition.value.lower()
        elif kind is ConditionType.TIME_OF_DAY:
            actual = time
            expected = condition.value
        elif kind is ConditionType.BOOKING_COUNT:
            actual = await self._bookings.count_bookings(service_id, date)
            expected = _to_count(condition.value)
        elif kind is ConditionType.AVAILABILITY:
            actual = await self._bookings.availability_percent(service_id, date)
            expected = _to_float(condition.value)
        else:
            # Unrecognised condition types pass so newer rule payloads keep working.
            return True
        return compare_values(actual, condition.operator, expected)

    async def evaluate_all(
        self,
        conditions: Iterable[Condition],
        service_id: int,
        date: datetime.date,
        time: str,
    ) -> bool:
        """Return ``True`` only if every condition holds (empty list is ``True``)."""
        for condition in conditions:
            if not await self.evaluate(condition, service_id, date, time):
                return False
        return True
