"""Helpers shared by the rule, season and timeslot stores."""

from __future__ import annotations

import enum
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from sliding_pricing.models.pricing import AppliesTo


class SaveError(str, enum.Enum):
    """Reasons an authoring save can be refused."""

    MISSING_NAME = "missing_name"
    MISSING_TYPE = "missing_type"
    MISSING_DATES = "missing_dates"
    MISSING_TIMES = "missing_times"
    PERSISTENCE_ERROR = "persistence_error"


_MESSAGES = {
    SaveError.MISSING_NAME: "Name is required",
    SaveError.MISSING_TYPE: "Rule type is required",
    SaveError.MISSING_DATES: "Start and end dates are required",
    SaveError.MISSING_TIMES: "Start and end times are required",
    SaveError.PERSISTENCE_ERROR: "Failed to save",
}


@dataclass(frozen=True, slots=True)
class SaveResult:
    """Outcome of a save: the row id on success, otherwise the error."""

    id: int | None = None
    error: SaveError | None = None
    message: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failed(cls, error: SaveError, message: str | None = None) -> SaveResult:
        return cls(error=error, message=message or _MESSAGES[error])


def normalize_ids(values: Iterable[Any] | None) -> list[int]:
    """Return positive integer ids in first-seen order."""
    ids: list[int] = []
    for value in values or ():
        try:
            number = abs(int(value))
        except (TypeError, ValueError):
            continue
        if number and number not in ids:
            ids.append(number)
    return ids


def applies_to_service(
    applies_to: AppliesTo | str, service_ids: Iterable[Any] | None, service_id: int
) -> bool:
    """``all`` matches every service; ``specific`` requires membership.

    A ``specific`` scope with no ids matches nothing.
    """
    if AppliesTo(applies_to) is AppliesTo.ALL:
        return True
    return service_id in normalize_ids(service_ids)


def best_by_magnitude(candidates: Iterable[Any]) -> Any | None:
    """Pick the candidate with the largest ``abs(adjustment_value)``.

    Candidates are expected in id order; the first one wins a tie.
    """
    best = None
    best_magnitude = Decimal("-1")
    for candidate in candidates:
        magnitude = abs(Decimal(str(candidate.adjustment_value)))
        if magnitude > best_magnitude:
            best, best_magnitude = candidate, magnitude
    return best
