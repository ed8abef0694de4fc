"""ORM models package export."""

from sliding_pricing.models.booking import Booking, BookingStatus
from sliding_pricing.models.pricing import (
    AdjustmentType,
    AppliesTo,
    DayOfWeek,
    PricingHistory,
    PricingOption,
    PricingRule,
    PricingSeason,
    PricingTimeslot,
    RuleType,
)

__all__ = [
    "AdjustmentType",
    "AppliesTo",
    "Booking",
    "BookingStatus",
    "DayOfWeek",
    "PricingHistory",
    "PricingOption",
    "PricingRule",
    "PricingSeason",
    "PricingTimeslot",
    "RuleType",
]
