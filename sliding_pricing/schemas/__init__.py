"""Schema exports."""

from sliding_pricing.schemas.pricing import (
    AdjustmentLineRead,
    BadgeRead,
    ConditionData,
    PriceBreakdownRead,
    PricingHistoryRead,
    RuleData,
    SeasonData,
    TimeslotData,
)

__all__ = [
    "AdjustmentLineRead",
    "BadgeRead",
    "ConditionData",
    "PriceBreakdownRead",
    "PricingHistoryRead",
    "RuleData",
    "SeasonData",
    "TimeslotData",
]
