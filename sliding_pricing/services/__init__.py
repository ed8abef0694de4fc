"""Service layer exports."""
from sliding_pricing.services import (
    history_service,
    option_service,
    rule_service,
    season_service,
    timeslot_service,
)

__all__ = [
    "history_service",
    "option_service",
    "rule_service",
    "season_service",
    "timeslot_service",
]
