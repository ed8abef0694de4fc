"""Short-lived in-process cache of price breakdowns."""

from __future__ import annotations

import datetime
import time as _time
from decimal import Decimal

from sliding_pricing.services import pricing_events
from sliding_pricing.services.adjustment_service import to_decimal
from sliding_pricing.services.price_calculator import PriceBreakdown, PriceCalculator
from sliding_pricing.services.timeslot_service import normalize_time

CacheKey = tuple[Decimal, int, int, datetime.date | None, str | None]


class QuoteCache:
    """Memoizes breakdowns for ``ttl_seconds`` and empties on any pricing change.

    A ``ttl_seconds`` of zero disables caching.
    """

    def __init__(self, ttl_seconds: float = 60.0, *, max_entries: int = 1000) -> None:
        self._ttl = ttl_seconds
        self._max_entries = max_entries
        self._entries: dict[CacheKey, tuple[float, PriceBreakdown]] = {}
        pricing_events.subscribe(self.handle_change)

    def __len__(self) -> int:
        return len(self._entries)

    def handle_change(self, event: pricing_events.PricingChanged) -> None:
        self.clear()

    def clear(self) -> None:
        self._entries.clear()

    def close(self) -> None:
        """Stop listening for pricing changes."""
        pricing_events.unsubscribe(self.handle_change)
        self.clear()

    async def get_breakdown(
        self,
        calculator: PriceCalculator,
        base_price: Decimal | float | int | str,
        service_id: int,
        staff_id: int = 0,
        date: datetime.date | None = None,
        time: str | None = None,
    ) -> PriceBreakdown:
        """Return a cached breakdown or compute and remember one.

        Calls without an explicit date and time are never cached since they
        resolve to "now".
        """
        if self._ttl <= 0 or date is None or time is None:
            return await calculator.calculate_breakdown(
                base_price, service_id, staff_id, date, time
            )

        key: CacheKey = (
            to_decimal(base_price),
            service_id,
            staff_id,
            date,
            normalize_time(time) or time,
        )
        now = _time.monotonic()
        cached = self._entries.get(key)
        if cached is not None and cached[0] > now:
            return cached[1]

        breakdown = await calculator.calculate_breakdown(
            base_price, service_id, staff_id, date, time
        )
        if len(self._entries) >= self._max_entries:
            self._entries.pop(next(iter(self._entries)))
        self._entries[key] = (now + self._ttl, breakdown)
        return breakdown
