"""In-process notifications emitted after pricing data changes."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PricingChanged:
    """A rule, season, timeslot or option was created, updated or removed."""

    entity: str
    entity_id: int | str | None
    action: str


Handler = Callable[[PricingChanged], None]

_HANDLERS: list[Handler] = []


def subscribe(handler: Handler) -> None:
    """Register ``handler`` for every subsequent change event."""
    if handler not in _HANDLERS:
        _HANDLERS.append(handler)


def unsubscribe(handler: Handler) -> None:
    """Remove a previously registered handler."""
    if handler in _HANDLERS:
        _HANDLERS.remove(handler)


def publish(event: PricingChanged) -> None:
    """Deliver ``event`` to all handlers; a failing handler does not stop the rest."""
    logger.debug("Pricing change: %s", event)
    for handler in list(_HANDLERS):
        try:
            handler(event)
        except Exception:
            logger.exception("Pricing change handler %r failed", handler)


def clear() -> None:
    """Drop all handlers (mainly for tests)."""
    _HANDLERS.clear()
