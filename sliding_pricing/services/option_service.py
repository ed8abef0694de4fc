"""Runtime pricing options backed by the ``pricing_options`` table."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sliding_pricing.core.config import get_settings
from sliding_pricing.models.pricing import PricingOption
from sliding_pricing.services import pricing_events

logger = logging.getLogger(__name__)

STACK_RULES = "stack_rules"
MAX_DISCOUNT_PERCENT = "max_discount_percent"
SHOW_ORIGINAL = "show_original"
SHOW_SAVINGS = "show_savings"
DAILY_CAPACITY = "daily_capacity"

_BOOL_TRUE = {"1", "true", "yes", "on"}


class PricingConfig(Protocol):
    """Configuration lookups needed by the price calculator."""

    async def get_bool(self, key: str, default: bool) -> bool: ...

    async def get_int(self, key: str, default: int) -> int: ...


def default_options() -> dict[str, str]:
    """Return option defaults taken from the environment settings."""
    settings = get_settings()
    return {
        STACK_RULES: "yes" if settings.pricing_stack_rules else "no",
        MAX_DISCOUNT_PERCENT: str(settings.pricing_max_discount_percent),
        SHOW_ORIGINAL: "yes" if settings.pricing_show_original else "no",
        SHOW_SAVINGS: "yes" if settings.pricing_show_savings else "no",
        DAILY_CAPACITY: str(settings.pricing_daily_capacity),
    }


async def get_option(session: AsyncSession, key: str) -> str | None:
    """Return the stored value for ``key`` if one exists."""
    result = await session.execute(
        select(PricingOption.value).where(PricingOption.key == key)
    )
    return result.scalar_one_or_none()


async def set_option(session: AsyncSession, key: str, value: object) -> None:
    """Store an option, replacing any previous value."""
    if isinstance(value, bool):
        raw = "yes" if value else "no"
    else:
        raw = str(value)
    option = await session.get(PricingOption, key)
    if option is None:
        session.add(PricingOption(key=key, value=raw))
    else:
        option.value = raw
    await session.commit()
    logger.info("Pricing option %s set to %s", key, raw)
    pricing_events.publish(pricing_events.PricingChanged("option", key, "updated"))


def parse_bool(raw: str | None, default: bool) -> bool:
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in _BOOL_TRUE


def parse_int(raw: str | None, default: int) -> int:
    if raw is None or raw == "":
        return default
    try:
        return int(float(raw))
    except ValueError:
        logger.warning("Ignoring non-numeric pricing option value %r", raw)
        return default


class DatabasePricingConfig:
    """Reads options from the database, falling back to environment defaults."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._defaults = default_options()

    async def get_bool(self, key: str, default: bool) -> bool:
        fallback = parse_bool(self._defaults.get(key), default)
        return parse_bool(await get_option(self._session, key), fallback)

    async def get_int(self, key: str, default: int) -> int:
        fallback = parse_int(self._defaults.get(key), default)
        return parse_int(await get_option(self._session, key), fallback)


@dataclass(slots=True)
class StaticPricingConfig:
    """Fixed option values for callers that already know them."""

    stack_rules: bool = True
    max_discount_percent: int = 50
    show_original: bool = True
    show_savings: bool = True
    daily_capacity: int = 10

    async def get_bool(self, key: str, default: bool) -> bool:
        value = getattr(self, key, None)
        return default if value is None else bool(value)

    async def get_int(self, key: str, default: int) -> int:
        value = getattr(self, key, None)
        return default if value is None else int(value)
