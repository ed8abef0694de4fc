"""Pricing rule storage and applicability matching."""

from __future__ import annotations

import datetime
import logging
from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from sliding_pricing.models.pricing import PricingRule, RuleType
from sliding_pricing.schemas.pricing import RuleData
from sliding_pricing.services import pricing_events
from sliding_pricing.services.condition_service import (
    ConditionEvaluator,
    parse_conditions,
)
from sliding_pricing.services.pricing_common import (
    SaveError,
    SaveResult,
    applies_to_service,
    normalize_ids,
)

logger = logging.getLogger(__name__)

RULE_TYPE_LABELS = {
    RuleType.EARLY_BIRD: "Early Bird Discount",
    RuleType.LAST_MINUTE: "Last Minute Deal",
    RuleType.DEMAND_BASED: "Demand-Based Pricing",
    RuleType.QUANTITY: "Quantity Discount",
    RuleType.CUSTOMER_TYPE: "Customer Type Pricing",
    RuleType.CUSTOM: "Custom Rule",
}


def get_rule_types() -> dict[str, str]:
    """Rule type values with display labels."""
    return {rule_type.value: label for rule_type, label in RULE_TYPE_LABELS.items()}


async def list_rules(
    session: AsyncSession, *, active_only: bool = False
) -> list[PricingRule]:
    """Return rules in evaluation order (priority, then id)."""
    stmt = select(PricingRule).order_by(PricingRule.priority, PricingRule.id)
    if active_only:
        stmt = stmt.where(PricingRule.is_active.is_(True))
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def get_rule(session: AsyncSession, rule_id: int) -> PricingRule | None:
    return await session.get(PricingRule, rule_id)


async def save_rule(session: AsyncSession, data: RuleData) -> SaveResult:
    """Insert a rule when ``data.id`` is empty, otherwise update it."""
    if not data.name.strip():
        return SaveResult.failed(SaveError.MISSING_NAME)
    if data.rule_type is None:
        return SaveResult.failed(SaveError.MISSING_TYPE)

    try:
        if data.id:
            rule = await session.get(PricingRule, data.id)
            if rule is None:
                return SaveResult.failed(
                    SaveError.PERSISTENCE_ERROR, f"Rule {data.id} not found"
                )
        else:
            rule = PricingRule()
            session.add(rule)

        rule.name = data.name.strip()
        rule.rule_type = data.rule_type
        rule.applies_to = data.applies_to
        rule.service_ids = normalize_ids(data.service_ids)
        rule.staff_ids = normalize_ids(data.staff_ids)
        rule.priority = data.priority
        rule.adjustment_type = data.adjustment_type.value
        rule.adjustment_value = data.adjustment_value
        rule.conditions = [condition.model_dump() for condition in data.conditions]
        rule.valid_from = data.valid_from
        rule.valid_to = data.valid_to
        rule.is_active = data.is_active
        await session.commit()
    except SQLAlchemyError:
        await session.rollback()
        logger.exception("Failed to save pricing rule %r", data.name)
        return SaveResult.failed(SaveError.PERSISTENCE_ERROR)

    action = "updated" if data.id else "created"
    pricing_events.publish(pricing_events.PricingChanged("rule", rule.id, action))
    return SaveResult(id=rule.id)


async def delete_rule(session: AsyncSession, rule_id: int) -> bool:
    """Remove a rule; ``False`` when it does not exist."""
    rule = await session.get(PricingRule, rule_id)
    if rule is None:
        return False
    await session.delete(rule)
    await session.commit()
    pricing_events.publish(pricing_events.PricingChanged("rule", rule_id, "deleted"))
    return True


async def toggle_rule(session: AsyncSession, rule_id: int) -> bool | None:
    """Flip ``is_active`` and return the new state, or ``None`` if missing."""
    rule = await session.get(PricingRule, rule_id)
    if rule is None:
        return None
    rule.is_active = not rule.is_active
    await session.commit()
    pricing_events.publish(pricing_events.PricingChanged("rule", rule_id, "toggled"))
    return rule.is_active


async def duplicate_rule(session: AsyncSession, rule_id: int) -> PricingRule | None:
    """Clone a rule as an inactive copy named "<name> (Copy)"."""
    source = await session.get(PricingRule, rule_id)
    if source is None:
        return None
    copy = PricingRule(
        name=f"{source.name} (Copy)",
        rule_type=source.rule_type,
        applies_to=source.applies_to,
        service_ids=list(source.service_ids or []),
        staff_ids=list(source.staff_ids or []),
        priority=source.priority,
        adjustment_type=source.adjustment_type,
        adjustment_value=source.adjustment_value,
        conditions=[dict(condition) for condition in source.conditions or []],
        valid_from=source.valid_from,
        valid_to=source.valid_to,
        is_active=False,
    )
    session.add(copy)
    await session.commit()
    await session.refresh(copy)
    pricing_events.publish(pricing_events.PricingChanged("rule", copy.id, "created"))
    return copy


async def reorder_rules(session: AsyncSession, rule_ids: Sequence[int]) -> int:
    """Assign priorities 1..n following ``rule_ids``; returns rows updated.

    Unknown ids are skipped; rules not listed keep their priority.
    """
    updated = 0
    for position, rule_id in enumerate(rule_ids, start=1):
        rule = await session.get(PricingRule, rule_id)
        if rule is None:
            continue
        rule.priority = position
        updated += 1
    await session.commit()
    if updated:
        pricing_events.publish(pricing_events.PricingChanged("rule", None, "reordered"))
    return updated


def is_within_validity(rule: PricingRule, date: datetime.date) -> bool:
    if rule.valid_from is not None and date < rule.valid_from:
        return False
    if rule.valid_to is not None and date > rule.valid_to:
        return False
    return True


def applies_to_staff(rule: PricingRule, staff_id: int) -> bool:
    if staff_id <= 0:
        return True
    staff_ids = normalize_ids(rule.staff_ids)
    return not staff_ids or staff_id in staff_ids


async def get_applicable_rules(
    session: AsyncSession,
    evaluator: ConditionEvaluator,
    service_id: int,
    staff_id: int,
    date: datetime.date,
    time: str,
) -> list[PricingRule]:
    """Return rules that match the context, lowest priority number first."""
    applicable: list[PricingRule] = []
    for rule in await list_rules(session, active_only=True):
        if not is_within_validity(rule, date):
            continue
        if not applies_to_service(rule.applies_to, rule.service_ids, service_id):
            continue
        if not applies_to_staff(rule, staff_id):
            continue
        conditions = parse_conditions(rule.conditions)
        if not await evaluator.evaluate_all(conditions, service_id, date, time):
            continue
        applicable.append(rule)
    return applicable
