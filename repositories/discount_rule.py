from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute
from models.discount_rule import DiscountRule, DiscountRuleDTO


class DiscountRuleRepository:
    @staticmethod
    async def get_active_for_tier(pricing_tier_id: int | None, session: AsyncSession | Session) -> list[DiscountRuleDTO]:
        """
        Active rules that are general or scoped to ``pricing_tier_id``.

        Rules scoped to other tiers never match and are not loaded.
        """
        tier_condition = DiscountRule.applicable_to_pricing_tier_id.is_(None)
        if pricing_tier_id is not None:
            tier_condition = or_(tier_condition, DiscountRule.applicable_to_pricing_tier_id == pricing_tier_id)

        stmt = (select(DiscountRule)
                .where(DiscountRule.is_active.is_(True), tier_condition)
                .order_by(DiscountRule.id))
        rules = await session_execute(stmt, session)
        return [DiscountRuleDTO.model_validate(rule, from_attributes=True) for rule in rules.scalars().all()]
