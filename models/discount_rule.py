from decimal import Decimal

from pydantic import BaseModel, ConfigDict
from sqlalchemy import Column, Integer, Boolean, Numeric, ForeignKey, CheckConstraint
from sqlalchemy import Enum as SQLEnum

from enums.discount_type import DiscountType
from models.base import Base


class DiscountRule(Base):
    """
    Typed price reduction with optional scope and gates.

    Percentage values are fractions (0.1 == 10 %). A rule with no product,
    tier, quantity or order-amount constraint applies to everything.
    """
    __tablename__ = 'discount_rules'

    id = Column(Integer, primary_key=True)
    type = Column(SQLEnum(DiscountType), nullable=False)
    value = Column(Numeric(12, 4), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    applicable_to_product_id = Column(Integer, ForeignKey('products.id', ondelete='CASCADE'), nullable=True)
    applicable_to_pricing_tier_id = Column(Integer, ForeignKey('pricing_tiers.id', ondelete='CASCADE'), nullable=True)
    minimum_quantity = Column(Integer, nullable=True)
    minimum_order_amount = Column(Numeric(12, 2), nullable=True)

    __table_args__ = (
        CheckConstraint('value >= 0', name='check_discount_value_non_negative'),
    )


class DiscountRuleDTO(BaseModel):
    # Frozen: the pricing engine works on immutable snapshots
    model_config = ConfigDict(frozen=True)

    id: int | None = None
    type: DiscountType
    value: Decimal
    is_active: bool = True
    applicable_to_product_id: int | None = None
    applicable_to_pricing_tier_id: int | None = None
    minimum_quantity: int | None = None
    minimum_order_amount: Decimal | None = None
