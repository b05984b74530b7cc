from pydantic import BaseModel
from sqlalchemy import Column, Integer, String

from models.base import Base


class PricingTier(Base):
    """
    Named customer segment.

    Tiers carry no behaviour of their own; discount rules reference them
    through applicable_to_pricing_tier_id.
    """
    __tablename__ = 'pricing_tiers'

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False, unique=True)


class PricingTierDTO(BaseModel):
    id: int | None = None
    name: str | None = None
