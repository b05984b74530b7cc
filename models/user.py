from datetime import datetime

from pydantic import BaseModel
from sqlalchemy import Column, Integer, DateTime, String, ForeignKey, func
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import relationship

from enums.user_role import UserRole
from models.base import Base


class User(Base):
    __tablename__ = 'users'

    id = Column(Integer, primary_key=True)
    email = Column(String(255), nullable=False, unique=True)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(255), nullable=True)
    role = Column(SQLEnum(UserRole), nullable=False, default=UserRole.CUSTOMER)
    pricing_tier_id = Column(Integer, ForeignKey('pricing_tiers.id', ondelete='SET NULL'), nullable=True)
    created_at = Column(DateTime, default=func.now())

    pricing_tier = relationship('PricingTier')


class UserDTO(BaseModel):
    id: int | None = None
    email: str | None = None
    name: str | None = None
    role: UserRole | None = None
    pricing_tier_id: int | None = None
    created_at: datetime | None = None


class ProfileDTO(BaseModel):
    """Public profile; never carries the password hash."""
    id: int
    email: str
    name: str | None = None
    pricing_tier_id: int | None = None
