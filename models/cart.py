from pydantic import BaseModel
from sqlalchemy import Column, Integer, ForeignKey
from sqlalchemy.orm import relationship

from models.base import Base


class Cart(Base):
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True)

    items = relationship('CartItem', back_populates='cart', cascade='all, delete-orphan')


class CartDTO(BaseModel):
    id: int | None = None
    user_id: int | None = None
