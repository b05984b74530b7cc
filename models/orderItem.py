from decimal import Decimal

from pydantic import BaseModel
from sqlalchemy import Column, Integer, Numeric, ForeignKey, CheckConstraint, Index
from sqlalchemy.orm import relationship

from models.base import Base


class OrderItem(Base):
    __tablename__ = 'order_items'

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey('orders.id', ondelete='CASCADE'), nullable=False)
    product_id = Column(Integer, ForeignKey('products.id'), nullable=False)
    quantity = Column(Integer, nullable=False)
    # Discounted unit price at order time, never recomputed
    unit_price = Column(Numeric(12, 2), nullable=False)

    order = relationship('Order', back_populates='items')

    __table_args__ = (
        CheckConstraint('quantity > 0', name='ck_order_item_positive_quantity'),
        CheckConstraint('unit_price >= 0', name='ck_order_item_non_negative_price'),
        Index('ix_order_items_order_id', 'order_id'),
    )


class OrderItemDTO(BaseModel):
    id: int | None = None
    order_id: int | None = None
    product_id: int | None = None
    quantity: int | None = None
    unit_price: Decimal | None = None
