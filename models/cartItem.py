from decimal import Decimal

from pydantic import BaseModel
from sqlalchemy import Column, Integer, ForeignKey, CheckConstraint, UniqueConstraint
from sqlalchemy.orm import relationship

from models.base import Base


class CartItem(Base):
    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True)
    cart_id = Column(Integer, ForeignKey("carts.id", ondelete='CASCADE'), nullable=False)
    product_id = Column(Integer, ForeignKey('products.id', ondelete='CASCADE'), nullable=False)
    quantity = Column(Integer, nullable=False)

    cart = relationship('Cart', back_populates='items')
    product = relationship('Product')

    __table_args__ = (
        CheckConstraint('quantity > 0', name='check_quantity_positive'),
        UniqueConstraint('cart_id', 'product_id', name='uq_cart_items_cart_product'),
    )


class CartItemDTO(BaseModel):
    id: int | None = None
    cart_id: int | None = None
    product_id: int | None = None
    quantity: int | None = None


class CartLineDTO(BaseModel):
    """Priced cart line as returned to the caller."""
    id: int | None = None
    product_id: int
    name: str
    quantity: int
    unit_price: Decimal
    discounted_unit_price: Decimal
    line_total: Decimal


class CartViewDTO(BaseModel):
    items: list[CartLineDTO]
    sub_total: Decimal
    discount_applied: Decimal
    total_amount: Decimal
