from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel
from sqlalchemy import Column, Integer, Numeric, DateTime, ForeignKey, String, func, CheckConstraint, Index
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import relationship

from enums.order_status import OrderStatus
from models.base import Base
from models.orderItem import OrderItemDTO
from models.payment import PaymentHandleDTO


class Order(Base):
    __tablename__ = 'orders'

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    status = Column(SQLEnum(OrderStatus), nullable=False, default=OrderStatus.PENDING_PAYMENT)
    # Final amount after the cart-level discount, frozen at checkout
    total_amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), nullable=False)
    # Provider-side id of the payment request, set once the provider answered
    payment_reference = Column(String(255), nullable=True, unique=True)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    items = relationship('OrderItem', back_populates='order', cascade='all, delete-orphan')

    __table_args__ = (
        CheckConstraint('total_amount >= 0', name='check_order_total_amount_non_negative'),
        Index('ix_orders_user_created', 'user_id', 'created_at'),
    )


class OrderDTO(BaseModel):
    id: int | None = None
    user_id: int | None = None
    status: OrderStatus | None = None
    total_amount: Decimal | None = None
    currency: str | None = None
    payment_reference: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class OrderDetailsDTO(OrderDTO):
    items: list[OrderItemDTO] = []


class CheckoutResultDTO(BaseModel):
    order_id: int
    total_amount: Decimal
    payment_handle: PaymentHandleDTO
