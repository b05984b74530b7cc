"""
Allowed order status changes.

PENDING_PAYMENT -> PROCESSING      payment confirmed by the provider
PENDING_PAYMENT -> PAYMENT_FAILED  payment declined or failed
PAYMENT_FAILED  -> PENDING_PAYMENT customer retries the payment

PROCESSING is final. Every accepted transition is audit-logged.
"""

import logging
from typing import Optional

from enums.order_status import OrderStatus

logger = logging.getLogger(__name__)


class OrderStateMachine:
    TRANSITIONS: dict[tuple[OrderStatus, OrderStatus], str] = {
        (OrderStatus.PENDING_PAYMENT, OrderStatus.PROCESSING): "payment confirmed by provider",
        (OrderStatus.PENDING_PAYMENT, OrderStatus.PAYMENT_FAILED): "payment failed or declined",
        (OrderStatus.PAYMENT_FAILED, OrderStatus.PENDING_PAYMENT): "payment retried by customer",
    }

    @classmethod
    def is_valid_transition(cls, from_status: OrderStatus, to_status: OrderStatus) -> bool:
        # Same-status pairs are absent, so a redelivered event never counts as a transition
        return (from_status, to_status) in cls.TRANSITIONS

    @classmethod
    def validate_and_log_transition(cls, order_id: int, from_status: OrderStatus, to_status: OrderStatus,
                                    user_id: Optional[int] = None) -> bool:
        """
        Validate a status transition and write an audit log entry.

        Returns True if the transition is allowed (and was logged). A
        ``user_id`` of None means the payment provider drove the change.
        """
        if not cls.is_valid_transition(from_status, to_status):
            logger.warning(f"Rejected status transition for order {order_id}: {from_status.value} -> {to_status.value}")
            return False

        performer = f"user {user_id}" if user_id else "payment provider"
        logger.info(
            f"ORDER_STATUS_TRANSITION: Order {order_id} {from_status.value} -> {to_status.value} "
            f"by {performer}: {cls.TRANSITIONS[(from_status, to_status)]}"
        )
        return True
