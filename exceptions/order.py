"""
Order-related exceptions.
"""

from .base import ShopException, NotFoundError


class OrderException(ShopException):
    """Base exception for order-related errors."""
    pass


class OrderNotFoundError(NotFoundError):
    """Raised when an order is missing or owned by someone else."""

    def __init__(self, order_id: int):
        super().__init__("Order", order_id)
        self.order_id = order_id


class InsufficientInventoryError(OrderException):
    """Raised when a line item asks for more units than are in stock."""

    def __init__(self, product_id: int, product_name: str | None, requested: int, available: int):
        label = product_name or f"product {product_id}"
        super().__init__(
            f"Insufficient inventory for {label}: requested {requested}, available {available}",
            details={
                'product_id': product_id,
                'product_name': product_name,
                'requested': requested,
                'available': available,
            }
        )
        self.product_id = product_id
        self.product_name = product_name
        self.requested = requested
        self.available = available


class InvalidOrderStateError(OrderException):
    """Raised when order is in invalid state for requested operation."""

    def __init__(self, order_id: int, current_state: str, required_state: str):
        super().__init__(
            f"Order {order_id} is in state '{current_state}', required '{required_state}'",
            details={'order_id': order_id, 'current_state': current_state, 'required_state': required_state}
        )
        self.order_id = order_id
        self.current_state = current_state
        self.required_state = required_state
