"""
Cart-related exceptions.
"""

from .base import ShopException, NotFoundError


class CartException(ShopException):
    """Base exception for cart-related errors."""
    pass


class EmptyCartError(CartException):
    """Raised when checking out a missing or empty cart."""

    def __init__(self, user_id: int):
        super().__init__(
            "Cart is empty",
            details={'user_id': user_id}
        )
        self.user_id = user_id


class CartItemNotFoundError(NotFoundError):
    """Raised when a cart item is missing or belongs to another user's cart."""

    def __init__(self, cart_item_id: int):
        super().__init__("Cart item", cart_item_id)
        self.cart_item_id = cart_item_id
