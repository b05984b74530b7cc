"""
Payment-related exceptions.
"""

from .base import ShopException


class PaymentException(ShopException):
    """Base exception for payment-related errors."""
    pass


class PaymentInitiationError(PaymentException):
    """Raised when a payment request cannot be created at the provider."""

    def __init__(self, reason: str, order_id: int | None = None):
        super().__init__(
            f"Payment initiation failed: {reason}",
            details={'order_id': order_id, 'reason': reason}
        )
        self.reason = reason
        self.order_id = order_id


class PaymentProviderError(PaymentException):
    """Raised by provider clients on network, timeout or non-2xx responses."""

    def __init__(self, reason: str, status_code: int | None = None):
        super().__init__(
            f"Payment provider error: {reason}",
            details={'status_code': status_code} if status_code else None
        )
        self.reason = reason
        self.status_code = status_code


class InvalidSignatureError(PaymentException):
    """Raised when a webhook body does not match its signature."""

    def __init__(self, message: str = "Invalid signature"):
        super().__init__(message)
