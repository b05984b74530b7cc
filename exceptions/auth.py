"""
Authentication and authorization exceptions.
"""

from .base import ShopException, ValidationError


class AuthException(ShopException):
    """Base exception for credential errors."""
    pass


class Unauthenticated(AuthException):
    """Raised when the credential is missing, malformed, expired or wrong."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class Unauthorized(AuthException):
    """Raised when an authenticated caller may not perform the action."""

    def __init__(self, message: str = "Not allowed", user_id: int | None = None):
        super().__init__(message, details={'user_id': user_id} if user_id else None)
        self.user_id = user_id


class EmailAlreadyRegisteredError(ValidationError):
    """Raised on signup with an e-mail that already has an account."""

    def __init__(self):
        super().__init__("User with this email already exists", field="email")
