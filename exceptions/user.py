"""
User-related exceptions.
"""

from .base import NotFoundError


class UserNotFoundError(NotFoundError):
    """Raised when user is not found in database."""

    def __init__(self, user_id: int):
        super().__init__("User", user_id)
        self.user_id = user_id
