"""
Base exception classes for the shop backend.
"""


class ShopException(Exception):
    """
    Base exception for all shop errors.

    All domain exceptions inherit from this class so the HTTP layer can
    translate them with a single handler.

    Attributes:
        message: Human-readable error message
        details: Optional dict with additional context (entity IDs, states, etc.)
    """

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        if self.details:
            details_str = ', '.join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.__class__.__name__}('{self.message}', {details_str})"
        return f"{self.__class__.__name__}('{self.message}')"


class ValidationError(ShopException):
    """Raised for missing or malformed input. Detected before any mutation."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message, details={'field': field} if field else None)
        self.field = field


class NotFoundError(ShopException):
    """
    Raised when an entity is absent or not owned by the caller.

    Both cases share one message so callers cannot tell whether the resource exists.
    """

    def __init__(self, entity: str, entity_id: int | str | None = None):
        super().__init__(
            f"{entity} not found",
            details={'entity': entity, 'entity_id': entity_id}
        )
        self.entity = entity
        self.entity_id = entity_id


class InternalError(ShopException):
    """Unexpected persistence or provider fault."""

    def __init__(self, message: str = "Internal server error", details: dict | None = None):
        super().__init__(message, details)
