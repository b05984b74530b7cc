"""
Catalog exceptions.
"""

from .base import NotFoundError


class ProductNotFoundError(NotFoundError):
    """Raised when a product id does not exist."""

    def __init__(self, product_id: int):
        super().__init__("Product", product_id)
        self.product_id = product_id
