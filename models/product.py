from decimal import Decimal

from pydantic import BaseModel
from sqlalchemy import Column, Integer, String, Numeric, CheckConstraint, Index

from models.base import Base


class Product(Base):
    __tablename__ = 'products'

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    category = Column(String(100), nullable=True)
    price = Column(Numeric(12, 2), nullable=False)
    # NULL means stock is not tracked for this product
    inventory = Column(Integer, nullable=True)

    __table_args__ = (
        CheckConstraint('price >= 0', name='check_product_price_non_negative'),
        CheckConstraint('inventory IS NULL OR inventory >= 0', name='check_product_inventory_non_negative'),
        Index('ix_products_category', 'category'),
    )


class ProductDTO(BaseModel):
    id: int | None = None
    name: str | None = None
    category: str | None = None
    price: Decimal | None = None
    inventory: int | None = None


class PricedProductDTO(BaseModel):
    """Catalog entry with the caller's effective price."""
    id: int
    name: str
    category: str | None = None
    price: Decimal
    base_price: Decimal
    inventory: int | None = None
