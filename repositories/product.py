from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute
from models.product import Product, ProductDTO


def _escape_like(value: str) -> str:
    return value.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')


class ProductRepository:

    @staticmethod
    async def get_by_id(product_id: int, session: AsyncSession | Session) -> ProductDTO | None:
        stmt = select(Product).where(Product.id == product_id)
        product = await session_execute(stmt, session)
        product = product.scalar()
        if product is None:
            return None
        return ProductDTO.model_validate(product, from_attributes=True)

    @staticmethod
    async def get_filtered(session: AsyncSession | Session,
                           category: str | None = None,
                           min_price: Decimal | None = None,
                           max_price: Decimal | None = None,
                           search: str | None = None,
                           offset: int = 0,
                           limit: int = 10) -> list[ProductDTO]:
        """
        Catalog page filtered on base price, exact category and
        case-insensitive name substring.
        """
        stmt = select(Product)
        if category:
            stmt = stmt.where(Product.category == category)
        if min_price is not None:
            stmt = stmt.where(Product.price >= min_price)
        if max_price is not None:
            stmt = stmt.where(Product.price <= max_price)
        if search:
            stmt = stmt.where(Product.name.ilike(f"%{_escape_like(search)}%", escape='\\'))
        stmt = stmt.order_by(Product.id).offset(offset).limit(limit)

        products = await session_execute(stmt, session)
        return [ProductDTO.model_validate(p, from_attributes=True) for p in products.scalars().all()]

    @staticmethod
    async def lock_inventory(product_ids: list[int], session: AsyncSession | Session) -> dict[int, int | None]:
        """
        Current inventory of the given products, locking their rows.

        Rows are locked in id order so concurrent checkouts cannot deadlock.
        SQLite ignores FOR UPDATE; there the caller's write transaction
        (BEGIN IMMEDIATE) holds the lock.
        """
        if not product_ids:
            return {}
        stmt = (select(Product.id, Product.inventory)
                .where(Product.id.in_(product_ids))
                .order_by(Product.id)
                .with_for_update(of=Product))
        rows = await session_execute(stmt, session)
        return {row[0]: row[1] for row in rows.all()}

    @staticmethod
    async def decrement_inventory(product_id: int, quantity: int, session: AsyncSession | Session) -> bool:
        """
        Conditional decrement; True only if the row had at least ``quantity`` units.
        """
        stmt = (update(Product)
                .where(Product.id == product_id,
                       Product.inventory.is_not(None),
                       Product.inventory >= quantity)
                .values(inventory=Product.inventory - quantity)
                .execution_options(synchronize_session=False))
        result = await session_execute(stmt, session)
        return result.rowcount == 1

    @staticmethod
    async def restore_inventory(product_id: int, quantity: int, session: AsyncSession | Session) -> None:
        """Put back units taken by ``decrement_inventory``. Untracked products are left alone."""
        stmt = (update(Product)
                .where(Product.id == product_id, Product.inventory.is_not(None))
                .values(inventory=Product.inventory + quantity)
                .execution_options(synchronize_session=False))
        await session_execute(stmt, session)
