from sqlalchemy import select, update, delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute, session_flush
from models.cart import Cart
from models.cartItem import CartItem, CartItemDTO
from models.product import Product, ProductDTO


class CartItemRepository:
    @staticmethod
    async def get_with_products(cart_id: int, session: AsyncSession | Session) -> list[tuple[CartItemDTO, ProductDTO]]:
        stmt = (select(CartItem, Product)
                .join(Product, Product.id == CartItem.product_id)
                .where(CartItem.cart_id == cart_id)
                .order_by(CartItem.id))
        rows = await session_execute(stmt, session)
        return [
            (CartItemDTO.model_validate(cart_item, from_attributes=True),
             ProductDTO.model_validate(product, from_attributes=True))
            for cart_item, product in rows.all()
        ]

    @staticmethod
    async def get_by_product(cart_id: int, product_id: int, session: AsyncSession | Session) -> CartItemDTO | None:
        stmt = select(CartItem).where(CartItem.cart_id == cart_id, CartItem.product_id == product_id)
        cart_item = await session_execute(stmt, session)
        cart_item = cart_item.scalar()
        if cart_item is None:
            return None
        return CartItemDTO.model_validate(cart_item, from_attributes=True)

    @staticmethod
    async def get_owned(cart_item_id: int, user_id: int, session: AsyncSession | Session) -> CartItemDTO | None:
        """Cart item ``cart_item_id`` if it sits in ``user_id``'s cart, else None."""
        stmt = (select(CartItem)
                .join(Cart, Cart.id == CartItem.cart_id)
                .where(CartItem.id == cart_item_id, Cart.user_id == user_id))
        cart_item = await session_execute(stmt, session)
        cart_item = cart_item.scalar()
        if cart_item is None:
            return None
        return CartItemDTO.model_validate(cart_item, from_attributes=True)

    @staticmethod
    async def create(cart_item_dto: CartItemDTO, session: AsyncSession | Session) -> int:
        cart_item = CartItem(**cart_item_dto.model_dump(exclude_none=True))
        session.add(cart_item)
        await session_flush(session)
        return cart_item.id

    @staticmethod
    async def update_quantity(cart_item_id: int, quantity: int, session: AsyncSession | Session) -> None:
        stmt = update(CartItem).where(CartItem.id == cart_item_id).values(quantity=quantity)
        await session_execute(stmt, session)

    @staticmethod
    async def remove(cart_item_id: int, session: AsyncSession | Session) -> None:
        stmt = delete(CartItem).where(CartItem.id == cart_item_id)
        await session_execute(stmt, session)

    @staticmethod
    async def remove_all(cart_id: int, session: AsyncSession | Session) -> int:
        stmt = delete(CartItem).where(CartItem.cart_id == cart_id)
        result = await session_execute(stmt, session)
        return result.rowcount
