import logging

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_commit
from exceptions.base import ValidationError
from exceptions.cart import CartItemNotFoundError
from exceptions.product import ProductNotFoundError
from models.cartItem import CartItemDTO, CartViewDTO
from repositories.cart import CartRepository
from repositories.cartItem import CartItemRepository
from repositories.discount_rule import DiscountRuleRepository
from repositories.product import ProductRepository
from repositories.user import UserRepository
from services.pricing import PricingService

logger = logging.getLogger(__name__)


class CartService:
    """
    Cart reads and mutations.

    Every call returns the cart priced from the current catalog and rule
    set; nothing about prices is stored on cart rows.
    """

    @staticmethod
    async def _priced_view(user_id: int, cart_id: int, session: AsyncSession | Session) -> CartViewDTO:
        pricing_tier_id = await UserRepository.get_pricing_tier_id(user_id, session)
        rules = await DiscountRuleRepository.get_active_for_tier(pricing_tier_id, session)
        lines = await CartItemRepository.get_with_products(cart_id, session)
        return PricingService.calculate_cart(
            [(cart_item.id, product, cart_item.quantity) for cart_item, product in lines],
            pricing_tier_id,
            rules,
        )

    @staticmethod
    def _validate_quantity(quantity, minimum: int) -> None:
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < minimum:
            raise ValidationError(f"Quantity must be an integer >= {minimum}", field="quantity")

    @staticmethod
    async def get_cart(user_id: int, session: AsyncSession | Session) -> CartViewDTO:
        cart = await CartRepository.get_or_create(user_id, session)
        await session_commit(session)
        return await CartService._priced_view(user_id, cart.id, session)

    @staticmethod
    async def add_item(user_id: int, product_id: int, quantity: int, session: AsyncSession | Session) -> CartViewDTO:
        """Add ``quantity`` units; a product already in the cart has its quantity increased."""
        CartService._validate_quantity(quantity, minimum=1)

        product = await ProductRepository.get_by_id(product_id, session)
        if product is None:
            raise ProductNotFoundError(product_id)

        cart = await CartRepository.get_or_create(user_id, session)
        existing = await CartItemRepository.get_by_product(cart.id, product_id, session)
        if existing is None:
            await CartItemRepository.create(
                CartItemDTO(cart_id=cart.id, product_id=product_id, quantity=quantity), session
            )
        else:
            await CartItemRepository.update_quantity(existing.id, existing.quantity + quantity, session)
        await session_commit(session)

        logger.info(f"[Cart] User {user_id} added {quantity}x product {product_id}")
        return await CartService._priced_view(user_id, cart.id, session)

    @staticmethod
    async def update_item(user_id: int, cart_item_id: int, quantity: int, session: AsyncSession | Session) -> CartViewDTO:
        """Set an item's quantity; 0 removes the item."""
        CartService._validate_quantity(quantity, minimum=0)

        cart_item = await CartItemRepository.get_owned(cart_item_id, user_id, session)
        if cart_item is None:
            raise CartItemNotFoundError(cart_item_id)

        if quantity == 0:
            await CartItemRepository.remove(cart_item.id, session)
            logger.info(f"[Cart] User {user_id} removed cart item {cart_item_id} (quantity 0)")
        else:
            await CartItemRepository.update_quantity(cart_item.id, quantity, session)
            logger.info(f"[Cart] User {user_id} set cart item {cart_item_id} to {quantity}")
        await session_commit(session)

        return await CartService._priced_view(user_id, cart_item.cart_id, session)

    @staticmethod
    async def remove_item(user_id: int, cart_item_id: int, session: AsyncSession | Session) -> CartViewDTO:
        cart_item = await CartItemRepository.get_owned(cart_item_id, user_id, session)
        if cart_item is None:
            raise CartItemNotFoundError(cart_item_id)

        await CartItemRepository.remove(cart_item.id, session)
        await session_commit(session)

        logger.info(f"[Cart] User {user_id} removed cart item {cart_item_id}")
        return await CartService._priced_view(user_id, cart_item.cart_id, session)
