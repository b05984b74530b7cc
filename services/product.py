import logging
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

import config
from exceptions.base import ValidationError
from exceptions.product import ProductNotFoundError
from models.product import PricedProductDTO, ProductDTO
from models.discount_rule import DiscountRuleDTO
from repositories.discount_rule import DiscountRuleRepository
from repositories.product import ProductRepository
from repositories.user import UserRepository
from services.pricing import PricingService
from utils.money import round_money

logger = logging.getLogger(__name__)


class ProductService:

    @staticmethod
    async def _pricing_context(user_id: int | None, session: AsyncSession | Session) -> tuple[int | None, list[DiscountRuleDTO]]:
        # Anonymous callers have no tier and see general rules only
        pricing_tier_id = await UserRepository.get_pricing_tier_id(user_id, session) if user_id else None
        rules = await DiscountRuleRepository.get_active_for_tier(pricing_tier_id, session)
        return pricing_tier_id, rules

    @staticmethod
    def _priced(product: ProductDTO, pricing_tier_id: int | None, rules: list[DiscountRuleDTO]) -> PricedProductDTO:
        return PricedProductDTO(
            id=product.id,
            name=product.name,
            category=product.category,
            price=PricingService.effective_unit_price(product, None, pricing_tier_id, rules),
            base_price=round_money(product.price),
            inventory=product.inventory,
        )

    @staticmethod
    async def list_products(session: AsyncSession | Session,
                            user_id: int | None = None,
                            category: str | None = None,
                            min_price: Decimal | None = None,
                            max_price: Decimal | None = None,
                            search: str | None = None,
                            page: int = 1,
                            limit: int = 10) -> list[PricedProductDTO]:
        """
        One catalog page priced for the caller.

        Price filters compare against base price. Listing has no quantity
        context, so minimum-quantity gates are not applied.
        """
        if page < 1:
            raise ValidationError("page must be >= 1", field="page")
        if limit < 1 or limit > config.PRODUCTS_PAGE_SIZE_MAX:
            raise ValidationError(f"limit must be between 1 and {config.PRODUCTS_PAGE_SIZE_MAX}", field="limit")
        if min_price is not None and max_price is not None and min_price > max_price:
            raise ValidationError("minPrice must not exceed maxPrice", field="minPrice")

        products = await ProductRepository.get_filtered(
            session,
            category=category,
            min_price=min_price,
            max_price=max_price,
            search=search.strip() if search else None,
            offset=(page - 1) * limit,
            limit=limit,
        )
        pricing_tier_id, rules = await ProductService._pricing_context(user_id, session)
        return [ProductService._priced(p, pricing_tier_id, rules) for p in products]

    @staticmethod
    async def get_product(product_id: int, session: AsyncSession | Session, user_id: int | None = None) -> PricedProductDTO:
        product = await ProductRepository.get_by_id(product_id, session)
        if product is None:
            raise ProductNotFoundError(product_id)
        pricing_tier_id, rules = await ProductService._pricing_context(user_id, session)
        return ProductService._priced(product, pricing_tier_id, rules)
