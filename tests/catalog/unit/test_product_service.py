"""
Unit Tests: ProductService

Listing filters, pagination and per-caller pricing.
"""

from decimal import Decimal

import pytest
import pytest_asyncio

from enums.discount_type import DiscountType
from exceptions.base import ValidationError
from exceptions.product import ProductNotFoundError
from services.product import ProductService


@pytest_asyncio.fixture
async def catalog(seed):
    ids = {}
    ids["chair"] = await seed.product("Office Chair", "120.00", inventory=4, category="furniture")
    ids["desk"] = await seed.product("Standing Desk", "450.00", inventory=None, category="furniture")
    ids["lamp"] = await seed.product("Desk Lamp", "35.50", inventory=12, category="lighting")
    ids["pct"] = await seed.product("100% Cotton_Cover", "15.00", inventory=3, category="textiles")
    return ids


class TestListProducts:

    @pytest.mark.asyncio
    async def test_lists_all_in_id_order(self, test_session, catalog):
        products = await ProductService.list_products(test_session)
        assert [p.id for p in products] == [catalog["chair"], catalog["desk"], catalog["lamp"], catalog["pct"]]
        assert products[1].inventory is None

    @pytest.mark.asyncio
    async def test_category_filter(self, test_session, catalog):
        products = await ProductService.list_products(test_session, category="furniture")
        assert {p.name for p in products} == {"Office Chair", "Standing Desk"}

    @pytest.mark.asyncio
    async def test_price_range_uses_base_price(self, test_session, seed, catalog):
        await seed.rule(DiscountType.PERCENTAGE, "0.5")

        products = await ProductService.list_products(
            test_session, min_price=Decimal("100"), max_price=Decimal("200")
        )

        assert [p.name for p in products] == ["Office Chair"]
        assert products[0].base_price == Decimal("120.00")
        assert products[0].price == Decimal("60.00")

    @pytest.mark.asyncio
    async def test_search_case_insensitive_substring(self, test_session, catalog):
        products = await ProductService.list_products(test_session, search="desk")
        assert {p.name for p in products} == {"Standing Desk", "Desk Lamp"}

    @pytest.mark.asyncio
    async def test_search_wildcards_are_literal(self, test_session, catalog):
        assert [p.name for p in await ProductService.list_products(test_session, search="100%")] == \
               ["100% Cotton_Cover"]
        assert await ProductService.list_products(test_session, search="k_L") == []

    @pytest.mark.asyncio
    async def test_pagination(self, test_session, catalog):
        first = await ProductService.list_products(test_session, page=1, limit=3)
        second = await ProductService.list_products(test_session, page=2, limit=3)
        assert len(first) == 3
        assert [p.id for p in second] == [catalog["pct"]]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("kwargs", [
        {"page": 0},
        {"limit": 0},
        {"limit": 101},
        {"min_price": Decimal("10"), "max_price": Decimal("5")},
    ])
    async def test_invalid_arguments(self, test_session, kwargs):
        with pytest.raises(ValidationError):
            await ProductService.list_products(test_session, **kwargs)

    @pytest.mark.asyncio
    async def test_tier_pricing_for_members_only(self, test_session, seed, catalog):
        gold = await seed.tier("Gold")
        member = await seed.user("m@example.com", pricing_tier_id=gold)
        await seed.rule(DiscountType.FIXED, "20", pricing_tier_id=gold)

        anonymous = await ProductService.list_products(test_session, category="furniture")
        priced = await ProductService.list_products(test_session, user_id=member, category="furniture")

        assert [p.price for p in anonymous] == [Decimal("120.00"), Decimal("450.00")]
        assert [p.price for p in priced] == [Decimal("100.00"), Decimal("430.00")]

    @pytest.mark.asyncio
    async def test_listing_skips_quantity_gates_and_cart_rules(self, test_session, seed, catalog):
        await seed.rule(DiscountType.FIXED, "5", product_id=catalog["lamp"], minimum_quantity=10)
        await seed.rule(DiscountType.FIXED, "30", minimum_order_amount="1")

        lamp = await ProductService.get_product(catalog["lamp"], test_session)

        assert lamp.price == Decimal("30.50")


class TestGetProduct:

    @pytest.mark.asyncio
    async def test_get_product(self, test_session, catalog):
        chair = await ProductService.get_product(catalog["chair"], test_session)
        assert (chair.name, chair.category, chair.price, chair.inventory) == \
               ("Office Chair", "furniture", Decimal("120.00"), 4)

    @pytest.mark.asyncio
    async def test_missing_product(self, test_session):
        with pytest.raises(ProductNotFoundError):
            await ProductService.get_product(404, test_session)
