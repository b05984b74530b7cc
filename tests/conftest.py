"""
Pytest configuration and fixtures for tests.

This file is automatically loaded by pytest and provides shared fixtures
and configuration for all tests.
"""

import sys
import os
import itertools
from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy import select, func

# Add parent directory to Python path so tests can import modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

# Deterministic environment before anything imports config
import test_config  # noqa: F401

from db import build_engine, build_session_maker
from enums.discount_type import DiscountType
from enums.order_status import OrderStatus
from exceptions.payment import PaymentProviderError
from models.base import Base
from models.cart import Cart
from models.cartItem import CartItem
from models.discount_rule import DiscountRule
from models.order import Order
from models.orderItem import OrderItem
from models.payment import PaymentHandleDTO
from models.pricing_tier import PricingTier
from models.product import Product
from models.user import User
from services.payment import PaymentProvider
from utils.password_hasher import hash_password

DEFAULT_PASSWORD = "correct-horse-42"


# ============================================================================
# Payment Provider Fake
# ============================================================================

class FakePaymentProvider(PaymentProvider):
    """
    In-memory provider. Records every request; ``fail_with`` makes the next
    calls raise instead.
    """

    def __init__(self):
        self.requests: list[dict] = []
        self.fail_with: Exception | None = None
        self.opened = False
        self.closed = False
        self._counter = itertools.count(1)

    async def create_payment_request(self, amount_minor_units: int, currency: str, reference: str) -> PaymentHandleDTO:
        self.requests.append({"amount": amount_minor_units, "currency": currency, "reference": reference})
        if self.fail_with is not None:
            raise self.fail_with
        payment_id = f"pay_{next(self._counter)}"
        return PaymentHandleDTO(
            reference=payment_id,
            amount_minor_units=amount_minor_units,
            currency=currency,
            client_secret=f"{payment_id}_secret",
        )

    async def open(self) -> None:
        self.opened = True

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def payment_provider():
    return FakePaymentProvider()


@pytest.fixture
def failing_payment_provider():
    provider = FakePaymentProvider()
    provider.fail_with = PaymentProviderError("HTTP 503", status_code=503)
    return provider


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest_asyncio.fixture
async def test_engine():
    """Create test database engine (in-memory SQLite, one shared connection)."""
    engine = build_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def test_session_maker(test_engine):
    return build_session_maker(test_engine)


@pytest_asyncio.fixture
async def test_session(test_session_maker):
    """
    Create test database session.

    The in-memory database has a single connection, so a test uses this one
    session throughout.
    """
    async with test_session_maker() as session:
        yield session
        await session.rollback()


# ============================================================================
# Seed Data
# ============================================================================

class ShopSeeder:
    """Inserts rows directly through the ORM and commits after each one."""

    def __init__(self, session):
        self.session = session

    async def _add(self, instance):
        self.session.add(instance)
        await self.session.commit()
        return instance.id

    async def tier(self, name: str = "Gold") -> int:
        return await self._add(PricingTier(name=name))

    async def user(self, email: str = "alice@example.com", pricing_tier_id: int | None = None,
                   password: str = DEFAULT_PASSWORD, name: str | None = None) -> int:
        return await self._add(User(
            email=email,
            password_hash=hash_password(password, 1000),
            name=name,
            pricing_tier_id=pricing_tier_id,
        ))

    async def product(self, name: str = "Widget", price: str = "10.00", inventory: int | None = 10,
                      category: str | None = None) -> int:
        return await self._add(Product(name=name, price=Decimal(price), inventory=inventory, category=category))

    async def rule(self, type: DiscountType, value: str, product_id: int | None = None,
                   pricing_tier_id: int | None = None, minimum_quantity: int | None = None,
                   minimum_order_amount: str | None = None, is_active: bool = True) -> int:
        return await self._add(DiscountRule(
            type=type,
            value=Decimal(value),
            is_active=is_active,
            applicable_to_product_id=product_id,
            applicable_to_pricing_tier_id=pricing_tier_id,
            minimum_quantity=minimum_quantity,
            minimum_order_amount=Decimal(minimum_order_amount) if minimum_order_amount is not None else None,
        ))

    async def cart_item(self, user_id: int, product_id: int, quantity: int) -> int:
        cart_id = await self.session.scalar(select(Cart.id).where(Cart.user_id == user_id))
        if cart_id is None:
            cart_id = await self._add(Cart(user_id=user_id))
        return await self._add(CartItem(cart_id=cart_id, product_id=product_id, quantity=quantity))

    async def order(self, user_id: int, total_amount: str = "10.00",
                    status: OrderStatus = OrderStatus.PENDING_PAYMENT,
                    payment_reference: str | None = None) -> int:
        return await self._add(Order(
            user_id=user_id,
            status=status,
            total_amount=Decimal(total_amount),
            currency="USD",
            payment_reference=payment_reference,
        ))


@pytest.fixture
def seed(test_session):
    return ShopSeeder(test_session)


# ============================================================================
# State Readers (column queries always hit the database)
# ============================================================================

async def read_inventory(session, product_id: int) -> int | None:
    return await session.scalar(select(Product.inventory).where(Product.id == product_id))


async def read_order_status(session, order_id: int) -> OrderStatus | None:
    return await session.scalar(select(Order.status).where(Order.id == order_id))


async def read_order_reference(session, order_id: int) -> str | None:
    return await session.scalar(select(Order.payment_reference).where(Order.id == order_id))


async def count_orders(session, user_id: int | None = None) -> int:
    stmt = select(func.count(Order.id))
    if user_id is not None:
        stmt = stmt.where(Order.user_id == user_id)
    return await session.scalar(stmt)


async def count_order_items(session) -> int:
    return await session.scalar(select(func.count(OrderItem.id)))


async def count_cart_items(session, user_id: int) -> int:
    stmt = (select(func.count(CartItem.id))
            .join(Cart, Cart.id == CartItem.cart_id)
            .where(Cart.user_id == user_id))
    return await session.scalar(stmt)


@pytest.fixture
def db_state():
    """Namespace of the state readers above."""
    class _State:
        inventory = staticmethod(read_inventory)
        order_status = staticmethod(read_order_status)
        order_reference = staticmethod(read_order_reference)
        orders = staticmethod(count_orders)
        order_items = staticmethod(count_order_items)
        cart_items = staticmethod(count_cart_items)
    return _State
