"""
Customer-facing JSON API.

Auth, profile, catalog, cart and orders. Domain exceptions raised by the
services are turned into HTTP responses by web/errors.py; handlers here
only parse input and pick the service call.
"""

import logging
from decimal import Decimal
from typing import Any

from fastapi import APIRouter, Body, Depends, Query, status
from pydantic import AliasChoices, BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from models.cartItem import CartViewDTO
from models.order import CheckoutResultDTO, OrderDetailsDTO
from models.payment import PaymentHandleDTO
from models.product import PricedProductDTO
from models.user import ProfileDTO
from services.auth import AuthService
from services.cart import CartService
from services.order import OrderService
from services.payment import PaymentProvider
from services.product import ProductService
from services.user import UserService
from web.dependencies import get_session, get_payment_provider, current_user_id, optional_user_id

logger = logging.getLogger(__name__)

api_router = APIRouter(prefix="/api", tags=["api"])


class SignupPayload(BaseModel):
    email: str = Field(..., max_length=255)
    password: str = Field(..., max_length=1024)
    name: str | None = Field(None, max_length=255)


class LoginPayload(BaseModel):
    email: str = Field(..., max_length=255)
    password: str = Field(..., max_length=1024)


class AddCartItemPayload(BaseModel):
    product_id: int = Field(..., gt=0, validation_alias=AliasChoices("product_id", "productId"))
    quantity: int = 1


class UpdateCartItemPayload(BaseModel):
    quantity: int


# ============================================================================
# Auth & profile
# ============================================================================

@api_router.post("/auth/signup", status_code=status.HTTP_201_CREATED)
async def signup(payload: SignupPayload, session: AsyncSession = Depends(get_session)) -> ProfileDTO:
    user = await AuthService.signup(payload.email, payload.password, session, name=payload.name)
    return ProfileDTO.model_validate(user, from_attributes=True)


@api_router.post("/auth/login")
async def login(payload: LoginPayload, session: AsyncSession = Depends(get_session)) -> dict:
    return await AuthService.login(payload.email, payload.password, session)


@api_router.get("/users/profile")
async def get_profile(user_id: int = Depends(current_user_id),
                      session: AsyncSession = Depends(get_session)) -> ProfileDTO:
    return await UserService.get_profile(user_id, session)


@api_router.put("/users/profile")
async def update_profile(updates: dict[str, Any] = Body(...),
                         user_id: int = Depends(current_user_id),
                         session: AsyncSession = Depends(get_session)) -> dict:
    profile = await UserService.update_profile(user_id, updates, session)
    return {"message": "Profile updated successfully", "profile": profile}


# ============================================================================
# Catalog
# ============================================================================

@api_router.get("/products")
async def list_products(category: str | None = Query(None),
                        min_price: Decimal | None = Query(None, alias="minPrice", ge=0),
                        max_price: Decimal | None = Query(None, alias="maxPrice", ge=0),
                        search: str | None = Query(None, max_length=255),
                        page: int = Query(1),
                        limit: int = Query(10),
                        user_id: int | None = Depends(optional_user_id),
                        session: AsyncSession = Depends(get_session)) -> list[PricedProductDTO]:
    return await ProductService.list_products(
        session,
        user_id=user_id,
        category=category,
        min_price=min_price,
        max_price=max_price,
        search=search,
        page=page,
        limit=limit,
    )


@api_router.get("/products/{product_id}")
async def get_product(product_id: int,
                      user_id: int | None = Depends(optional_user_id),
                      session: AsyncSession = Depends(get_session)) -> PricedProductDTO:
    return await ProductService.get_product(product_id, session, user_id=user_id)


# ============================================================================
# Cart
# ============================================================================

@api_router.get("/cart")
async def get_cart(user_id: int = Depends(current_user_id),
                   session: AsyncSession = Depends(get_session)) -> CartViewDTO:
    return await CartService.get_cart(user_id, session)


@api_router.post("/cart/items")
async def add_cart_item(payload: AddCartItemPayload,
                        user_id: int = Depends(current_user_id),
                        session: AsyncSession = Depends(get_session)) -> CartViewDTO:
    return await CartService.add_item(user_id, payload.product_id, payload.quantity, session)


@api_router.put("/cart/items/{cart_item_id}")
async def update_cart_item(cart_item_id: int,
                           payload: UpdateCartItemPayload,
                           user_id: int = Depends(current_user_id),
                           session: AsyncSession = Depends(get_session)) -> CartViewDTO:
    return await CartService.update_item(user_id, cart_item_id, payload.quantity, session)


@api_router.delete("/cart/items/{cart_item_id}")
async def remove_cart_item(cart_item_id: int,
                           user_id: int = Depends(current_user_id),
                           session: AsyncSession = Depends(get_session)) -> CartViewDTO:
    return await CartService.remove_item(user_id, cart_item_id, session)


# ============================================================================
# Orders
# ============================================================================

@api_router.post("/orders", status_code=status.HTTP_201_CREATED)
async def create_order(user_id: int = Depends(current_user_id),
                       payment_provider: PaymentProvider = Depends(get_payment_provider),
                       session: AsyncSession = Depends(get_session)) -> CheckoutResultDTO:
    return await OrderService.create_order(user_id, payment_provider, session)


@api_router.get("/orders")
async def list_orders(user_id: int = Depends(current_user_id),
                      session: AsyncSession = Depends(get_session)) -> list[OrderDetailsDTO]:
    return await OrderService.list_orders(user_id, session)


@api_router.get("/orders/{order_id}")
async def get_order(order_id: int,
                    user_id: int = Depends(current_user_id),
                    session: AsyncSession = Depends(get_session)) -> OrderDetailsDTO:
    return await OrderService.get_order(user_id, order_id, session)


@api_router.post("/orders/{order_id}/retry-payment")
async def retry_payment(order_id: int,
                        user_id: int = Depends(current_user_id),
                        payment_provider: PaymentProvider = Depends(get_payment_provider),
                        session: AsyncSession = Depends(get_session)) -> PaymentHandleDTO:
    return await OrderService.retry_payment(user_id, order_id, payment_provider, session)
