"""
Custom exceptions for the shop backend.

Exception Hierarchy:
--------------------
ShopException (base)
├── ValidationError
│   └── EmailAlreadyRegisteredError
├── NotFoundError
│   ├── ProductNotFoundError
│   ├── CartItemNotFoundError
│   ├── OrderNotFoundError
│   └── UserNotFoundError
├── AuthException
│   ├── Unauthenticated
│   └── Unauthorized
├── CartException
│   └── EmptyCartError
├── OrderException
│   ├── InsufficientInventoryError
│   └── InvalidOrderStateError
├── PaymentException
│   ├── PaymentInitiationError
│   ├── PaymentProviderError
│   └── InvalidSignatureError
└── InternalError

Usage:
------
Services raise specific exceptions:
    raise OrderNotFoundError(order_id=123)

The HTTP layer maps them to status codes in web/errors.py.
"""

from .base import ShopException, ValidationError, NotFoundError, InternalError
from .auth import AuthException, Unauthenticated, Unauthorized, EmailAlreadyRegisteredError
from .cart import CartException, EmptyCartError, CartItemNotFoundError
from .order import OrderException, OrderNotFoundError, InsufficientInventoryError, InvalidOrderStateError
from .payment import PaymentException, PaymentInitiationError, PaymentProviderError, InvalidSignatureError
from .product import ProductNotFoundError
from .user import UserNotFoundError

__all__ = [
    # Base
    'ShopException',
    'ValidationError',
    'NotFoundError',
    'InternalError',

    # Auth
    'AuthException',
    'Unauthenticated',
    'Unauthorized',
    'EmailAlreadyRegisteredError',

    # Cart
    'CartException',
    'EmptyCartError',
    'CartItemNotFoundError',

    # Order
    'OrderException',
    'OrderNotFoundError',
    'InsufficientInventoryError',
    'InvalidOrderStateError',

    # Payment
    'PaymentException',
    'PaymentInitiationError',
    'PaymentProviderError',
    'InvalidSignatureError',

    # Catalog / users
    'ProductNotFoundError',
    'UserNotFoundError',
]
