"""
Translation of domain exceptions into HTTP responses.

4xx bodies carry the exception message and its details. 5xx bodies carry
only a correlation id; the traceback goes to the log under the same id.
"""

import logging
import uuid
from datetime import datetime

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from exceptions import (
    ShopException,
    ValidationError,
    Unauthenticated,
    Unauthorized,
    NotFoundError,
    EmptyCartError,
    InsufficientInventoryError,
    InvalidOrderStateError,
    PaymentInitiationError,
    InvalidSignatureError,
)

logger = logging.getLogger(__name__)

# First match wins; subclasses before their bases
STATUS_BY_EXCEPTION: list[tuple[type[ShopException], int]] = [
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (Unauthenticated, status.HTTP_401_UNAUTHORIZED),
    (Unauthorized, status.HTTP_403_FORBIDDEN),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (EmptyCartError, status.HTTP_400_BAD_REQUEST),
    (InsufficientInventoryError, status.HTTP_409_CONFLICT),
    (InvalidOrderStateError, status.HTTP_409_CONFLICT),
    (PaymentInitiationError, status.HTTP_502_BAD_GATEWAY),
    (InvalidSignatureError, status.HTTP_400_BAD_REQUEST),
]

GENERIC_ERROR = "Internal server error"


def generate_correlation_id() -> str:
    """Generate unique correlation ID for request tracing."""
    return f"{datetime.now().strftime('%Y%m%d-%H%M%S')}-{uuid.uuid4().hex[:8]}"


def status_for(exception: Exception) -> int:
    for exception_type, status_code in STATUS_BY_EXCEPTION:
        if isinstance(exception, exception_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def shop_exception_handler(request: Request, exc: ShopException) -> JSONResponse:
    correlation_id = generate_correlation_id()
    status_code = status_for(exc)

    if status_code == status.HTTP_502_BAD_GATEWAY:
        # 502 bodies carry the initiation reason
        logger.error(f"[{correlation_id}] {request.method} {request.url.path}: {exc!r}")
    elif status_code >= 500:
        logger.error(f"[{correlation_id}] {request.method} {request.url.path} failed: {exc!r}")
        return JSONResponse(status_code=status_code,
                            content={"error": GENERIC_ERROR, "correlation_id": correlation_id})
    else:
        logger.info(f"[{correlation_id}] {request.method} {request.url.path} -> {status_code}: {exc!r}")

    content = {"error": exc.message, "correlation_id": correlation_id}
    if exc.details:
        content["details"] = {k: v for k, v in exc.details.items() if v is not None}
    return JSONResponse(status_code=status_code, content=content)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"loc": [str(part) for part in error.get("loc", ())], "msg": str(error.get("msg", ""))}
        for error in exc.errors()
    ]
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST,
                        content={"error": "Invalid request", "details": {"errors": errors}})


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    correlation_id = generate_correlation_id()
    logger.error(f"[{correlation_id}] Unexpected error on {request.method} {request.url.path}", exc_info=exc)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                        content={"error": GENERIC_ERROR, "correlation_id": correlation_id})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ShopException, shop_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
