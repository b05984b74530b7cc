"""
Bearer token signing and validation.

Tokens are HS256 JWTs signed with the auth secret, carrying the user id as
``sub`` and the expiry as ``exp``.
"""

import time
import logging

import jwt

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


class TokenValidationError(Exception):
    """Raised when a bearer token fails validation."""
    pass


def issue_token(user_id: int, secret: str, ttl_seconds: int, now: float | None = None) -> tuple[str, int]:
    """
    Create a signed token for ``user_id``.

    Returns:
        (token, expires_at)
    """
    if not secret:
        raise TokenValidationError("Auth secret not configured")

    issued_at = int(now if now is not None else time.time())
    expires_at = issued_at + ttl_seconds
    token = jwt.encode({"sub": str(user_id), "iat": issued_at, "exp": expires_at}, secret, algorithm=ALGORITHM)
    return token, expires_at


def verify_token(token: str, secret: str) -> int:
    """
    Validate a token and return the user id it was issued for.

    Raises:
        TokenValidationError: On malformed, forged or expired tokens
    """
    if not token:
        raise TokenValidationError("No token provided")

    if not secret:
        raise TokenValidationError("Auth secret not configured")

    try:
        claims = jwt.decode(token, secret, algorithms=[ALGORITHM], options={"require": ["sub", "exp"]})
    except jwt.ExpiredSignatureError:
        raise TokenValidationError("Token expired")
    except jwt.InvalidSignatureError:
        logger.warning("Token signature mismatch")
        raise TokenValidationError("Invalid signature")
    except jwt.InvalidTokenError as e:
        raise TokenValidationError(f"Malformed token: {e}")

    try:
        return int(claims["sub"])
    except (TypeError, ValueError):
        raise TokenValidationError("Malformed token: subject is not a user id")
