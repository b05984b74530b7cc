import logging
from functools import lru_cache

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

import config
from db import session_commit
from exceptions.auth import Unauthenticated, EmailAlreadyRegisteredError
from exceptions.base import ValidationError
from models.user import UserDTO
from repositories.user import UserRepository
from utils.auth_token import issue_token, verify_token, TokenValidationError
from utils.password_hasher import hash_password, verify_password

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    # Checked for unknown e-mails so both failure paths run one key derivation
    return hash_password("unknown-user", config.PASSWORD_HASH_ITERATIONS)


class AuthService:

    @staticmethod
    def normalize_email(email: str | None) -> str:
        email = (email or "").strip().lower()
        if not email or "@" not in email or email.startswith("@") or email.endswith("@"):
            raise ValidationError("A valid email is required", field="email")
        return email

    @staticmethod
    async def signup(email: str, password: str, session: AsyncSession | Session, name: str | None = None) -> UserDTO:
        email = AuthService.normalize_email(email)
        if not password or len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters", field="password")

        if await UserRepository.exists_by_email(email, session):
            raise EmailAlreadyRegisteredError()

        user = await UserRepository.create(
            UserDTO(email=email, name=name.strip() if name and name.strip() else None),
            hash_password(password, config.PASSWORD_HASH_ITERATIONS),
            session
        )
        await session_commit(session)
        logger.info(f"[Auth] User {user.id} signed up")
        return user

    @staticmethod
    async def login(email: str, password: str, session: AsyncSession | Session) -> dict:
        """
        Exchange credentials for a bearer token.

        Unknown e-mail and wrong password raise the same Unauthenticated error.
        """
        try:
            email = AuthService.normalize_email(email)
        except ValidationError:
            raise Unauthenticated("Invalid credentials")

        credentials = await UserRepository.get_credentials(email, session)
        if credentials is None:
            verify_password(password or "", _dummy_hash())
            raise Unauthenticated("Invalid credentials")

        user_id, password_hash = credentials
        if not verify_password(password or "", password_hash):
            logger.warning(f"[Auth] Failed login for user {user_id}")
            raise Unauthenticated("Invalid credentials")

        token, expires_at = issue_token(user_id, config.AUTH_SECRET, config.TOKEN_TTL_SECONDS)
        logger.info(f"[Auth] User {user_id} logged in")
        return {"token": token, "token_type": "bearer", "expires_at": expires_at}

    @staticmethod
    def authenticate(token: str | None) -> int:
        """User id carried by a valid bearer token."""
        try:
            return verify_token(token or "", config.AUTH_SECRET)
        except TokenValidationError as e:
            logger.debug(f"[Auth] Token rejected: {e}")
            raise Unauthenticated("Invalid or expired token")
