from typing import AsyncIterator

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from db import get_db_session
from exceptions.auth import Unauthenticated
from services.auth import AuthService
from services.payment import PaymentProvider

bearer_scheme = HTTPBearer(auto_error=False)


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    """One session per request, from the session maker the app was built with."""
    async with get_db_session(request.app.state.session_maker) as session:
        yield session


def get_payment_provider(request: Request) -> PaymentProvider:
    return request.app.state.payment_provider


def current_user_id(credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme)) -> int:
    if credentials is None:
        raise Unauthenticated("Authentication required")
    return AuthService.authenticate(credentials.credentials)


def optional_user_id(credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme)) -> int | None:
    """Anonymous callers get None; a token that is present must still be valid."""
    if credentials is None:
        return None
    return AuthService.authenticate(credentials.credentials)
