from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute, session_flush, session_refresh
from models.user import UserDTO, User


class UserRepository:
    @staticmethod
    async def get_by_id(user_id: int, session: AsyncSession | Session) -> UserDTO | None:
        stmt = select(User).where(User.id == user_id)
        user = await session_execute(stmt, session)
        user = user.scalar()
        if user is not None:
            return UserDTO.model_validate(user, from_attributes=True)
        else:
            return user

    @staticmethod
    async def get_credentials(email: str, session: AsyncSession | Session) -> tuple[int, str] | None:
        """(user id, password hash) for a login attempt, or None for unknown e-mail."""
        stmt = select(User.id, User.password_hash).where(User.email == email)
        row = await session_execute(stmt, session)
        row = row.first()
        return (row[0], row[1]) if row is not None else None

    @staticmethod
    async def exists_by_email(email: str, session: AsyncSession | Session) -> bool:
        stmt = select(User.id).where(User.email == email)
        result = await session_execute(stmt, session)
        return result.scalar() is not None

    @staticmethod
    async def get_pricing_tier_id(user_id: int, session: AsyncSession | Session) -> int | None:
        stmt = select(User.pricing_tier_id).where(User.id == user_id)
        result = await session_execute(stmt, session)
        return result.scalar()

    @staticmethod
    async def create(user_dto: UserDTO, password_hash: str, session: Session | AsyncSession) -> UserDTO:
        user = User(**user_dto.model_dump(exclude_none=True), password_hash=password_hash)
        session.add(user)
        await session_flush(session)
        await session_refresh(user, session)
        return UserDTO.model_validate(user, from_attributes=True)

    @staticmethod
    async def update(user_id: int, values: dict, session: Session | AsyncSession) -> None:
        stmt = update(User).where(User.id == user_id).values(**values)
        await session_execute(stmt, session)
