from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_commit
from exceptions.base import ValidationError
from exceptions.user import UserNotFoundError
from models.user import ProfileDTO
from repositories.user import UserRepository

PROTECTED_FIELDS = ("id", "email", "role")
UPDATABLE_FIELDS = ("name",)


class UserService:

    @staticmethod
    async def get_profile(user_id: int, session: AsyncSession | Session) -> ProfileDTO:
        user = await UserRepository.get_by_id(user_id, session)
        if user is None:
            raise UserNotFoundError(user_id)
        return ProfileDTO.model_validate(user, from_attributes=True)

    @staticmethod
    async def update_profile(user_id: int, updates: dict, session: AsyncSession | Session) -> ProfileDTO:
        """
        Apply profile changes. Only ``name`` may change; identity fields are refused.
        """
        if any(field in updates for field in PROTECTED_FIELDS):
            raise ValidationError("Cannot update sensitive fields")

        unknown = sorted(set(updates) - set(UPDATABLE_FIELDS))
        if unknown:
            raise ValidationError(f"Unknown profile field(s): {', '.join(unknown)}", field=unknown[0])

        values = {}
        if "name" in updates:
            name = updates["name"]
            if not isinstance(name, str) or not name.strip():
                raise ValidationError("Name must be a non-empty string", field="name")
            values["name"] = name.strip()

        if await UserRepository.get_by_id(user_id, session) is None:
            raise UserNotFoundError(user_id)

        if values:
            await UserRepository.update(user_id, values, session)
            await session_commit(session)

        return await UserService.get_profile(user_id, session)
