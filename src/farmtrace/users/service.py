"""User lookups and creation for stage attribution."""

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from farmtrace.common.exceptions import PersistenceError
from farmtrace.users.models import ROLES, UserModel


class UserService:
    """Actor management operations."""

    async def create_user(
        self,
        session: AsyncSession,
        full_name: str,
        username: str,
        role: str = "consumer",
    ) -> UserModel:
        if role not in ROLES:
            raise ValueError(f"Unknown role '{role}', expected one of {', '.join(ROLES)}")
        user = UserModel(full_name=full_name, username=username, role=role)
        session.add(user)
        try:
            await session.flush()
        except IntegrityError as exc:
            raise PersistenceError(
                f"Username '{username}' is already taken",
                integrity=True,
            ) from exc
        return user

    async def get_by_id(
        self, session: AsyncSession, user_id: int
    ) -> UserModel | None:
        return await session.get(UserModel, user_id)

    async def get_by_username(
        self, session: AsyncSession, username: str
    ) -> UserModel | None:
        result = await session.execute(
            select(UserModel).where(UserModel.username == username)
        )
        return result.scalar_one_or_none()
