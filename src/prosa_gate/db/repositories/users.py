from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from prosa_gate.auth.models import Role
from prosa_gate.db.models import User


class UserRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, *, username: str, password_hash: str, role: Role) -> User:
        user = User(username=username, password_hash=password_hash, role=role)
        self._session.add(user)
        await self._session.flush()
        return user

    async def get(self, user_id: str) -> User | None:
        return await self._session.get(User, user_id)

    async def get_by_username(self, username: str) -> User | None:
        stmt = select(User).where(User.username == username)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def exists(self, user_id: str) -> bool:
        stmt = select(User.id).where(User.id == user_id)
        return (await self._session.execute(stmt)).scalar_one_or_none() is not None
