"""User repository: key-based lookup and save for users."""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bankcards.database import flush
from bankcards.models.user import User
from bankcards.paging import PageParams, apply_page


class UserRepository:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_id(self, user_id: uuid.UUID, *, for_update: bool = False) -> User | None:
        query = select(User).where(User.id == user_id)
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def find_by_username(self, username: str) -> User | None:
        result = await self.db.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    async def find_all(self, params: PageParams) -> list[User]:
        result = await self.db.execute(apply_page(select(User), User, params))
        return list(result.scalars().all())

    async def save(self, user: User) -> User:
        self.db.add(user)
        await flush(self.db)
        return user
