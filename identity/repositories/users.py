"""
User Repository

Data access for the ``user`` table. Writes are flushed, never committed;
the caller owns the transaction.
"""
from typing import Optional, Sequence, Union
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import load_only

from identity.models.users import User


class UserRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_email(self, email: str, fields: Optional[Sequence[str]] = None) -> Optional[User]:
        """Load a user by email; with ``fields`` only those columns are fetched."""
        query = select(User).where(User.email == email)
        if fields:
            query = query.options(load_only(*(getattr(User, name) for name in fields)))
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def find_by_id(self, user_id: Union[uuid.UUID, str]) -> Optional[User]:
        if isinstance(user_id, str):
            user_id = uuid.UUID(user_id)
        return await self.db.get(User, user_id)

    def create(self, **fields) -> User:
        return User(**fields)

    async def save(self, user: User) -> User:
        self.db.add(user)
        await self.db.flush()
        return user

    async def commit(self) -> None:
        await self.db.commit()

    async def rollback(self) -> None:
        await self.db.rollback()
