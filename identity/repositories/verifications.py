"""
Verification Repository

Single-use email verification codes. At most one row exists per user,
enforced by the unique ``user_id`` column.
"""
from typing import Optional
import uuid

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from identity.core.security import generate_verification_code
from identity.models.users import User, Verification


class VerificationRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    def create(self, user: User) -> Verification:
        return Verification(user=user, code=generate_verification_code())

    async def save(self, verification: Verification) -> Verification:
        self.db.add(verification)
        await self.db.flush()
        return verification

    async def find_by_code(self, code: str, include_user: bool = True) -> Optional[Verification]:
        query = select(Verification).where(Verification.code == code)
        if include_user:
            query = query.options(joinedload(Verification.user))
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def delete_by_user(self, user_id: uuid.UUID) -> None:
        await self.db.execute(delete(Verification).where(Verification.user_id == user_id))

    async def delete_by_id(self, verification_id: uuid.UUID) -> int:
        """Returns the number of rows removed, 0 if the code was already consumed."""
        result = await self.db.execute(delete(Verification).where(Verification.id == verification_id))
        return result.rowcount
