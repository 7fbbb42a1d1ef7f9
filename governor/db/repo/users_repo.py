from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from governor.db.models.users import User


class UsersRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, user_id: str) -> User | None:
        return await session.get(User, user_id)

    @staticmethod
    async def get_by_id_for_update(session: AsyncSession, user_id: str) -> User | None:
        stmt = select(User).where(User.id == user_id).with_for_update(key_share=True)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(
        session: AsyncSession,
        *,
        user_id: str,
        email: str,
        name: str | None = None,
        is_admin: bool = False,
        is_premium: bool = False,
        is_subscribed: bool = False,
        subscription_expires_at: datetime | None = None,
    ) -> User:
        user = User(
            id=user_id,
            email=email,
            name=name,
            is_admin=is_admin,
            is_premium=is_premium,
            is_active=True,
            is_subscribed=is_subscribed,
            subscription_expires_at=subscription_expires_at,
        )
        session.add(user)
        await session.flush()
        return user
