from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from governor.db.models.user_cdk_daily_limits import UserCdkDailyLimit


class CdkDailyLimitRepo:
    @staticmethod
    async def get(session: AsyncSession, user_id: str) -> UserCdkDailyLimit | None:
        stmt = select(UserCdkDailyLimit).where(UserCdkDailyLimit.user_id == user_id)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def ensure_exists(
        session: AsyncSession,
        *,
        user_id: str,
        today_utc: date,
        now_utc: datetime,
    ) -> None:
        stmt = (
            insert(UserCdkDailyLimit)
            .values(
                user_id=user_id,
                daily_redemptions=0,
                last_redemption_reset_date=today_utc,
                updated_at=now_utc,
            )
            .on_conflict_do_nothing(index_elements=[UserCdkDailyLimit.user_id])
        )
        await session.execute(stmt)

    @staticmethod
    async def reset_if_stale(
        session: AsyncSession,
        *,
        user_id: str,
        today_utc: date,
        now_utc: datetime,
    ) -> bool:
        stmt = (
            update(UserCdkDailyLimit)
            .where(
                UserCdkDailyLimit.user_id == user_id,
                UserCdkDailyLimit.last_redemption_reset_date < today_utc,
            )
            .values(
                daily_redemptions=0,
                last_redemption_reset_date=today_utc,
                updated_at=now_utc,
            )
        )
        result = await session.execute(stmt)
        return bool(result.rowcount)

    @staticmethod
    async def increment_below_limit(
        session: AsyncSession,
        *,
        user_id: str,
        daily_limit: int,
        now_utc: datetime,
    ) -> int | None:
        stmt = (
            update(UserCdkDailyLimit)
            .where(
                UserCdkDailyLimit.user_id == user_id,
                UserCdkDailyLimit.daily_redemptions < daily_limit,
            )
            .values(
                daily_redemptions=UserCdkDailyLimit.daily_redemptions + 1,
                updated_at=now_utc,
            )
            .returning(UserCdkDailyLimit.daily_redemptions)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()
