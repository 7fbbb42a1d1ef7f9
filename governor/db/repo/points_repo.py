from __future__ import annotations

from datetime import datetime

from sqlalchemy import and_, case, delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from governor.db.models.user_points import UserPoints


class PointsRepo:
    @staticmethod
    async def create(session: AsyncSession, *, entry: UserPoints) -> UserPoints:
        session.add(entry)
        await session.flush()
        return entry

    @staticmethod
    async def get_totals(
        session: AsyncSession,
        *,
        user_id: str,
        now_utc: datetime,
    ) -> tuple[int, int]:
        """Returns (unexpired earned, absolute spent) for the user."""
        unexpired_earned = and_(
            UserPoints.type == "earned",
            or_(UserPoints.expires_at.is_(None), UserPoints.expires_at > now_utc),
        )
        stmt = select(
            func.coalesce(
                func.sum(case((unexpired_earned, UserPoints.points), else_=0)),
                0,
            ),
            func.coalesce(
                func.sum(
                    case((UserPoints.type == "spent", func.abs(UserPoints.points)), else_=0)
                ),
                0,
            ),
        ).where(UserPoints.user_id == user_id)
        result = await session.execute(stmt)
        earned, spent = result.one()
        return int(earned or 0), int(spent or 0)

    @staticmethod
    async def has_earned_between(
        session: AsyncSession,
        *,
        user_id: str,
        source: str,
        since_utc: datetime,
        until_utc: datetime,
    ) -> bool:
        stmt = (
            select(UserPoints.id)
            .where(
                UserPoints.user_id == user_id,
                UserPoints.type == "earned",
                UserPoints.source == source,
                UserPoints.earned_at >= since_utc,
                UserPoints.earned_at < until_utc,
            )
            .limit(1)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None

    @staticmethod
    async def list_by_user(
        session: AsyncSession,
        *,
        user_id: str,
        limit: int = 50,
    ) -> list[UserPoints]:
        stmt = (
            select(UserPoints)
            .where(UserPoints.user_id == user_id)
            .order_by(UserPoints.earned_at.desc(), UserPoints.id.desc())
            .limit(limit)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def delete_expired_earned(session: AsyncSession, *, now_utc: datetime) -> int:
        stmt = delete(UserPoints).where(
            UserPoints.type == "earned",
            UserPoints.expires_at.is_not(None),
            UserPoints.expires_at <= now_utc,
        )
        result = await session.execute(stmt)
        return int(result.rowcount or 0)
