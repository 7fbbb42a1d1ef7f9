from __future__ import annotations

from datetime import datetime, timedelta, timezone

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from governor.core.time import day_boundary, next_day_boundary
from governor.db.models.user_points import UserPoints
from governor.db.repo.points_repo import PointsRepo
from governor.db.repo.users_repo import UsersRepo
from governor.economy.points.types import (
    POINTS_SOURCE_DAILY_AWARD,
    POINTS_SOURCE_GENERATION,
    POINTS_SOURCE_MANUAL,
    AwardResult,
    DailyAwardConfig,
)

logger = structlog.get_logger(__name__)


class PointsLedger:
    """Append-only points ledger; the balance is always derived by summation."""

    @staticmethod
    async def earn(
        session: AsyncSession,
        *,
        user_id: str,
        amount: int,
        description: str,
        expiry_days: int | None,
        source: str = POINTS_SOURCE_MANUAL,
        now_utc: datetime | None = None,
    ) -> UserPoints:
        if amount <= 0:
            raise ValueError("earned amount must be positive")
        now_utc = now_utc or datetime.now(timezone.utc)
        expires_at = now_utc + timedelta(days=expiry_days) if expiry_days is not None else None

        entry = await PointsRepo.create(
            session,
            entry=UserPoints(
                user_id=user_id,
                points=amount,
                type="earned",
                source=source,
                description=description,
                earned_at=now_utc,
                expires_at=expires_at,
            ),
        )
        logger.info(
            "points_earned",
            user_id=user_id,
            amount=amount,
            source=source,
            expires_at=expires_at.isoformat() if expires_at else None,
        )
        return entry

    @staticmethod
    async def balance(
        session: AsyncSession,
        *,
        user_id: str,
        now_utc: datetime | None = None,
    ) -> int:
        now_utc = now_utc or datetime.now(timezone.utc)
        earned, spent = await PointsRepo.get_totals(session, user_id=user_id, now_utc=now_utc)
        # Spending older grants that later expire can push the raw sum below zero.
        return max(earned - spent, 0)

    @staticmethod
    async def check_sufficient(
        session: AsyncSession,
        *,
        user_id: str,
        cost: int,
        now_utc: datetime | None = None,
    ) -> bool:
        return await PointsLedger.balance(session, user_id=user_id, now_utc=now_utc) >= cost

    @staticmethod
    async def spend(
        session: AsyncSession,
        *,
        user_id: str,
        amount: int,
        description: str,
        source: str = POINTS_SOURCE_GENERATION,
        now_utc: datetime | None = None,
    ) -> bool:
        if amount <= 0:
            raise ValueError("spent amount must be positive")
        now_utc = now_utc or datetime.now(timezone.utc)

        # Serializes concurrent spends of the same user until commit.
        user = await UsersRepo.get_by_id_for_update(session, user_id)
        if user is None:
            logger.warning("points_spend_user_not_found", user_id=user_id)
            return False

        balance = await PointsLedger.balance(session, user_id=user_id, now_utc=now_utc)
        if balance < amount:
            logger.info(
                "points_spend_rejected",
                user_id=user_id,
                balance=balance,
                amount=amount,
            )
            return False

        await PointsRepo.create(
            session,
            entry=UserPoints(
                user_id=user_id,
                points=-amount,
                type="spent",
                source=source,
                description=description,
                earned_at=now_utc,
                expires_at=None,
            ),
        )
        logger.info("points_spent", user_id=user_id, amount=amount, balance_before=balance)
        return True

    @staticmethod
    async def award_daily(
        session: AsyncSession,
        *,
        user_id: str,
        config: DailyAwardConfig,
        now_utc: datetime | None = None,
    ) -> AwardResult:
        now_utc = now_utc or datetime.now(timezone.utc)
        next_award_at = next_day_boundary(config.timezone_name, now_utc)

        user = await UsersRepo.get_by_id_for_update(session, user_id)
        if user is None:
            return AwardResult(awarded=False, points=0, reason="user_not_found")
        if user.is_admin:
            return AwardResult(awarded=False, points=0, reason="admin")
        if not user.is_active:
            return AwardResult(awarded=False, points=0, reason="banned")

        already_awarded = await PointsRepo.has_earned_between(
            session,
            user_id=user_id,
            source=POINTS_SOURCE_DAILY_AWARD,
            since_utc=day_boundary(config.timezone_name, now_utc),
            until_utc=next_award_at,
        )
        if already_awarded:
            return AwardResult(
                awarded=False,
                points=0,
                reason="already_awarded",
                next_award_at=next_award_at,
            )

        amount = config.premium_points if user.is_premium else config.regular_points
        if user.has_active_subscription(now_utc):
            amount *= 2
        if amount <= 0:
            return AwardResult(awarded=False, points=0, reason="disabled")

        description = "Daily login reward"
        if user.has_active_subscription(now_utc):
            description = "Daily login reward (subscriber bonus)"
        await PointsLedger.earn(
            session,
            user_id=user_id,
            amount=amount,
            description=description,
            expiry_days=config.expiry_days,
            source=POINTS_SOURCE_DAILY_AWARD,
            now_utc=now_utc,
        )
        return AwardResult(awarded=True, points=amount, next_award_at=next_award_at)

    @staticmethod
    async def list_history(
        session: AsyncSession,
        *,
        user_id: str,
        limit: int = 50,
    ) -> list[UserPoints]:
        return await PointsRepo.list_by_user(session, user_id=user_id, limit=limit)

    @staticmethod
    async def cleanup_expired(session: AsyncSession, *, now_utc: datetime | None = None) -> int:
        now_utc = now_utc or datetime.now(timezone.utc)
        deleted = await PointsRepo.delete_expired_earned(session, now_utc=now_utc)
        logger.info("points_expired_cleanup", deleted=deleted)
        return deleted
