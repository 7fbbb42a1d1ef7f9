from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

from sqlalchemy import select

from governor.db.models.catalog import PointsPackage, SubscriptionPlan
from governor.db.models.cdk import Cdk
from governor.db.models.user_cdk_daily_limits import UserCdkDailyLimit
from governor.db.repo.users_repo import UsersRepo
from governor.db.session import SessionLocal

UTC = timezone.utc


async def _create_user(
    user_id: str,
    *,
    is_admin: bool = False,
    is_premium: bool = False,
    is_subscribed: bool = False,
    subscription_expires_at: datetime | None = None,
    is_active: bool = True,
) -> str:
    async with SessionLocal.begin() as session:
        user = await UsersRepo.create(
            session,
            user_id=user_id,
            email=f"{user_id}@example.test",
            is_admin=is_admin,
            is_premium=is_premium,
            is_subscribed=is_subscribed,
            subscription_expires_at=subscription_expires_at,
        )
        user.is_active = is_active
    return user_id


async def _create_points_package(*, points: int = 100, is_active: bool = True) -> int:
    async with SessionLocal.begin() as session:
        package = PointsPackage(
            name=f"{points} points",
            points=points,
            price=Decimal("9.90"),
            is_active=is_active,
        )
        session.add(package)
        await session.flush()
        return package.id


async def _create_subscription_plan(
    *,
    plan_type: str = "monthly",
    bonus_points: int = 0,
    is_active: bool = True,
) -> int:
    async with SessionLocal.begin() as session:
        plan = SubscriptionPlan(
            name=f"{plan_type} plan",
            type=plan_type,
            price=Decimal("19.90"),
            bonus_points=bonus_points,
            is_active=is_active,
        )
        session.add(plan)
        await session.flush()
        return plan.id


async def _create_cdk(
    code: str,
    *,
    package_type: str,
    package_id: int,
    now_utc: datetime,
    expires_at: datetime | None = None,
) -> Cdk:
    cdk = Cdk(
        id=uuid4(),
        code=code,
        package_type=package_type,
        package_id=package_id,
        is_redeemed=False,
        expires_at=expires_at,
        created_by="integration-test",
        created_at=now_utc,
        updated_at=now_utc,
    )
    async with SessionLocal.begin() as session:
        session.add(cdk)
        await session.flush()
    return cdk


async def _get_cdk(code: str) -> Cdk:
    async with SessionLocal() as session:
        result = await session.execute(select(Cdk).where(Cdk.code == code))
        return result.scalar_one()


async def _get_attempts(user_id: str) -> UserCdkDailyLimit | None:
    async with SessionLocal() as session:
        return await session.get(UserCdkDailyLimit, user_id)
