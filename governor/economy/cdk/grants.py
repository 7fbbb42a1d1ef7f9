from __future__ import annotations

from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from governor.db.models.catalog import PointsPackage, SubscriptionPlan
from governor.db.models.users import User
from governor.economy.cdk.errors import CdkPackageUnavailableError
from governor.economy.cdk.types import (
    PLAN_DURATION_DAYS,
    POINTS_PACKAGE_EXPIRY_DAYS,
    SUBSCRIPTION_BONUS_EXPIRY_DAYS,
    GrantOutcome,
)
from governor.economy.points.service import PointsLedger
from governor.economy.points.types import POINTS_SOURCE_CDK, POINTS_SOURCE_SUBSCRIPTION_BONUS


def extended_subscription_end(
    *,
    current_expires_at: datetime | None,
    is_subscribed: bool,
    duration_days: int,
    now_utc: datetime,
) -> datetime:
    base_end = now_utc
    if is_subscribed and current_expires_at is not None and current_expires_at > now_utc:
        base_end = current_expires_at
    return base_end + timedelta(days=duration_days)


async def apply_points_package(
    session: AsyncSession,
    *,
    user_id: str,
    code: str,
    package: PointsPackage,
    now_utc: datetime,
) -> GrantOutcome:
    await PointsLedger.earn(
        session,
        user_id=user_id,
        amount=package.points,
        description=f"CDK redemption: {package.name} ({code})",
        expiry_days=POINTS_PACKAGE_EXPIRY_DAYS,
        source=POINTS_SOURCE_CDK,
        now_utc=now_utc,
    )
    return GrantOutcome(
        package_name=package.name,
        points_awarded=package.points,
        snapshot={
            "id": package.id,
            "name": package.name,
            "points": package.points,
            "price": str(package.price),
        },
    )


async def apply_subscription_plan(
    session: AsyncSession,
    *,
    user: User,
    code: str,
    plan: SubscriptionPlan,
    now_utc: datetime,
) -> GrantOutcome:
    duration_days = PLAN_DURATION_DAYS.get(plan.type)
    if duration_days is None:
        raise CdkPackageUnavailableError

    new_end = extended_subscription_end(
        current_expires_at=user.subscription_expires_at,
        is_subscribed=user.is_subscribed,
        duration_days=duration_days,
        now_utc=now_utc,
    )
    user.is_subscribed = True
    user.subscription_expires_at = new_end
    user.updated_at = now_utc

    if plan.bonus_points > 0:
        await PointsLedger.earn(
            session,
            user_id=user.id,
            amount=plan.bonus_points,
            description=f"Subscription bonus: {plan.name} ({code})",
            expiry_days=SUBSCRIPTION_BONUS_EXPIRY_DAYS,
            source=POINTS_SOURCE_SUBSCRIPTION_BONUS,
            now_utc=now_utc,
        )

    return GrantOutcome(
        package_name=plan.name,
        points_awarded=plan.bonus_points,
        subscription_expires_at=new_end,
        snapshot={
            "id": plan.id,
            "name": plan.name,
            "type": plan.type,
            "duration_days": duration_days,
            "bonus_points": plan.bonus_points,
            "price": str(plan.price),
        },
    )
