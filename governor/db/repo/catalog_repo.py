from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from governor.db.models.catalog import PointsPackage, SubscriptionPlan


class CatalogRepo:
    @staticmethod
    async def get_active_points_package(
        session: AsyncSession, package_id: int
    ) -> PointsPackage | None:
        stmt = select(PointsPackage).where(
            PointsPackage.id == package_id,
            PointsPackage.is_active.is_(True),
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_active_subscription_plan(
        session: AsyncSession, plan_id: int
    ) -> SubscriptionPlan | None:
        stmt = select(SubscriptionPlan).where(
            SubscriptionPlan.id == plan_id,
            SubscriptionPlan.is_active.is_(True),
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def list_active_points_packages(session: AsyncSession) -> list[PointsPackage]:
        stmt = (
            select(PointsPackage)
            .where(PointsPackage.is_active.is_(True))
            .order_by(PointsPackage.sort_order, PointsPackage.id)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_active_subscription_plans(session: AsyncSession) -> list[SubscriptionPlan]:
        stmt = (
            select(SubscriptionPlan)
            .where(SubscriptionPlan.is_active.is_(True))
            .order_by(SubscriptionPlan.sort_order, SubscriptionPlan.id)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())
