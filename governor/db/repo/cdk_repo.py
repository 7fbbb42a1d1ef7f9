from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from governor.db.models.cdk import Cdk
from governor.db.models.cdk_redemptions import CdkRedemption


class CdkRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, cdk_id: UUID) -> Cdk | None:
        return await session.get(Cdk, cdk_id)

    @staticmethod
    async def get_by_code(session: AsyncSession, code: str) -> Cdk | None:
        stmt = select(Cdk).where(Cdk.code == code)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def code_exists(session: AsyncSession, code: str) -> bool:
        stmt = select(Cdk.id).where(Cdk.code == code).limit(1)
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None

    @staticmethod
    async def create(session: AsyncSession, *, cdk: Cdk) -> Cdk:
        session.add(cdk)
        await session.flush()
        return cdk

    @staticmethod
    async def claim_unredeemed(
        session: AsyncSession,
        *,
        cdk_id: UUID,
        now_utc: datetime,
    ) -> UUID | None:
        """Flips is_redeemed in one statement; None means another caller got there first."""
        stmt = (
            update(Cdk)
            .where(Cdk.id == cdk_id, Cdk.is_redeemed.is_(False))
            .values(is_redeemed=True, updated_at=now_utc)
            .returning(Cdk.id)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def update_expiry(
        session: AsyncSession,
        *,
        cdk_id: UUID,
        expires_at: datetime | None,
        now_utc: datetime,
    ) -> Cdk | None:
        stmt = (
            update(Cdk)
            .where(Cdk.id == cdk_id)
            .values(expires_at=expires_at, updated_at=now_utc)
            .returning(Cdk)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def delete_unredeemed(session: AsyncSession, *, cdk_id: UUID) -> int:
        stmt = delete(Cdk).where(Cdk.id == cdk_id, Cdk.is_redeemed.is_(False))
        result = await session.execute(stmt)
        return int(result.rowcount or 0)

    @staticmethod
    async def list_codes(
        session: AsyncSession,
        *,
        package_type: str | None = None,
        is_redeemed: bool | None = None,
        code_query: str | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[Cdk], int]:
        filters = []
        if package_type is not None:
            filters.append(Cdk.package_type == package_type)
        if is_redeemed is not None:
            filters.append(Cdk.is_redeemed.is_(is_redeemed))
        if code_query:
            filters.append(Cdk.code.ilike(f"%{code_query}%"))

        total_stmt = select(func.count(Cdk.id)).where(*filters)
        total = int((await session.execute(total_stmt)).scalar_one())

        stmt = (
            select(Cdk)
            .where(*filters)
            .order_by(Cdk.created_at.desc(), Cdk.id.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all()), total

    @staticmethod
    async def create_redemption(
        session: AsyncSession, *, redemption: CdkRedemption
    ) -> CdkRedemption:
        session.add(redemption)
        await session.flush()
        return redemption

    @staticmethod
    async def list_redemptions(
        session: AsyncSession,
        *,
        user_id: str | None = None,
        since_utc: datetime | None = None,
        until_utc: datetime | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[tuple[CdkRedemption, str]], int]:
        filters = []
        if user_id is not None:
            filters.append(CdkRedemption.user_id == user_id)
        if since_utc is not None:
            filters.append(CdkRedemption.redeemed_at >= since_utc)
        if until_utc is not None:
            filters.append(CdkRedemption.redeemed_at < until_utc)

        total_stmt = select(func.count(CdkRedemption.id)).where(*filters)
        total = int((await session.execute(total_stmt)).scalar_one())

        stmt = (
            select(CdkRedemption, Cdk.code)
            .join(Cdk, Cdk.id == CdkRedemption.cdk_id)
            .where(*filters)
            .order_by(CdkRedemption.redeemed_at.desc(), CdkRedemption.id.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await session.execute(stmt)
        return [(row[0], row[1]) for row in result.all()], total
