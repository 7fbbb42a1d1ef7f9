from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from governor.db.models.ip_concurrency import IpConcurrency


class IpConcurrencyRepo:
    @staticmethod
    async def get_by_ip(session: AsyncSession, ip_address: str) -> IpConcurrency | None:
        stmt = select(IpConcurrency).where(IpConcurrency.ip_address == ip_address)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_current(session: AsyncSession, ip_address: str) -> int:
        stmt = select(IpConcurrency.current_concurrency).where(
            IpConcurrency.ip_address == ip_address
        )
        result = await session.execute(stmt)
        return int(result.scalar_one_or_none() or 0)

    @staticmethod
    async def ensure_exists(session: AsyncSession, *, ip_address: str, now_utc: datetime) -> None:
        stmt = (
            insert(IpConcurrency)
            .values(
                ip_address=ip_address,
                current_concurrency=0,
                max_concurrency=None,
                created_at=now_utc,
                updated_at=now_utc,
            )
            .on_conflict_do_nothing(index_elements=[IpConcurrency.ip_address])
        )
        await session.execute(stmt)

    @staticmethod
    async def set_max(
        session: AsyncSession,
        *,
        ip_address: str,
        max_concurrency: int | None,
        now_utc: datetime,
    ) -> None:
        stmt = (
            update(IpConcurrency)
            .where(IpConcurrency.ip_address == ip_address)
            .values(max_concurrency=max_concurrency, updated_at=now_utc)
        )
        await session.execute(stmt)

    @staticmethod
    async def increment(session: AsyncSession, *, ip_address: str, now_utc: datetime) -> int | None:
        stmt = (
            update(IpConcurrency)
            .where(IpConcurrency.ip_address == ip_address)
            .values(
                current_concurrency=IpConcurrency.current_concurrency + 1,
                updated_at=now_utc,
            )
            .returning(IpConcurrency.current_concurrency)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def increment_below_max(
        session: AsyncSession,
        *,
        ip_address: str,
        max_concurrency: int,
        now_utc: datetime,
    ) -> int | None:
        """Single-statement compare-and-swap; returns the new value or None if full."""
        stmt = (
            update(IpConcurrency)
            .where(
                IpConcurrency.ip_address == ip_address,
                IpConcurrency.current_concurrency < max_concurrency,
            )
            .values(
                current_concurrency=IpConcurrency.current_concurrency + 1,
                updated_at=now_utc,
            )
            .returning(IpConcurrency.current_concurrency)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def decrement(session: AsyncSession, *, ip_address: str, now_utc: datetime) -> int | None:
        stmt = (
            update(IpConcurrency)
            .where(IpConcurrency.ip_address == ip_address)
            .values(
                current_concurrency=func.greatest(IpConcurrency.current_concurrency - 1, 0),
                updated_at=now_utc,
            )
            .returning(IpConcurrency.current_concurrency)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def reset_all(session: AsyncSession, *, now_utc: datetime) -> int:
        stmt = (
            update(IpConcurrency)
            .where(IpConcurrency.current_concurrency > 0)
            .values(current_concurrency=0, updated_at=now_utc)
        )
        result = await session.execute(stmt)
        return int(result.rowcount or 0)
