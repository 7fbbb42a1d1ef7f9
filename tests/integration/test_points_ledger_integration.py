from __future__ import annotations

import asyncio
from datetime import datetime, timedelta

import pytest
from sqlalchemy import func, select

from governor.db.models.user_points import UserPoints
from governor.db.session import SessionLocal
from governor.economy.points.service import PointsLedger
from governor.economy.points.types import DailyAwardConfig
from tests.integration.governance_fixtures import UTC, _create_user

AWARD_CONFIG = DailyAwardConfig(
    regular_points=20,
    premium_points=40,
    expiry_days=30,
    timezone_name="Asia/Shanghai",
)


async def _earn(user_id: str, amount: int, *, now_utc: datetime, expiry_days: int | None = 30) -> None:
    async with SessionLocal.begin() as session:
        await PointsLedger.earn(
            session,
            user_id=user_id,
            amount=amount,
            description="integration grant",
            expiry_days=expiry_days,
            now_utc=now_utc,
        )


async def _spend(user_id: str, amount: int, *, now_utc: datetime) -> bool:
    async with SessionLocal.begin() as session:
        return await PointsLedger.spend(
            session,
            user_id=user_id,
            amount=amount,
            description="generation",
            now_utc=now_utc,
        )


async def _balance(user_id: str, now_utc: datetime) -> int:
    async with SessionLocal() as session:
        return await PointsLedger.balance(session, user_id=user_id, now_utc=now_utc)


async def _award(user_id: str, now_utc: datetime):
    async with SessionLocal.begin() as session:
        return await PointsLedger.award_daily(
            session, user_id=user_id, config=AWARD_CONFIG, now_utc=now_utc
        )


@pytest.mark.asyncio
async def test_balance_excludes_expired_grants() -> None:
    now_utc = datetime.now(UTC)
    user_id = await _create_user("ledger-expiry")
    await _earn(user_id, 100, now_utc=now_utc - timedelta(days=31), expiry_days=30)
    await _earn(user_id, 40, now_utc=now_utc, expiry_days=30)
    await _earn(user_id, 5, now_utc=now_utc, expiry_days=None)

    assert await _balance(user_id, now_utc) == 45
    assert await _balance(user_id, now_utc - timedelta(days=2)) == 145


@pytest.mark.asyncio
async def test_spend_over_balance_writes_nothing() -> None:
    now_utc = datetime.now(UTC)
    user_id = await _create_user("ledger-insufficient")
    await _earn(user_id, 30, now_utc=now_utc)

    assert await _spend(user_id, 31, now_utc=now_utc) is False
    assert await _balance(user_id, now_utc) == 30

    assert await _spend(user_id, 30, now_utc=now_utc) is True
    assert await _balance(user_id, now_utc) == 0

    async with SessionLocal() as session:
        spent_rows = (
            await session.execute(
                select(UserPoints).where(UserPoints.user_id == user_id, UserPoints.type == "spent")
            )
        ).scalars().all()
    assert [row.points for row in spent_rows] == [-30]
    assert spent_rows[0].expires_at is None


@pytest.mark.asyncio
async def test_spend_for_unknown_user_is_rejected() -> None:
    assert await _spend("ghost", 1, now_utc=datetime.now(UTC)) is False


@pytest.mark.asyncio
async def test_parallel_spends_cannot_overdraw() -> None:
    now_utc = datetime.now(UTC)
    user_id = await _create_user("ledger-race")
    await _earn(user_id, 50, now_utc=now_utc)
    barrier = asyncio.Event()

    async def _attempt() -> bool:
        await barrier.wait()
        return await _spend(user_id, 30, now_utc=now_utc)

    tasks = [asyncio.create_task(_attempt()) for _ in range(4)]
    barrier.set()
    results = await asyncio.gather(*tasks)

    assert sorted(results) == [False, False, False, True]
    assert await _balance(user_id, now_utc) == 20


@pytest.mark.asyncio
async def test_balance_is_clamped_when_spent_grants_expire() -> None:
    now_utc = datetime.now(UTC)
    user_id = await _create_user("ledger-clamp")
    await _earn(user_id, 100, now_utc=now_utc - timedelta(days=29), expiry_days=30)
    assert await _spend(user_id, 80, now_utc=now_utc) is True

    assert await _balance(user_id, now_utc) == 20
    assert await _balance(user_id, now_utc + timedelta(days=2)) == 0


@pytest.mark.asyncio
async def test_earn_rejects_non_positive_amount() -> None:
    user_id = await _create_user("ledger-zero")
    with pytest.raises(ValueError):
        await _earn(user_id, 0, now_utc=datetime.now(UTC))


@pytest.mark.asyncio
async def test_daily_award_amounts_by_role() -> None:
    now_utc = datetime(2026, 5, 10, 4, 0, tzinfo=UTC)
    regular = await _create_user("award-regular")
    premium = await _create_user("award-premium", is_premium=True)
    subscribed = await _create_user(
        "award-subscribed",
        is_subscribed=True,
        subscription_expires_at=now_utc + timedelta(days=5),
    )

    assert (await _award(regular, now_utc)).points == 20
    assert (await _award(premium, now_utc)).points == 40
    assert (await _award(subscribed, now_utc)).points == 40
    assert await _balance(subscribed, now_utc) == 40


@pytest.mark.asyncio
async def test_daily_award_skips_admin_and_banned_users() -> None:
    now_utc = datetime(2026, 5, 10, 4, 0, tzinfo=UTC)
    admin = await _create_user("award-admin", is_admin=True)
    banned = await _create_user("award-banned", is_active=False)

    admin_result = await _award(admin, now_utc)
    banned_result = await _award(banned, now_utc)
    missing_result = await _award("ghost", now_utc)

    assert (admin_result.awarded, admin_result.reason) == (False, "admin")
    assert (banned_result.awarded, banned_result.reason) == (False, "banned")
    assert missing_result.reason == "user_not_found"
    assert await _balance(admin, now_utc) == 0


@pytest.mark.asyncio
async def test_daily_award_once_per_shanghai_day() -> None:
    # 2026-05-10 15:30 UTC is 23:30 in Shanghai.
    late_evening = datetime(2026, 5, 10, 15, 30, tzinfo=UTC)
    same_day = datetime(2026, 5, 10, 1, 0, tzinfo=UTC)
    next_day = datetime(2026, 5, 10, 16, 0, 1, tzinfo=UTC)
    user_id = await _create_user("award-window")

    first = await _award(user_id, same_day)
    repeat = await _award(user_id, late_evening)
    following = await _award(user_id, next_day)

    assert first.awarded is True
    assert repeat.awarded is False
    assert repeat.reason == "already_awarded"
    assert repeat.next_award_at == datetime(2026, 5, 10, 16, 0, tzinfo=UTC)
    assert following.awarded is True
    assert await _balance(user_id, next_day) == 40


@pytest.mark.asyncio
async def test_cleanup_deletes_only_expired_earned_rows() -> None:
    now_utc = datetime.now(UTC)
    user_id = await _create_user("ledger-cleanup")
    await _earn(user_id, 10, now_utc=now_utc - timedelta(days=40), expiry_days=30)
    await _earn(user_id, 20, now_utc=now_utc, expiry_days=30)
    assert await _spend(user_id, 5, now_utc=now_utc) is True

    async with SessionLocal.begin() as session:
        deleted = await PointsLedger.cleanup_expired(session, now_utc=now_utc)

    assert deleted == 1
    async with SessionLocal() as session:
        remaining = await session.scalar(
            select(func.count(UserPoints.id)).where(UserPoints.user_id == user_id)
        )
    assert remaining == 2
    assert await _balance(user_id, now_utc) == 15


@pytest.mark.asyncio
async def test_history_is_newest_first() -> None:
    now_utc = datetime.now(UTC)
    user_id = await _create_user("ledger-history")
    await _earn(user_id, 10, now_utc=now_utc - timedelta(hours=2))
    await _earn(user_id, 20, now_utc=now_utc - timedelta(hours=1))
    assert await _spend(user_id, 5, now_utc=now_utc) is True

    async with SessionLocal() as session:
        entries = await PointsLedger.list_history(session, user_id=user_id, limit=2)

    assert [entry.points for entry in entries] == [-5, 20]
