from __future__ import annotations

from datetime import datetime, timezone

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from governor.core.time import utc_today
from governor.db.repo.cdk_daily_limit_repo import CdkDailyLimitRepo
from governor.db.session import SessionLocal
from governor.economy.cdk.errors import CdkQuotaExceededError
from governor.economy.cdk.types import QuotaStatus, RedemptionConfig

logger = structlog.get_logger(__name__)


def quota_exceeded_message(daily_limit: int) -> str:
    return (
        f"Daily redemption limit reached ({daily_limit} attempts per day). "
        "The limit resets tomorrow (UTC)."
    )


class DailyQuotaTracker:
    """Per-user count of redemption attempts for the current UTC day."""

    def __init__(
        self,
        config: RedemptionConfig,
        *,
        session_factory: async_sessionmaker[AsyncSession] = SessionLocal,
    ) -> None:
        self._config = config
        self._session_factory = session_factory

    @property
    def daily_limit(self) -> int:
        return self._config.daily_limit

    async def consume_attempt(
        self,
        user_id: str,
        *,
        now_utc: datetime | None = None,
    ) -> QuotaStatus:
        """Counts one attempt and commits it on its own.

        Raises CdkQuotaExceededError, leaving the counter untouched, when the day's
        attempts are already used up.
        """
        now_utc = now_utc or datetime.now(timezone.utc)
        today = utc_today(now_utc)

        async with self._session_factory.begin() as session:
            await CdkDailyLimitRepo.ensure_exists(
                session, user_id=user_id, today_utc=today, now_utc=now_utc
            )
            if await CdkDailyLimitRepo.reset_if_stale(
                session, user_id=user_id, today_utc=today, now_utc=now_utc
            ):
                logger.info("cdk_quota_rolled_over", user_id=user_id, day=today.isoformat())

            attempts = await CdkDailyLimitRepo.increment_below_limit(
                session,
                user_id=user_id,
                daily_limit=self.daily_limit,
                now_utc=now_utc,
            )
            if attempts is None:
                row = await CdkDailyLimitRepo.get(session, user_id)
                current = row.daily_redemptions if row is not None else self.daily_limit

        if attempts is None:
            logger.info(
                "cdk_quota_exceeded",
                user_id=user_id,
                current=current,
                daily_limit=self.daily_limit,
            )
            raise CdkQuotaExceededError(quota_exceeded_message(self.daily_limit))

        return QuotaStatus(current=attempts, max=self.daily_limit)

    async def remaining(
        self,
        user_id: str,
        *,
        now_utc: datetime | None = None,
    ) -> QuotaStatus:
        now_utc = now_utc or datetime.now(timezone.utc)
        async with self._session_factory() as session:
            row = await CdkDailyLimitRepo.get(session, user_id)

        current = 0
        if row is not None and row.last_redemption_reset_date >= utc_today(now_utc):
            current = row.daily_redemptions
        return QuotaStatus(current=current, max=self.daily_limit)
