from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from governor.db.models.cdk_redemptions import CdkRedemption
from governor.db.repo.catalog_repo import CatalogRepo
from governor.db.repo.cdk_repo import CdkRepo
from governor.db.repo.users_repo import UsersRepo
from governor.db.session import SessionLocal
from governor.economy.cdk.codes import normalize_cdk, validate_cdk_format
from governor.economy.cdk.errors import (
    CdkAlreadyRedeemedError,
    CdkError,
    CdkExpiredError,
    CdkInvalidFormatError,
    CdkNotFoundError,
    CdkPackageUnavailableError,
    CdkUserNotFoundError,
)
from governor.economy.cdk.grants import apply_points_package, apply_subscription_plan
from governor.economy.cdk.quota import DailyQuotaTracker
from governor.economy.cdk.types import (
    PACKAGE_TYPE_POINTS,
    PACKAGE_TYPE_SUBSCRIPTION,
    GrantOutcome,
    RedemptionConfig,
    RedemptionResult,
)

logger = structlog.get_logger(__name__)


def _failure(error: CdkError) -> RedemptionResult:
    return RedemptionResult(success=False, message=error.message, code=error.code)


class RedemptionEngine:
    def __init__(
        self,
        config: RedemptionConfig,
        *,
        quota: DailyQuotaTracker | None = None,
        session_factory: async_sessionmaker[AsyncSession] = SessionLocal,
    ) -> None:
        self._config = config
        self._session_factory = session_factory
        self._quota = quota or DailyQuotaTracker(config, session_factory=session_factory)

    @property
    def quota(self) -> DailyQuotaTracker:
        return self._quota

    async def redeem(
        self,
        code: str,
        user_id: str,
        origin: str | None = None,
        *,
        now_utc: datetime | None = None,
    ) -> RedemptionResult:
        now_utc = now_utc or datetime.now(timezone.utc)
        log = logger.bind(user_id=user_id, origin=origin)

        async with self._session_factory() as session:
            user = await UsersRepo.get_by_id(session, user_id)
        if user is None:
            log.info("cdk_redeem_failed", code=CdkUserNotFoundError.code)
            return _failure(CdkUserNotFoundError())

        # Committed before any validation; failed attempts still count.
        try:
            await self._quota.consume_attempt(user_id, now_utc=now_utc)
        except CdkError as exc:
            log.info("cdk_redeem_failed", code=exc.code)
            return _failure(exc)

        normalized = normalize_cdk(code)
        if not validate_cdk_format(normalized):
            log.info("cdk_redeem_failed", code=CdkInvalidFormatError.code)
            return _failure(CdkInvalidFormatError())

        try:
            async with self._session_factory.begin() as session:
                outcome, package_type = await self._fulfill(
                    session,
                    code=normalized,
                    user_id=user_id,
                    origin=origin,
                    now_utc=now_utc,
                )
        except CdkError as exc:
            log.info("cdk_redeem_failed", code=exc.code, cdk=normalized)
            return _failure(exc)
        except SQLAlchemyError:
            log.exception("cdk_redeem_unexpected_error", cdk=normalized)
            return _failure(CdkError())

        log.info(
            "cdk_redeemed",
            cdk=normalized,
            package_type=package_type,
            package_name=outcome.package_name,
            points_awarded=outcome.points_awarded,
        )
        return RedemptionResult(
            success=True,
            message=self._success_message(package_type, outcome),
            data={
                "package_type": package_type,
                "package_name": outcome.package_name,
                "points_awarded": outcome.points_awarded,
                "subscription_expires_at": (
                    outcome.subscription_expires_at.isoformat()
                    if outcome.subscription_expires_at is not None
                    else None
                ),
            },
        )

    async def _fulfill(
        self,
        session: AsyncSession,
        *,
        code: str,
        user_id: str,
        origin: str | None,
        now_utc: datetime,
    ) -> tuple[GrantOutcome, str]:
        cdk = await CdkRepo.get_by_code(session, code)
        if cdk is None:
            raise CdkNotFoundError
        if cdk.is_redeemed:
            raise CdkAlreadyRedeemedError
        if cdk.expires_at is not None and cdk.expires_at < now_utc:
            raise CdkExpiredError

        package = None
        if cdk.package_type == PACKAGE_TYPE_POINTS:
            package = await CatalogRepo.get_active_points_package(session, cdk.package_id)
        elif cdk.package_type == PACKAGE_TYPE_SUBSCRIPTION:
            package = await CatalogRepo.get_active_subscription_plan(session, cdk.package_id)
        if package is None:
            raise CdkPackageUnavailableError

        user = await UsersRepo.get_by_id_for_update(session, user_id)
        if user is None:
            raise CdkUserNotFoundError

        # Row lock from here to commit; a concurrent claimer sees zero rows.
        claimed = await CdkRepo.claim_unredeemed(session, cdk_id=cdk.id, now_utc=now_utc)
        if claimed is None:
            raise CdkAlreadyRedeemedError

        if cdk.package_type == PACKAGE_TYPE_POINTS:
            outcome = await apply_points_package(
                session,
                user_id=user_id,
                code=code,
                package=package,
                now_utc=now_utc,
            )
        else:
            outcome = await apply_subscription_plan(
                session,
                user=user,
                code=code,
                plan=package,
                now_utc=now_utc,
            )

        await CdkRepo.create_redemption(
            session,
            redemption=CdkRedemption(
                id=uuid4(),
                cdk_id=cdk.id,
                user_id=user_id,
                redeemed_at=now_utc,
                ip_address=origin,
                package_type=cdk.package_type,
                package_name=outcome.package_name,
                package_data=outcome.snapshot,
            ),
        )
        return outcome, cdk.package_type

    @staticmethod
    def _success_message(package_type: str, outcome: GrantOutcome) -> str:
        if package_type == PACKAGE_TYPE_SUBSCRIPTION and outcome.subscription_expires_at:
            message = (
                f"Redeemed {outcome.package_name}: subscription active until "
                f"{outcome.subscription_expires_at.date().isoformat()}"
            )
            if outcome.points_awarded:
                message += f", {outcome.points_awarded} bonus points added"
            return message
        return f"Redeemed {outcome.package_name}: {outcome.points_awarded} points added"
