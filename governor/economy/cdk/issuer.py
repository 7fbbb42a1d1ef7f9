from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID, uuid4

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from governor.db.models.catalog import PointsPackage, SubscriptionPlan
from governor.db.models.cdk import Cdk
from governor.db.models.cdk_redemptions import CdkRedemption
from governor.db.repo.catalog_repo import CatalogRepo
from governor.db.repo.cdk_repo import CdkRepo
from governor.db.session import SessionLocal
from governor.economy.cdk.codes import generate_cdk_code
from governor.economy.cdk.errors import (
    CdkIssueCollisionError,
    CdkIssueNotFoundError,
    CdkIssuePackageError,
    CdkIssueRedeemedError,
)
from governor.economy.cdk.types import PACKAGE_TYPE_POINTS, PACKAGE_TYPES, IssuedBatch

logger = structlog.get_logger(__name__)

MAX_CODE_GENERATION_ATTEMPTS = 10
MAX_BATCH_SIZE = 1000


class CdkIssuer:
    """Admin-side lifecycle of redeemable codes."""

    def __init__(
        self,
        *,
        session_factory: async_sessionmaker[AsyncSession] = SessionLocal,
    ) -> None:
        self._session_factory = session_factory

    async def issue(
        self,
        *,
        package_type: str,
        package_id: int,
        count: int = 1,
        expires_at: datetime | None = None,
        created_by: str | None = None,
        now_utc: datetime | None = None,
    ) -> IssuedBatch:
        if package_type not in PACKAGE_TYPES:
            raise CdkIssuePackageError(f"unknown package type: {package_type}")
        if count < 1 or count > MAX_BATCH_SIZE:
            raise ValueError(f"count must be between 1 and {MAX_BATCH_SIZE}")
        now_utc = now_utc or datetime.now(timezone.utc)

        batch = IssuedBatch(package_type=package_type, package_id=package_id)
        async with self._session_factory.begin() as session:
            if package_type == PACKAGE_TYPE_POINTS:
                package = await CatalogRepo.get_active_points_package(session, package_id)
            else:
                package = await CatalogRepo.get_active_subscription_plan(session, package_id)
            if package is None:
                raise CdkIssuePackageError(
                    f"{package_type} {package_id} does not exist or is inactive"
                )

            for _ in range(count):
                code = await self._unique_code(session, now_utc=now_utc, taken=batch.codes)
                cdk = await CdkRepo.create(
                    session,
                    cdk=Cdk(
                        id=uuid4(),
                        code=code,
                        package_type=package_type,
                        package_id=package_id,
                        is_redeemed=False,
                        expires_at=expires_at,
                        created_by=created_by,
                        created_at=now_utc,
                        updated_at=now_utc,
                    ),
                )
                batch.codes.append(cdk.code)
                batch.ids.append(cdk.id)

        logger.info(
            "cdk_issued",
            package_type=package_type,
            package_id=package_id,
            count=len(batch.codes),
            created_by=created_by,
        )
        return batch

    @staticmethod
    async def _unique_code(
        session: AsyncSession,
        *,
        now_utc: datetime,
        taken: list[str],
    ) -> str:
        for _ in range(MAX_CODE_GENERATION_ATTEMPTS):
            candidate = generate_cdk_code(now_utc=now_utc)
            if candidate in taken:
                continue
            if not await CdkRepo.code_exists(session, candidate):
                return candidate
        raise CdkIssueCollisionError("could not generate a unique code")

    async def update_expiry(
        self,
        cdk_id: UUID,
        *,
        expires_at: datetime | None,
        now_utc: datetime | None = None,
    ) -> Cdk:
        now_utc = now_utc or datetime.now(timezone.utc)
        async with self._session_factory.begin() as session:
            cdk = await CdkRepo.update_expiry(
                session, cdk_id=cdk_id, expires_at=expires_at, now_utc=now_utc
            )
            if cdk is None:
                raise CdkIssueNotFoundError(f"cdk {cdk_id} not found")
        logger.info(
            "cdk_expiry_updated",
            cdk_id=str(cdk_id),
            expires_at=expires_at.isoformat() if expires_at else None,
        )
        return cdk

    async def delete(self, cdk_id: UUID) -> None:
        async with self._session_factory.begin() as session:
            cdk = await CdkRepo.get_by_id(session, cdk_id)
            if cdk is None:
                raise CdkIssueNotFoundError(f"cdk {cdk_id} not found")
            if cdk.is_redeemed:
                raise CdkIssueRedeemedError("redeemed codes cannot be deleted")
            deleted = await CdkRepo.delete_unredeemed(session, cdk_id=cdk_id)
            if deleted == 0:
                raise CdkIssueRedeemedError("redeemed codes cannot be deleted")
        logger.info("cdk_deleted", cdk_id=str(cdk_id))

    async def list_codes(
        self,
        *,
        package_type: str | None = None,
        is_redeemed: bool | None = None,
        code_query: str | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[Cdk], int]:
        page = max(page, 1)
        async with self._session_factory() as session:
            return await CdkRepo.list_codes(
                session,
                package_type=package_type,
                is_redeemed=is_redeemed,
                code_query=code_query.strip().upper() if code_query else None,
                offset=(page - 1) * page_size,
                limit=page_size,
            )

    async def list_redemptions(
        self,
        *,
        user_id: str | None = None,
        since_utc: datetime | None = None,
        until_utc: datetime | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[tuple[CdkRedemption, str]], int]:
        page = max(page, 1)
        async with self._session_factory() as session:
            return await CdkRepo.list_redemptions(
                session,
                user_id=user_id,
                since_utc=since_utc,
                until_utc=until_utc,
                offset=(page - 1) * page_size,
                limit=page_size,
            )

    async def list_packages(self) -> tuple[list[PointsPackage], list[SubscriptionPlan]]:
        """Active catalog entries a new code can point at."""
        async with self._session_factory() as session:
            points_packages = await CatalogRepo.list_active_points_packages(session)
            subscription_plans = await CatalogRepo.list_active_subscription_plans(session)
        return points_packages, subscription_plans
