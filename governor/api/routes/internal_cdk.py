from __future__ import annotations

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, Request, status

from governor.api.routes import internal_helpers
from governor.api.routes.internal_models import (
    CatalogPointsPackageResponse,
    CatalogSubscriptionPlanResponse,
    CdkExpiryUpdateRequest,
    CdkIssueRequest,
    CdkIssueResponse,
    CdkListResponse,
    CdkPackagesResponse,
    CdkRedeemRequest,
    CdkRedeemResponse,
    CdkRedemptionListResponse,
    CdkRedemptionResponse,
    CdkRemainingResponse,
    CdkResponse,
    PackageType,
)
from governor.db.models.cdk import Cdk
from governor.economy.cdk.errors import (
    CdkIssueCollisionError,
    CdkIssueError,
    CdkIssueNotFoundError,
    CdkIssuePackageError,
    CdkIssueRedeemedError,
)
from governor.economy.cdk.types import PLAN_DURATION_DAYS

router = APIRouter(prefix="/internal/cdk", tags=["internal", "cdk"])


def _issue_error_as_http(exc: CdkIssueError) -> HTTPException:
    if isinstance(exc, CdkIssuePackageError):
        return HTTPException(
            status_code=422,
            detail=internal_helpers.error_detail("E_CDK_PACKAGE_UNAVAILABLE", str(exc)),
        )
    if isinstance(exc, CdkIssueNotFoundError):
        return HTTPException(status_code=404, detail=internal_helpers.error_detail("E_CDK_NOT_FOUND"))
    if isinstance(exc, CdkIssueRedeemedError):
        return HTTPException(
            status_code=409,
            detail=internal_helpers.error_detail("E_CDK_ALREADY_REDEEMED", str(exc)),
        )
    if isinstance(exc, CdkIssueCollisionError):
        return HTTPException(
            status_code=503,
            detail=internal_helpers.error_detail("E_CDK_CODE_COLLISION"),
        )
    return HTTPException(status_code=500, detail=internal_helpers.error_detail("E_CDK_UNEXPECTED"))


def _as_cdk_response(cdk: Cdk) -> CdkResponse:
    return CdkResponse(
        id=cdk.id,
        code=cdk.code,
        package_type=cdk.package_type,
        package_id=cdk.package_id,
        is_redeemed=cdk.is_redeemed,
        expires_at=cdk.expires_at,
        created_by=cdk.created_by,
        created_at=cdk.created_at,
    )


@router.post("/redeem", response_model=CdkRedeemResponse)
async def redeem_cdk(payload: CdkRedeemRequest, request: Request) -> CdkRedeemResponse:
    internal_helpers.assert_internal_access(request)

    result = await internal_helpers.get_redemption_engine().redeem(
        payload.code,
        payload.user_id,
        payload.origin,
    )
    if not result.success:
        code = result.code or "E_CDK_UNEXPECTED"
        raise HTTPException(
            status_code=internal_helpers.REDEEM_STATUS_BY_CODE.get(code, 500),
            detail=internal_helpers.error_detail(code, result.message),
        )
    return CdkRedeemResponse(success=True, message=result.message, data=result.data)


@router.get("/remaining", response_model=CdkRemainingResponse)
async def get_remaining_attempts(
    request: Request,
    user_id: str = Query(min_length=1, max_length=64),
) -> CdkRemainingResponse:
    internal_helpers.assert_internal_access(request)

    quota = await internal_helpers.get_redemption_engine().quota.remaining(user_id)
    return CdkRemainingResponse(
        current=quota.current,
        max=quota.max,
        remaining=quota.remaining,
        can_redeem=quota.can_redeem,
    )


@router.get("/packages", response_model=CdkPackagesResponse)
async def list_cdk_packages(request: Request) -> CdkPackagesResponse:
    internal_helpers.assert_internal_access(request)

    points_packages, subscription_plans = await internal_helpers.get_cdk_issuer().list_packages()
    return CdkPackagesResponse(
        points_packages=[
            CatalogPointsPackageResponse(
                id=package.id,
                name=package.name,
                name_tag=package.name_tag,
                points=package.points,
                price=package.price,
                original_price=package.original_price,
                is_popular=package.is_popular,
            )
            for package in points_packages
        ],
        subscription_plans=[
            CatalogSubscriptionPlanResponse(
                id=plan.id,
                name=plan.name,
                type=plan.type,
                duration_days=PLAN_DURATION_DAYS[plan.type],
                price=plan.price,
                original_price=plan.original_price,
                bonus_points=plan.bonus_points,
                description=plan.description,
                is_popular=plan.is_popular,
            )
            for plan in subscription_plans
        ],
    )


@router.post("", response_model=CdkIssueResponse, status_code=status.HTTP_201_CREATED)
async def issue_cdk(payload: CdkIssueRequest, request: Request) -> CdkIssueResponse:
    internal_helpers.assert_internal_access(request)

    try:
        batch = await internal_helpers.get_cdk_issuer().issue(
            package_type=payload.package_type,
            package_id=payload.package_id,
            count=payload.count,
            expires_at=payload.expires_at,
            created_by=payload.created_by,
        )
    except CdkIssueError as exc:
        raise _issue_error_as_http(exc) from exc

    return CdkIssueResponse(
        package_type=payload.package_type,
        package_id=batch.package_id,
        codes=batch.codes,
        ids=batch.ids,
    )


@router.get("", response_model=CdkListResponse)
async def list_cdk(
    request: Request,
    package_type: PackageType | None = Query(default=None),
    is_redeemed: bool | None = Query(default=None),
    code: str | None = Query(default=None, max_length=19),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=200),
) -> CdkListResponse:
    internal_helpers.assert_internal_access(request)

    items, total = await internal_helpers.get_cdk_issuer().list_codes(
        package_type=package_type,
        is_redeemed=is_redeemed,
        code_query=code,
        page=page,
        page_size=page_size,
    )
    return CdkListResponse(
        items=[_as_cdk_response(item) for item in items],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/redemptions", response_model=CdkRedemptionListResponse)
async def list_cdk_redemptions(
    request: Request,
    user_id: str | None = Query(default=None, max_length=64),
    since: datetime | None = Query(default=None),
    until: datetime | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=200),
) -> CdkRedemptionListResponse:
    internal_helpers.assert_internal_access(request)

    rows, total = await internal_helpers.get_cdk_issuer().list_redemptions(
        user_id=user_id,
        since_utc=since,
        until_utc=until,
        page=page,
        page_size=page_size,
    )
    return CdkRedemptionListResponse(
        items=[
            CdkRedemptionResponse(
                id=redemption.id,
                cdk_id=redemption.cdk_id,
                code=code,
                user_id=redemption.user_id,
                redeemed_at=redemption.redeemed_at,
                ip_address=redemption.ip_address,
                package_type=redemption.package_type,
                package_name=redemption.package_name,
                package_data=redemption.package_data,
            )
            for redemption, code in rows
        ],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.patch("/{cdk_id}", response_model=CdkResponse)
async def update_cdk_expiry(
    cdk_id: UUID,
    payload: CdkExpiryUpdateRequest,
    request: Request,
) -> CdkResponse:
    internal_helpers.assert_internal_access(request)

    try:
        cdk = await internal_helpers.get_cdk_issuer().update_expiry(
            cdk_id, expires_at=payload.expires_at
        )
    except CdkIssueError as exc:
        raise _issue_error_as_http(exc) from exc
    return _as_cdk_response(cdk)


@router.delete("/{cdk_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_cdk(cdk_id: UUID, request: Request) -> None:
    internal_helpers.assert_internal_access(request)

    try:
        await internal_helpers.get_cdk_issuer().delete(cdk_id)
    except CdkIssueError as exc:
        raise _issue_error_as_http(exc) from exc
