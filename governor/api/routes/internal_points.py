from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query, Request

from governor.api.routes import internal_helpers
from governor.api.routes.internal_models import (
    PointsAwardResponse,
    PointsBalanceResponse,
    PointsCleanupResponse,
    PointsEarnRequest,
    PointsEntryResponse,
    PointsSpendRequest,
    PointsUserRequest,
)
from governor.db.session import SessionLocal
from governor.economy.points.service import PointsLedger

router = APIRouter(prefix="/internal/points", tags=["internal", "points"])


@router.get("/balance", response_model=PointsBalanceResponse)
async def get_balance(
    request: Request,
    user_id: str = Query(min_length=1, max_length=64),
) -> PointsBalanceResponse:
    internal_helpers.assert_internal_access(request)

    async with SessionLocal() as session:
        balance = await PointsLedger.balance(session, user_id=user_id)
    return PointsBalanceResponse(user_id=user_id, balance=balance)


@router.get("/history", response_model=list[PointsEntryResponse])
async def get_history(
    request: Request,
    user_id: str = Query(min_length=1, max_length=64),
    limit: int = Query(default=50, ge=1, le=200),
) -> list[PointsEntryResponse]:
    internal_helpers.assert_internal_access(request)

    async with SessionLocal() as session:
        entries = await PointsLedger.list_history(session, user_id=user_id, limit=limit)
    return [
        PointsEntryResponse(
            id=entry.id,
            points=entry.points,
            type=entry.type,
            source=entry.source,
            description=entry.description,
            earned_at=entry.earned_at,
            expires_at=entry.expires_at,
        )
        for entry in entries
    ]


@router.post("/earn", response_model=PointsBalanceResponse)
async def earn_points(payload: PointsEarnRequest, request: Request) -> PointsBalanceResponse:
    internal_helpers.assert_internal_access(request)

    expiry_days = payload.expiry_days or internal_helpers.get_daily_award_config().expiry_days
    async with SessionLocal.begin() as session:
        await PointsLedger.earn(
            session,
            user_id=payload.user_id,
            amount=payload.amount,
            description=payload.description,
            expiry_days=expiry_days,
        )
        balance = await PointsLedger.balance(session, user_id=payload.user_id)
    return PointsBalanceResponse(user_id=payload.user_id, balance=balance)


@router.post("/spend", response_model=PointsBalanceResponse)
async def spend_points(payload: PointsSpendRequest, request: Request) -> PointsBalanceResponse:
    internal_helpers.assert_internal_access(request)

    async with SessionLocal.begin() as session:
        spent = await PointsLedger.spend(
            session,
            user_id=payload.user_id,
            amount=payload.amount,
            description=payload.description,
        )
        balance = await PointsLedger.balance(session, user_id=payload.user_id)
    if not spent:
        raise HTTPException(
            status_code=402,
            detail={"code": "E_INSUFFICIENT_POINTS", "balance": balance},
        )
    return PointsBalanceResponse(user_id=payload.user_id, balance=balance)


@router.post("/award-daily", response_model=PointsAwardResponse)
async def award_daily_points(
    payload: PointsUserRequest, request: Request
) -> PointsAwardResponse:
    internal_helpers.assert_internal_access(request)

    async with SessionLocal.begin() as session:
        result = await PointsLedger.award_daily(
            session,
            user_id=payload.user_id,
            config=internal_helpers.get_daily_award_config(),
        )
    if result.reason == "user_not_found":
        raise HTTPException(status_code=404, detail={"code": "E_USER_NOT_FOUND"})
    if result.reason == "banned":
        raise HTTPException(status_code=403, detail={"code": "E_USER_BANNED"})
    return PointsAwardResponse(
        awarded=result.awarded,
        points=result.points,
        reason=result.reason,
        next_award_at=result.next_award_at,
    )


@router.post("/cleanup-expired", response_model=PointsCleanupResponse)
async def cleanup_expired_points(request: Request) -> PointsCleanupResponse:
    internal_helpers.assert_internal_access(request)

    async with SessionLocal.begin() as session:
        deleted = await PointsLedger.cleanup_expired(session)
    return PointsCleanupResponse(deleted=deleted)
