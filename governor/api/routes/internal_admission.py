from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request

from governor.api.routes import internal_helpers
from governor.api.routes.internal_models import (
    AdmissionAcquireRequest,
    AdmissionReleaseRequest,
    AdmissionResponse,
    SlotInfoResponse,
)

router = APIRouter(prefix="/internal/admission", tags=["internal", "admission"])


@router.post("/acquire", response_model=AdmissionResponse)
async def acquire_slot(payload: AdmissionAcquireRequest, request: Request) -> AdmissionResponse:
    internal_helpers.assert_internal_access(request)

    decision = await internal_helpers.get_admission_controller().try_admit(
        payload.origin,
        caller_id=payload.caller_id,
        is_admin=payload.is_admin,
        is_premium=payload.is_premium,
    )
    if not decision.admitted:
        raise HTTPException(
            status_code=429,
            detail={
                "code": "E_CONCURRENCY_LIMIT",
                "current": decision.current,
                "max": decision.max,
            },
        )
    return AdmissionResponse(admitted=True, current=decision.current, max=decision.max)


@router.post("/release", response_model=SlotInfoResponse)
async def release_slot(payload: AdmissionReleaseRequest, request: Request) -> SlotInfoResponse:
    internal_helpers.assert_internal_access(request)

    controller = internal_helpers.get_admission_controller()
    await controller.release(payload.origin)
    info = await controller.get_info(payload.origin)
    return SlotInfoResponse(origin=info.origin, current=info.current, max=info.max)


@router.post("/reset")
async def reset_slots(request: Request) -> dict[str, int]:
    internal_helpers.assert_internal_access(request)

    reset = await internal_helpers.get_admission_controller().reset_all()
    return {"reset": reset}


@router.get("/{origin}", response_model=SlotInfoResponse)
async def get_slot(origin: str, request: Request) -> SlotInfoResponse:
    internal_helpers.assert_internal_access(request)

    info = await internal_helpers.get_admission_controller().get_info(origin)
    return SlotInfoResponse(origin=info.origin, current=info.current, max=info.max)
