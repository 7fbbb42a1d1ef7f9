from __future__ import annotations

from functools import lru_cache

import structlog
from fastapi import HTTPException, Request

from governor.core.config import get_settings
from governor.economy.cdk.issuer import CdkIssuer
from governor.economy.cdk.service import RedemptionEngine
from governor.economy.cdk.types import RedemptionConfig
from governor.economy.points.types import DailyAwardConfig
from governor.generation.admission.service import AdmissionController
from governor.generation.admission.types import AdmissionConfig
from governor.services.internal_auth import (
    extract_client_ip,
    is_client_ip_allowed,
    is_internal_request_authenticated,
)

logger = structlog.get_logger(__name__)

REDEEM_STATUS_BY_CODE: dict[str, int] = {
    "E_CDK_QUOTA_EXCEEDED": 429,
    "E_CDK_INVALID_FORMAT": 422,
    "E_CDK_PACKAGE_UNAVAILABLE": 422,
    "E_CDK_NOT_FOUND": 404,
    "E_CDK_USER_NOT_FOUND": 404,
    "E_CDK_ALREADY_REDEEMED": 409,
    "E_CDK_EXPIRED": 410,
    "E_CDK_UNEXPECTED": 500,
}


def assert_internal_access(request: Request) -> None:
    settings = get_settings()
    client_ip = extract_client_ip(
        request,
        trusted_proxies=getattr(settings, "internal_api_trusted_proxies", ""),
    )

    if not is_client_ip_allowed(client_ip=client_ip, allowlist=settings.internal_api_allowlist):
        logger.warning("internal_auth_failed", reason="ip_not_allowed", client_ip=client_ip)
        raise HTTPException(status_code=403, detail={"code": "E_FORBIDDEN"})

    if not is_internal_request_authenticated(
        request,
        expected_token=settings.internal_api_token,
    ):
        logger.warning("internal_auth_failed", reason="invalid_credentials", client_ip=client_ip)
        raise HTTPException(status_code=403, detail={"code": "E_FORBIDDEN"})


def error_detail(code: str, message: str | None = None) -> dict[str, str]:
    if message is None:
        return {"code": code}
    return {"code": code, "message": message}


@lru_cache(maxsize=1)
def get_admission_controller() -> AdmissionController:
    return AdmissionController(AdmissionConfig.from_settings())


@lru_cache(maxsize=1)
def get_redemption_engine() -> RedemptionEngine:
    return RedemptionEngine(RedemptionConfig.from_settings())


@lru_cache(maxsize=1)
def get_cdk_issuer() -> CdkIssuer:
    return CdkIssuer()


@lru_cache(maxsize=1)
def get_daily_award_config() -> DailyAwardConfig:
    return DailyAwardConfig.from_settings()
