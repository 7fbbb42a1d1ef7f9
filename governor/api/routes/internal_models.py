from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field

PackageType = Literal["points_package", "subscription_plan"]


class AdmissionAcquireRequest(BaseModel):
    origin: str = Field(min_length=1, max_length=64)
    caller_id: str | None = Field(default=None, max_length=64)
    is_admin: bool = False
    is_premium: bool = False


class AdmissionReleaseRequest(BaseModel):
    origin: str = Field(min_length=1, max_length=64)


class AdmissionResponse(BaseModel):
    admitted: bool
    current: int = Field(ge=0)
    max: int | None = None


class SlotInfoResponse(BaseModel):
    origin: str
    current: int = Field(ge=0)
    max: int | None = None


class CdkRedeemRequest(BaseModel):
    code: str = Field(max_length=256)
    user_id: str = Field(min_length=1, max_length=64)
    origin: str | None = Field(default=None, max_length=64)


class CdkRedeemResponse(BaseModel):
    success: bool
    message: str
    data: dict[str, object] | None = None


class CdkRemainingResponse(BaseModel):
    current: int = Field(ge=0)
    max: int = Field(ge=1)
    remaining: int = Field(ge=0)
    can_redeem: bool


class CdkIssueRequest(BaseModel):
    package_type: PackageType
    package_id: int = Field(gt=0)
    count: int = Field(default=1, ge=1, le=1000)
    expires_at: datetime | None = None
    created_by: str | None = Field(default=None, max_length=64)


class CdkIssueResponse(BaseModel):
    package_type: PackageType
    package_id: int
    codes: list[str]
    ids: list[UUID]


class CdkExpiryUpdateRequest(BaseModel):
    expires_at: datetime | None = None


class CdkResponse(BaseModel):
    id: UUID
    code: str
    package_type: str
    package_id: int
    is_redeemed: bool
    expires_at: datetime | None = None
    created_by: str | None = None
    created_at: datetime


class CdkListResponse(BaseModel):
    items: list[CdkResponse]
    total: int = Field(ge=0)
    page: int = Field(ge=1)
    page_size: int = Field(ge=1)


class CdkRedemptionResponse(BaseModel):
    id: UUID
    cdk_id: UUID
    code: str
    user_id: str
    redeemed_at: datetime
    ip_address: str | None = None
    package_type: str
    package_name: str
    package_data: dict[str, object]


class CdkRedemptionListResponse(BaseModel):
    items: list[CdkRedemptionResponse]
    total: int = Field(ge=0)
    page: int = Field(ge=1)
    page_size: int = Field(ge=1)


class CatalogPointsPackageResponse(BaseModel):
    id: int
    name: str
    name_tag: str | None = None
    points: int = Field(gt=0)
    price: Decimal
    original_price: Decimal | None = None
    is_popular: bool


class CatalogSubscriptionPlanResponse(BaseModel):
    id: int
    name: str
    type: str
    duration_days: int = Field(ge=1)
    price: Decimal
    original_price: Decimal | None = None
    bonus_points: int = Field(ge=0)
    description: str | None = None
    is_popular: bool


class CdkPackagesResponse(BaseModel):
    points_packages: list[CatalogPointsPackageResponse]
    subscription_plans: list[CatalogSubscriptionPlanResponse]


class PointsEarnRequest(BaseModel):
    user_id: str = Field(min_length=1, max_length=64)
    amount: int = Field(gt=0)
    description: str = Field(min_length=1, max_length=256)
    expiry_days: int | None = Field(default=None, ge=1)


class PointsSpendRequest(BaseModel):
    user_id: str = Field(min_length=1, max_length=64)
    amount: int = Field(gt=0)
    description: str = Field(min_length=1, max_length=256)


class PointsUserRequest(BaseModel):
    user_id: str = Field(min_length=1, max_length=64)


class PointsBalanceResponse(BaseModel):
    user_id: str
    balance: int = Field(ge=0)


class PointsEntryResponse(BaseModel):
    id: int
    points: int
    type: str
    source: str
    description: str
    earned_at: datetime
    expires_at: datetime | None = None


class PointsAwardResponse(BaseModel):
    awarded: bool
    points: int = Field(ge=0)
    reason: str | None = None
    next_award_at: datetime | None = None


class PointsCleanupResponse(BaseModel):
    deleted: int = Field(ge=0)
