from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from governor.core.config import Settings, get_settings

PACKAGE_TYPE_POINTS = "points_package"
PACKAGE_TYPE_SUBSCRIPTION = "subscription_plan"
PACKAGE_TYPES = (PACKAGE_TYPE_POINTS, PACKAGE_TYPE_SUBSCRIPTION)

PLAN_DURATION_DAYS: dict[str, int] = {
    "monthly": 30,
    "quarterly": 90,
    "yearly": 365,
}

POINTS_PACKAGE_EXPIRY_DAYS = 30
SUBSCRIPTION_BONUS_EXPIRY_DAYS = 365


@dataclass(frozen=True, slots=True)
class RedemptionConfig:
    daily_limit: int

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> RedemptionConfig:
        settings = settings or get_settings()
        return cls(daily_limit=settings.cdk_user_daily_limit)


@dataclass(slots=True)
class QuotaStatus:
    current: int
    max: int

    @property
    def remaining(self) -> int:
        return max(self.max - self.current, 0)

    @property
    def can_redeem(self) -> bool:
        return self.current < self.max


@dataclass(slots=True)
class RedemptionResult:
    success: bool
    message: str
    code: str | None = None
    data: dict[str, object] | None = None


@dataclass(slots=True)
class GrantOutcome:
    package_name: str
    snapshot: dict[str, object]
    points_awarded: int = 0
    subscription_expires_at: datetime | None = None


@dataclass(slots=True)
class IssuedBatch:
    package_type: str
    package_id: int
    codes: list[str] = field(default_factory=list)
    ids: list[UUID] = field(default_factory=list)
