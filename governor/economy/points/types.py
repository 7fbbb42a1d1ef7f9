from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from governor.core.config import Settings, get_settings

POINTS_SOURCE_DAILY_AWARD = "DAILY_AWARD"
POINTS_SOURCE_CDK = "CDK"
POINTS_SOURCE_SUBSCRIPTION_BONUS = "SUBSCRIPTION_BONUS"
POINTS_SOURCE_GENERATION = "GENERATION"
POINTS_SOURCE_MANUAL = "MANUAL"


@dataclass(frozen=True, slots=True)
class DailyAwardConfig:
    regular_points: int
    premium_points: int
    expiry_days: int
    timezone_name: str

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> DailyAwardConfig:
        settings = settings or get_settings()
        return cls(
            regular_points=settings.regular_user_daily_points,
            premium_points=settings.premium_user_daily_points,
            expiry_days=settings.points_expiry_days,
            timezone_name=settings.daily_award_timezone,
        )


@dataclass(slots=True)
class AwardResult:
    awarded: bool
    points: int
    reason: str | None = None
    next_award_at: datetime | None = None
