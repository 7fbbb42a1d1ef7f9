from __future__ import annotations

from dataclasses import dataclass

from governor.core.config import Settings, get_settings


@dataclass(frozen=True, slots=True)
class AdmissionConfig:
    max_concurrent_generations: int
    anonymous_limit: int = 1

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> AdmissionConfig:
        settings = settings or get_settings()
        return cls(max_concurrent_generations=settings.max_concurrent_generations)


@dataclass(frozen=True, slots=True)
class Caller:
    user_id: str | None = None
    is_admin: bool = False
    is_premium: bool = False


@dataclass(slots=True)
class AdmissionDecision:
    admitted: bool
    current: int
    max: int | None


@dataclass(slots=True)
class SlotInfo:
    origin: str
    current: int
    max: int | None
