from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from governor.db.repo.ip_concurrency_repo import IpConcurrencyRepo
from governor.db.session import SessionLocal
from governor.generation.admission.rules import compute_limit
from governor.generation.admission.types import (
    AdmissionConfig,
    AdmissionDecision,
    Caller,
    SlotInfo,
)

logger = structlog.get_logger(__name__)


class AdmissionController:
    """Per-origin concurrency gate for generation jobs, coordinated through the database."""

    def __init__(
        self,
        config: AdmissionConfig,
        *,
        session_factory: async_sessionmaker[AsyncSession] = SessionLocal,
    ) -> None:
        self._config = config
        self._session_factory = session_factory

    @property
    def config(self) -> AdmissionConfig:
        return self._config

    async def try_admit(
        self,
        origin: str,
        *,
        caller_id: str | None = None,
        is_admin: bool = False,
        is_premium: bool = False,
        now_utc: datetime | None = None,
    ) -> AdmissionDecision:
        if not origin:
            return AdmissionDecision(admitted=False, current=0, max=None)
        now_utc = now_utc or datetime.now(timezone.utc)
        limit = compute_limit(
            self._config,
            Caller(user_id=caller_id, is_admin=is_admin, is_premium=is_premium),
        )

        async with self._session_factory.begin() as session:
            await IpConcurrencyRepo.ensure_exists(session, ip_address=origin, now_utc=now_utc)
            await IpConcurrencyRepo.set_max(
                session, ip_address=origin, max_concurrency=limit, now_utc=now_utc
            )

            if limit is None:
                current = await IpConcurrencyRepo.increment(
                    session, ip_address=origin, now_utc=now_utc
                )
                logger.info("admission_granted", origin=origin, current=current, max=None)
                return AdmissionDecision(admitted=True, current=int(current or 0), max=None)

            current = await IpConcurrencyRepo.increment_below_max(
                session, ip_address=origin, max_concurrency=limit, now_utc=now_utc
            )
            if current is None:
                current = await IpConcurrencyRepo.get_current(session, origin)
                logger.info("admission_rejected", origin=origin, current=current, max=limit)
                return AdmissionDecision(admitted=False, current=current, max=limit)

        logger.info("admission_granted", origin=origin, current=current, max=limit)
        return AdmissionDecision(admitted=True, current=current, max=limit)

    async def release(self, origin: str, *, now_utc: datetime | None = None) -> int:
        if not origin:
            return 0
        now_utc = now_utc or datetime.now(timezone.utc)
        async with self._session_factory.begin() as session:
            current = await IpConcurrencyRepo.decrement(
                session, ip_address=origin, now_utc=now_utc
            )
        logger.info("admission_released", origin=origin, current=current)
        return int(current or 0)

    async def get_info(self, origin: str) -> SlotInfo:
        if not origin:
            return SlotInfo(origin=origin, current=0, max=None)
        async with self._session_factory() as session:
            slot = await IpConcurrencyRepo.get_by_ip(session, origin)
        if slot is None:
            return SlotInfo(origin=origin, current=0, max=None)
        return SlotInfo(
            origin=origin,
            current=slot.current_concurrency,
            max=slot.max_concurrency,
        )

    async def reset_all(self, *, now_utc: datetime | None = None) -> int:
        now_utc = now_utc or datetime.now(timezone.utc)
        async with self._session_factory.begin() as session:
            reset = await IpConcurrencyRepo.reset_all(session, now_utc=now_utc)
        logger.warning("admission_slots_reset", slots=reset)
        return reset

    @asynccontextmanager
    async def hold(
        self,
        origin: str,
        *,
        caller_id: str | None = None,
        is_admin: bool = False,
        is_premium: bool = False,
    ) -> AsyncIterator[AdmissionDecision]:
        decision = await self.try_admit(
            origin,
            caller_id=caller_id,
            is_admin=is_admin,
            is_premium=is_premium,
        )
        try:
            yield decision
        finally:
            if decision.admitted:
                await self.release(origin)
