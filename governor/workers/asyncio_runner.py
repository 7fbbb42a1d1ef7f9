from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import TypeVar

import structlog

from governor.db.session import dispose_engine

T = TypeVar("T")

logger = structlog.get_logger(__name__)

DEFAULT_JOB_TIMEOUT_SECONDS = 300.0


async def _run_on_fresh_pool(
    job: Callable[[], Awaitable[T]],
    *,
    timeout_seconds: float | None,
) -> T:
    # Pooled asyncpg connections belong to the loop that opened them; each
    # asyncio.run() below starts a new loop.
    await dispose_engine()
    try:
        return await asyncio.wait_for(job(), timeout=timeout_seconds)
    finally:
        await dispose_engine()


def run_async_job(
    job: Callable[[], Awaitable[T]],
    *,
    name: str | None = None,
    timeout_seconds: float | None = DEFAULT_JOB_TIMEOUT_SECONDS,
) -> T:
    job_name = name or getattr(job, "__name__", "async_job")
    started = time.monotonic()
    try:
        result = asyncio.run(_run_on_fresh_pool(job, timeout_seconds=timeout_seconds))
    except asyncio.TimeoutError:
        logger.error("async_job_timeout", job=job_name, timeout_seconds=timeout_seconds)
        raise
    logger.info(
        "async_job_finished",
        job=job_name,
        duration_ms=round((time.monotonic() - started) * 1000, 1),
    )
    return result
