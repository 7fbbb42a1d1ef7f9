from __future__ import annotations

import asyncio
from typing import Any

import structlog
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from sqlalchemy import text

from governor.core.config import get_settings
from governor.db.session import SessionLocal
from governor.workers.celery_app import celery_app

router = APIRouter(tags=["health"])
logger = structlog.get_logger(__name__)

Check = dict[str, Any]


def _ok(**extra: Any) -> Check:
    return {"status": "ok", **extra}


def _failed(error: str) -> Check:
    # Raw exception text can carry DSNs or credentials; it only goes to the log.
    return {"status": "failed", "error": error}


async def _check_database() -> Check:
    try:
        async with SessionLocal() as session:
            await session.execute(text("SELECT 1"))
    except Exception as exc:
        logger.warning("health_database_failed", error_type=type(exc).__name__)
        return _failed("database_unavailable")
    return _ok()


async def _check_redis() -> Check:
    client = Redis.from_url(get_settings().redis_url)
    try:
        if await client.ping() is not True:
            return _failed("redis_unexpected_reply")
    except Exception as exc:
        logger.warning("health_redis_failed", error_type=type(exc).__name__)
        return _failed("redis_unavailable")
    finally:
        await client.aclose()
    return _ok()


def _check_celery_worker_sync() -> Check:
    try:
        inspector = celery_app.control.inspect(timeout=1.0)
        replies = (inspector.ping() if inspector is not None else None) or {}
    except Exception as exc:
        logger.warning("health_celery_failed", error_type=type(exc).__name__)
        return _failed("celery_unavailable")
    if not replies:
        return _failed("celery_no_workers")
    return _ok(workers=len(replies))


async def _check_celery_worker() -> Check:
    return await asyncio.to_thread(_check_celery_worker_sync)


def _status_response(checks: dict[str, Check], *, ok: str, failed: str) -> JSONResponse:
    healthy = all(check.get("status") == "ok" for check in checks.values())
    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": ok if healthy else failed, "checks": checks},
    )


@router.get("/health")
async def health() -> JSONResponse:
    database, redis_check, celery = await asyncio.gather(
        _check_database(),
        _check_redis(),
        _check_celery_worker(),
    )
    checks = {"database": database, "redis": redis_check, "celery": celery}
    return _status_response(checks, ok="ok", failed="degraded")


@router.get("/ready")
async def ready() -> JSONResponse:
    # Admission and redemption only need the database to serve.
    checks = {"database": await _check_database()}
    return _status_response(checks, ok="ready", failed="not_ready")


@router.get("/live")
async def live() -> dict[str, str]:
    return {"status": "live"}
