from __future__ import annotations

import structlog

from governor.db.session import SessionLocal
from governor.economy.points.service import PointsLedger
from governor.workers.asyncio_runner import run_async_job
from governor.workers.celery_app import celery_app

logger = structlog.get_logger(__name__)

POINTS_EXPIRY_CLEANUP_TASK = "governor.workers.tasks.points_maintenance.run_points_expiry_cleanup"


async def run_points_expiry_cleanup_async() -> dict[str, int]:
    async with SessionLocal.begin() as session:
        deleted = await PointsLedger.cleanup_expired(session)

    result = {"deleted_entries": deleted}
    logger.info("points_expiry_cleanup_finished", **result)
    return result


@celery_app.task(name=POINTS_EXPIRY_CLEANUP_TASK)
def run_points_expiry_cleanup() -> dict[str, int]:
    return run_async_job(run_points_expiry_cleanup_async, name="points_expiry_cleanup")


celery_app.conf.beat_schedule = celery_app.conf.beat_schedule or {}
celery_app.conf.beat_schedule.update(
    {
        "points-expiry-cleanup-hourly": {
            "task": POINTS_EXPIRY_CLEANUP_TASK,
            "schedule": 3600.0,
            "options": {"queue": "q_maintenance"},
        },
    }
)
