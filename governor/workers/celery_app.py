from celery import Celery
from celery.signals import setup_logging

from governor.core.config import get_settings
from governor.core.logging import configure_logging

settings = get_settings()

celery_app = Celery(
    "governor",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["governor.workers.tasks.points_maintenance"],
)

celery_app.conf.update(
    task_default_queue="q_maintenance",
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
)


@setup_logging.connect
def _configure_worker_logging(**_: object) -> None:
    configure_logging(settings.log_level, json_logs=settings.app_env != "dev")


@celery_app.task(name="governor.workers.celery_app.ping")
def ping() -> str:
    return "pong"
