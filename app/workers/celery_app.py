from celery import Celery
from celery.signals import setup_logging

from app.core.calendar import PLATFORM_TIMEZONE
from app.core.config import get_settings
from app.core.logging import configure_logging

settings = get_settings()

celery_app = Celery(
    "ferdle",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=[
        "app.workers.tasks.illustrations",
    ],
)

celery_app.conf.update(
    task_default_queue="q_normal",
    task_routes={"app.workers.tasks.illustrations.*": {"queue": "q_low"}},
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    result_expires=24 * 60 * 60,
    timezone=PLATFORM_TIMEZONE,
    enable_utc=True,
)


@setup_logging.connect
def _configure_worker_logging(**kwargs) -> None:
    configure_logging(settings.log_level)


@celery_app.task(name="app.workers.celery_app.ping")
def ping() -> str:
    return "pong"
