from __future__ import annotations

from app.workers.tasks.illustrations_config import ILLUSTRATION_RETRY_INTERVAL_MINUTES


def configure_illustrations_schedule(celery_app) -> None:
    celery_app.conf.beat_schedule = celery_app.conf.beat_schedule or {}
    celery_app.conf.beat_schedule.update(
        {
            "illustration-retry-queue-drain": {
                "task": "app.workers.tasks.illustrations.run_illustration_retry",
                "schedule": float(ILLUSTRATION_RETRY_INTERVAL_MINUTES * 60),
                "options": {"queue": "q_low"},
            },
        }
    )
