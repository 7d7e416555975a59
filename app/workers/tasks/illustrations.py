from __future__ import annotations

from app.workers.asyncio_runner import run_async_job
from app.workers.celery_app import celery_app
from app.workers.tasks.illustrations_async import (
    run_illustration_retry_async as _run_illustration_retry_async,
)
from app.workers.tasks.illustrations_config import (
    ILLUSTRATION_RETRY_BATCH_SIZE,
    ILLUSTRATION_RETRY_MAX_ATTEMPTS,
)
from app.workers.tasks.illustrations_schedule import configure_illustrations_schedule

run_illustration_retry_async = _run_illustration_retry_async

__all__ = [
    "run_illustration_retry",
    "run_illustration_retry_async",
]


@celery_app.task(name="app.workers.tasks.illustrations.run_illustration_retry")
def run_illustration_retry(
    batch_size: int = ILLUSTRATION_RETRY_BATCH_SIZE,
    max_attempts: int = ILLUSTRATION_RETRY_MAX_ATTEMPTS,
) -> dict[str, object]:
    return run_async_job(
        run_illustration_retry_async(batch_size=batch_size, max_attempts=max_attempts),
        job_name="illustration_retry",
    )


configure_illustrations_schedule(celery_app)
