from __future__ import annotations

from app.workers.celery_app import celery_app
from app.workers.tasks import illustrations
from app.workers.tasks.illustrations_config import ILLUSTRATION_RETRY_INTERVAL_MINUTES


def test_run_illustration_retry_task_wrapper(monkeypatch) -> None:
    captured: dict[str, int] = {}

    async def fake_async(*, batch_size: int, max_attempts: int) -> dict[str, object]:
        captured.update(batch_size=batch_size, max_attempts=max_attempts)
        return {"claimed_total": 2, "done_total": 1, "failed_total": 0}

    monkeypatch.setattr(illustrations, "run_illustration_retry_async", fake_async)

    result = illustrations.run_illustration_retry(batch_size=7, max_attempts=3)

    assert result == {"claimed_total": 2, "done_total": 1, "failed_total": 0}
    assert captured == {"batch_size": 7, "max_attempts": 3}


def test_illustration_retry_is_beat_scheduled() -> None:
    entry = celery_app.conf.beat_schedule["illustration-retry-queue-drain"]

    assert entry["task"] == "app.workers.tasks.illustrations.run_illustration_retry"
    assert entry["schedule"] == float(ILLUSTRATION_RETRY_INTERVAL_MINUTES * 60)
    assert entry["options"] == {"queue": "q_low"}


def test_celery_app_runs_in_platform_timezone() -> None:
    assert celery_app.conf.timezone == "America/New_York"
    assert "app.workers.tasks.illustrations" in celery_app.conf.include


def test_illustration_tasks_route_to_low_priority_queue() -> None:
    routes = celery_app.conf.task_routes

    assert routes["app.workers.tasks.illustrations.*"] == {"queue": "q_low"}
    assert celery_app.conf.task_default_queue == "q_normal"
