from __future__ import annotations

from datetime import datetime, timedelta, timezone
from time import perf_counter

import structlog

from app.db.repo.illustrations_repo import IllustrationsRepo
from app.db.session import SessionLocal
from app.services.illustrations import build_illustration_service
from app.workers.tasks.illustrations_config import ILLUSTRATION_QUEUE_RETENTION_DAYS

logger = structlog.get_logger("app.workers.tasks.illustrations")


async def run_illustration_retry_async(*, batch_size: int, max_attempts: int) -> dict[str, object]:
    started_at = perf_counter()
    now_utc = datetime.now(timezone.utc)
    service = build_illustration_service(SessionLocal)
    counters = await service.retry_pending(batch_size=batch_size, max_attempts=max_attempts)

    async with SessionLocal.begin() as session:
        pruned_total = await IllustrationsRepo.prune_finished(
            session,
            older_than=now_utc - timedelta(days=ILLUSTRATION_QUEUE_RETENTION_DAYS),
        )

    result: dict[str, object] = {
        "generated_at": now_utc.isoformat(),
        "batch_size": batch_size,
        "max_attempts": max_attempts,
        "pruned_total": pruned_total,
        "duration_ms": int((perf_counter() - started_at) * 1000),
        **counters,
    }
    if counters["claimed_total"] > 0 or pruned_total > 0:
        logger.info("illustration_retry_finished", **result)
    return result
