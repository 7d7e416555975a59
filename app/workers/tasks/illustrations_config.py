from __future__ import annotations

from app.core.config import get_settings

settings = get_settings()


def _clamp_batch_size(value: int) -> int:
    return max(1, min(500, int(value)))


def _clamp_max_attempts(value: int) -> int:
    return max(1, min(50, int(value)))


def _clamp_interval_minutes(value: int) -> int:
    return max(1, min(1440, int(value)))


ILLUSTRATION_RETRY_BATCH_SIZE = _clamp_batch_size(settings.illustration_retry_batch_size)
ILLUSTRATION_RETRY_MAX_ATTEMPTS = _clamp_max_attempts(settings.illustration_retry_max_attempts)
ILLUSTRATION_RETRY_INTERVAL_MINUTES = _clamp_interval_minutes(settings.illustration_retry_interval_minutes)
ILLUSTRATION_QUEUE_RETENTION_DAYS = 7

__all__ = [
    "ILLUSTRATION_RETRY_BATCH_SIZE",
    "ILLUSTRATION_RETRY_MAX_ATTEMPTS",
    "ILLUSTRATION_RETRY_INTERVAL_MINUTES",
    "ILLUSTRATION_QUEUE_RETENTION_DAYS",
]
