from app.workers.tasks.illustrations import run_illustration_retry

__all__ = [
    "run_illustration_retry",
]
