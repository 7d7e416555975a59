from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

import structlog

from app.db.session import dispose_engine

T = TypeVar("T")


async def _run_job(awaitable: Awaitable[T], *, job_name: str | None) -> T:
    # Celery prefork children must not reuse pooled connections from another loop.
    await dispose_engine()
    if job_name is not None:
        structlog.contextvars.bind_contextvars(job=job_name)
    try:
        return await awaitable
    finally:
        structlog.contextvars.clear_contextvars()
        await dispose_engine()


def run_async_job(awaitable: Awaitable[T], *, job_name: str | None = None) -> T:
    return asyncio.run(_run_job(awaitable, job_name=job_name))
