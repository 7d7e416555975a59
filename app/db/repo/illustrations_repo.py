from __future__ import annotations

from datetime import datetime, timedelta

from sqlalchemy import and_, delete, func, or_, select, text, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.illustrations import (
    OPEN_QUEUE_PREDICATE,
    IllustrationCacheEntry,
    IllustrationQueueEntry,
)

STALE_PROCESSING_AFTER = timedelta(hours=1)


class IllustrationsRepo:
    @staticmethod
    async def get_cached(
        session: AsyncSession,
        *,
        word: str,
        language: str,
    ) -> IllustrationCacheEntry | None:
        stmt = select(IllustrationCacheEntry).where(
            IllustrationCacheEntry.word == word.lower(),
            IllustrationCacheEntry.language == language,
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def save_cached(
        session: AsyncSession,
        *,
        word: str,
        language: str,
        description: str,
        prompt: str,
        image_url: str,
        model: str | None,
        generated_at: datetime,
    ) -> str:
        """Stores a generated image; the first writer for (word, language) wins.

        Returns the URL that is cached after the write.
        """
        stmt = (
            insert(IllustrationCacheEntry)
            .values(
                word=word.lower(),
                language=language,
                description=description,
                prompt=prompt,
                image_url=image_url,
                model=model,
                generated_at=generated_at,
            )
            .on_conflict_do_nothing(
                index_elements=[IllustrationCacheEntry.word, IllustrationCacheEntry.language],
            )
            .returning(IllustrationCacheEntry.image_url)
        )
        result = await session.execute(stmt)
        inserted = result.scalar_one_or_none()
        if inserted is not None:
            return inserted
        existing = await IllustrationsRepo.get_cached(session, word=word, language=language)
        return existing.image_url if existing is not None else image_url

    @staticmethod
    async def enqueue_retry(
        session: AsyncSession,
        *,
        word: str,
        language: str,
        description: str,
        error: str | None,
        now_utc: datetime,
    ) -> bool:
        """Queues a failed generation; returns False when the key is already queued."""
        stmt = (
            insert(IllustrationQueueEntry)
            .values(
                word=word.lower(),
                language=language,
                description=description,
                attempts=0,
                status="PENDING",
                last_error=error,
                created_at=now_utc,
            )
            .on_conflict_do_nothing(
                index_elements=[IllustrationQueueEntry.word, IllustrationQueueEntry.language],
                index_where=text(OPEN_QUEUE_PREDICATE),
            )
            .returning(IllustrationQueueEntry.id)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None

    @staticmethod
    async def claim_pending(
        session: AsyncSession,
        *,
        limit: int,
        now_utc: datetime,
    ) -> list[IllustrationQueueEntry]:
        stale_before = now_utc - STALE_PROCESSING_AFTER
        stmt = (
            select(IllustrationQueueEntry)
            .where(
                or_(
                    IllustrationQueueEntry.status == "PENDING",
                    and_(
                        IllustrationQueueEntry.status == "PROCESSING",
                        IllustrationQueueEntry.last_attempt_at < stale_before,
                    ),
                )
            )
            .order_by(IllustrationQueueEntry.created_at.asc(), IllustrationQueueEntry.id.asc())
            .limit(limit)
            .with_for_update(skip_locked=True)
        )
        result = await session.execute(stmt)
        entries = list(result.scalars().all())
        for entry in entries:
            entry.status = "PROCESSING"
            entry.attempts += 1
            entry.last_attempt_at = now_utc
        await session.flush()
        return entries

    @staticmethod
    async def finish_attempt(
        session: AsyncSession,
        *,
        entry_id: int,
        status: str,
        error: str | None,
    ) -> None:
        stmt = (
            update(IllustrationQueueEntry)
            .where(IllustrationQueueEntry.id == entry_id)
            .values(status=status, last_error=error)
        )
        await session.execute(stmt)

    @staticmethod
    async def prune_finished(session: AsyncSession, *, older_than: datetime) -> int:
        stmt = delete(IllustrationQueueEntry).where(
            IllustrationQueueEntry.status.in_(("DONE", "FAILED")),
            func.coalesce(IllustrationQueueEntry.last_attempt_at, IllustrationQueueEntry.created_at)
            < older_than,
        )
        result = await session.execute(stmt)
        return int(result.rowcount or 0)
