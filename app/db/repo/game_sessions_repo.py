from __future__ import annotations

from datetime import date
from typing import Any

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.game_sessions import GameSession

SESSION_KEY_COLUMNS = (GameSession.user_id, GameSession.game_id, GameSession.game_date)


class GameSessionsRepo:
    @staticmethod
    def _by_key_stmt(*, user_id: str, game_id: str, game_date: date | None):
        stmt = select(GameSession).where(
            GameSession.user_id == user_id,
            GameSession.game_id == game_id,
        )
        if game_date is None:
            return stmt.where(GameSession.game_date.is_(None))
        return stmt.where(GameSession.game_date == game_date)

    @staticmethod
    async def get_by_key(
        session: AsyncSession,
        *,
        user_id: str,
        game_id: str,
        game_date: date | None,
    ) -> GameSession | None:
        stmt = GameSessionsRepo._by_key_stmt(user_id=user_id, game_id=game_id, game_date=game_date)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_key_for_update(
        session: AsyncSession,
        *,
        user_id: str,
        game_id: str,
        game_date: date | None,
    ) -> GameSession | None:
        stmt = GameSessionsRepo._by_key_stmt(
            user_id=user_id,
            game_id=game_id,
            game_date=game_date,
        ).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create_if_absent(session: AsyncSession, *, values: dict[str, Any]) -> bool:
        """Inserts a new session row; returns False when the key already exists."""
        stmt = (
            insert(GameSession)
            .values(**values)
            .on_conflict_do_nothing(index_elements=list(SESSION_KEY_COLUMNS))
            .returning(GameSession.id)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None

    @staticmethod
    async def upsert(session: AsyncSession, *, values: dict[str, Any]) -> None:
        stmt = insert(GameSession).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=list(SESSION_KEY_COLUMNS),
            set_={
                "attempts": stmt.excluded.attempts,
                "is_complete": stmt.excluded.is_complete,
                "won": stmt.excluded.won,
                "completed_at": stmt.excluded.completed_at,
                "time_seconds": stmt.excluded.time_seconds,
                "state_data": stmt.excluded.state_data,
                "updated_at": stmt.excluded.updated_at,
            },
        )
        await session.execute(stmt)

    @staticmethod
    async def list_for_user(
        session: AsyncSession,
        *,
        user_id: str,
        game_id: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[GameSession]:
        stmt = select(GameSession).where(GameSession.user_id == user_id)
        if game_id is not None:
            stmt = stmt.where(GameSession.game_id == game_id)
        stmt = (
            stmt.order_by(GameSession.started_at.desc(), GameSession.id.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

