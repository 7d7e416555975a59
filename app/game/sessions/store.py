from __future__ import annotations

import json
from datetime import date, datetime
from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.game_sessions import GameSession
from app.db.repo.game_sessions_repo import GameSessionsRepo
from app.game.plugins.types import GameState

logger = structlog.get_logger("app.game.sessions.store")


def elapsed_seconds(started_at: datetime, completed_at: datetime | None) -> int | None:
    if completed_at is None:
        return None
    return max(0, int((completed_at - started_at).total_seconds()))


def encode_state_data(state_data: dict[str, Any]) -> dict[str, Any]:
    # JSON round trip: detaches the payload from the live state and rejects
    # values the JSONB column could not store
    return json.loads(json.dumps(state_data, ensure_ascii=False))


def decode_state_data(raw: Any) -> dict[str, Any]:
    if raw is None:
        return {}
    if isinstance(raw, str):
        return json.loads(raw)
    return json.loads(json.dumps(raw, ensure_ascii=False))


def state_from_row(row: GameSession) -> GameState:
    return GameState(
        game_id=row.game_id,
        user_id=row.user_id,
        game_date=row.game_date,
        started_at=row.started_at,
        attempts=row.attempts,
        max_attempts=row.max_attempts,
        is_complete=row.is_complete,
        won=row.won,
        completed_at=row.completed_at,
        time_seconds=row.time_seconds,
        state_data=decode_state_data(row.state_data),
    )


def row_values_from_state(state: GameState, *, now_utc: datetime) -> dict[str, Any]:
    return {
        "user_id": state.user_id,
        "game_id": state.game_id,
        "game_date": state.game_date,
        "attempts": state.attempts,
        "max_attempts": state.max_attempts,
        "is_complete": state.is_complete,
        "won": state.won,
        "started_at": state.started_at,
        "completed_at": state.completed_at,
        "time_seconds": elapsed_seconds(state.started_at, state.completed_at),
        "state_data": encode_state_data(state.state_data),
        "updated_at": now_utc,
    }


class GameSessionStore:
    """Loads and persists per-(user, game, date) progress records."""

    @staticmethod
    async def load(
        session: AsyncSession,
        *,
        user_id: str,
        game_id: str,
        game_date: date | None,
        for_update: bool = False,
    ) -> GameState | None:
        if for_update:
            row = await GameSessionsRepo.get_by_key_for_update(
                session,
                user_id=user_id,
                game_id=game_id,
                game_date=game_date,
            )
        else:
            row = await GameSessionsRepo.get_by_key(
                session,
                user_id=user_id,
                game_id=game_id,
                game_date=game_date,
            )
        if row is None:
            return None
        return state_from_row(row)

    @staticmethod
    async def create(session: AsyncSession, state: GameState, *, now_utc: datetime) -> GameState:
        """Persists a freshly initialized session.

        A concurrent request may have created the same key first; in that case
        the stored row is authoritative and is returned instead.
        """
        created = await GameSessionsRepo.create_if_absent(
            session,
            values=row_values_from_state(state, now_utc=now_utc),
        )
        if created:
            logger.info(
                "game_session_created",
                user_id=state.user_id,
                game_id=state.game_id,
                game_date=state.game_date.isoformat() if state.game_date else None,
            )
            return state

        logger.info(
            "game_session_create_race_reloaded",
            user_id=state.user_id,
            game_id=state.game_id,
            game_date=state.game_date.isoformat() if state.game_date else None,
        )
        existing = await GameSessionStore.load(
            session,
            user_id=state.user_id,
            game_id=state.game_id,
            game_date=state.game_date,
        )
        if existing is None:
            raise RuntimeError("game session vanished after conflicting insert")
        return existing

    @staticmethod
    async def save(session: AsyncSession, state: GameState, *, now_utc: datetime) -> GameState:
        state.time_seconds = elapsed_seconds(state.started_at, state.completed_at)
        await GameSessionsRepo.upsert(session, values=row_values_from_state(state, now_utc=now_utc))
        return state

    @staticmethod
    async def history(
        session: AsyncSession,
        *,
        user_id: str,
        game_id: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[GameState]:
        rows = await GameSessionsRepo.list_for_user(
            session,
            user_id=user_id,
            game_id=game_id,
            limit=limit,
            offset=offset,
        )
        return [state_from_row(row) for row in rows]
