from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select

from app.db.models.game_sessions import GameSession
from app.db.models.leaderboard_stats import LeaderboardStat
from app.db.repo.game_sessions_repo import GameSessionsRepo
from app.db.session import SessionLocal
from app.game.plugins.types import GameState
from app.game.sessions.errors import GameAlreadyCompleteError
from app.game.sessions.service import GameSessionService
from app.game.sessions.store import row_values_from_state
from tests.integration.ferdle_fixtures import GAME_ID, build_test_registry, create_member

UTC = timezone.utc


def _service() -> GameSessionService:
    return GameSessionService(registry=build_test_registry(), session_factory=SessionLocal)


async def _count(model) -> int:
    async with SessionLocal() as session:
        return int((await session.execute(select(func.count()).select_from(model))).scalar_one())


@pytest.mark.asyncio
async def test_concurrent_get_or_create_yields_single_row() -> None:
    now_utc = datetime.now(UTC)
    await create_member("ann", group_name="team-a", now_utc=now_utc)
    service = _service()

    views = await asyncio.gather(
        *[service.get_or_create(user_id="ann", game_id=GAME_ID, now_utc=now_utc) for _ in range(5)]
    )

    assert await _count(GameSession) == 1
    assert len({view.started_at for view in views}) == 1


@pytest.mark.asyncio
async def test_completed_session_persists_and_updates_four_stat_rows() -> None:
    now_utc = datetime.now(UTC)
    await create_member("ann", group_name="team-a", now_utc=now_utc)
    service = _service()

    first = await service.submit_move(user_id="ann", game_id=GAME_ID, move={"guess": "floor"}, now_utc=now_utc)
    assert first.session.attempts == 1
    assert await _count(LeaderboardStat) == 0

    finished = await service.submit_move(
        user_id="ann",
        game_id=GAME_ID,
        move={"guess": "robot"},
        now_utc=now_utc + timedelta(seconds=42),
    )

    assert finished.completed_now is True
    assert finished.session.time_seconds == 42
    async with SessionLocal() as session:
        stats = list((await session.execute(select(LeaderboardStat))).scalars().all())
    assert sorted(stat.period_type for stat in stats) == ["all_time", "daily", "monthly", "weekly"]
    assert all(stat.games_won == 1 and stat.total_attempts == 2 for stat in stats)

    with pytest.raises(GameAlreadyCompleteError):
        await service.submit_move(user_id="ann", game_id=GAME_ID, move={"guess": "crane"}, now_utc=now_utc)

    async with SessionLocal() as session:
        row = await GameSessionsRepo.get_by_key(
            session,
            user_id="ann",
            game_id=GAME_ID,
            game_date=finished.session.game_date,
        )
    assert row is not None
    assert row.attempts == 2
    assert row.state_data["guesses"][1]["clues"] == ["correct"] * 5
    assert await _count(LeaderboardStat) == 4


@pytest.mark.asyncio
async def test_unlimited_sessions_are_unique_with_null_date() -> None:
    now_utc = datetime.now(UTC)
    await create_member("ann", group_name="team-a", now_utc=now_utc)
    state = GameState(game_id="practice", user_id="ann", game_date=None, started_at=now_utc)

    async with SessionLocal.begin() as session:
        created_first = await GameSessionsRepo.create_if_absent(
            session,
            values=row_values_from_state(state, now_utc=now_utc),
        )
        created_second = await GameSessionsRepo.create_if_absent(
            session,
            values=row_values_from_state(state, now_utc=now_utc),
        )

    assert created_first is True
    assert created_second is False
    assert await _count(GameSession) == 1
