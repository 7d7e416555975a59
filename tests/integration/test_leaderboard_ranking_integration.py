from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from app.db.session import SessionLocal
from app.game.leaderboard.service import LeaderboardService
from app.game.leaderboard.types import CompletionEvent
from tests.integration.ferdle_fixtures import GAME_ID, create_member

UTC = timezone.utc
NOW = datetime(2025, 3, 12, 16, 0, tzinfo=UTC)


async def _play(user_id: str, results: list[tuple[bool, int]]) -> None:
    for offset, (won, attempts) in enumerate(results):
        async with SessionLocal.begin() as session:
            await LeaderboardService.record_completion(
                session,
                event=CompletionEvent(
                    user_id=user_id,
                    game_id=GAME_ID,
                    won=won,
                    attempts=attempts,
                    time_seconds=60,
                ),
                completed_at_utc=NOW + timedelta(minutes=offset),
            )


@pytest.mark.asyncio
async def test_equal_rates_rank_by_average_and_match_user_rank() -> None:
    for user_id in ("ann", "bob", "cat"):
        await create_member(user_id, group_name="team-a", now_utc=NOW)

    # ann: 2/3 wins, avg 4.5; bob: 4/6 wins, avg 5.0; cat: 0/1
    await _play("ann", [(True, 4), (True, 5), (False, 10)])
    await _play("bob", [(True, 5), (True, 5), (False, 10), (True, 5), (True, 5), (False, 10)])
    await _play("cat", [(False, 10)])

    async with SessionLocal() as session:
        view = await LeaderboardService.get_leaderboard(
            session,
            game_id=GAME_ID,
            period_type="monthly",
            group_name="team-a",
            now_utc=NOW,
        )
        ranks = {
            user_id: await LeaderboardService.get_user_rank(
                session,
                user_id=user_id,
                game_id=GAME_ID,
                period_type="monthly",
                group_name="team-a",
                now_utc=NOW,
            )
            for user_id in ("ann", "bob", "cat")
        }

    assert view.period_key == "2025-03"
    assert [(entry.rank, entry.user_id) for entry in view.entries] == [(1, "ann"), (2, "bob"), (3, "cat")]
    assert {user_id: entry.rank for user_id, entry in ranks.items()} == {"ann": 1, "bob": 2, "cat": 3}
    assert view.entries[0].average_attempts == pytest.approx(4.5)
    assert view.entries[2].average_attempts is None


@pytest.mark.asyncio
async def test_leaderboard_is_isolated_per_group() -> None:
    await create_member("ann", group_name="team-a", now_utc=NOW)
    await create_member("zed", group_name="team-z", now_utc=NOW)
    await _play("ann", [(True, 3)])
    await _play("zed", [(True, 1)])

    async with SessionLocal() as session:
        team_a = await LeaderboardService.get_leaderboard(
            session,
            game_id=GAME_ID,
            period_type="daily",
            group_name="team-a",
            now_utc=NOW,
        )
        outsider_rank = await LeaderboardService.get_user_rank(
            session,
            user_id="zed",
            game_id=GAME_ID,
            period_type="daily",
            group_name="team-a",
            now_utc=NOW,
        )

    assert [entry.user_id for entry in team_a.entries] == ["ann"]
    assert team_a.entries[0].rank == 1
    assert outsider_rank is None


@pytest.mark.asyncio
async def test_tied_rows_share_rank() -> None:
    for user_id in ("ann", "bob"):
        await create_member(user_id, group_name="team-a", now_utc=NOW)
        await _play(user_id, [(True, 4)])

    async with SessionLocal() as session:
        view = await LeaderboardService.get_leaderboard(
            session,
            game_id=GAME_ID,
            period_type="all_time",
            group_name="team-a",
            now_utc=NOW,
        )
        bob = await LeaderboardService.get_user_rank(
            session,
            user_id="bob",
            game_id=GAME_ID,
            period_type="all_time",
            group_name="team-a",
            now_utc=NOW,
        )

    assert [entry.rank for entry in view.entries] == [1, 1]
    assert bob is not None and bob.rank == 1
