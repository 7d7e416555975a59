from __future__ import annotations

from datetime import datetime, timezone

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.calendar import PeriodType, parse_period_type, period_key, period_keys_for, platform_today
from app.db.models.leaderboard_stats import LeaderboardStat
from app.db.models.users import User
from app.db.repo.leaderboard_stats_repo import LeaderboardStatsRepo
from app.game.leaderboard.errors import NotGroupMemberError
from app.game.leaderboard.ranking import assign_ranks
from app.game.leaderboard.rules import apply_completion
from app.game.leaderboard.types import CompletionEvent, LeaderboardEntry, LeaderboardView, StatCounters
from app.services.whitelist import Whitelist

logger = structlog.get_logger("app.game.leaderboard.service")

DEFAULT_LEADERBOARD_LIMIT = 10


class LeaderboardService:
    @staticmethod
    def _counters_from_model(stat: LeaderboardStat) -> StatCounters:
        return StatCounters(
            games_played=stat.games_played,
            games_won=stat.games_won,
            total_attempts=stat.total_attempts,
            total_time_seconds=stat.total_time_seconds,
            current_streak=stat.current_streak,
            best_streak=stat.best_streak,
            average_attempts=stat.average_attempts,
            success_rate=stat.success_rate,
        )

    @staticmethod
    def _apply_counters_to_model(stat: LeaderboardStat, counters: StatCounters, now_utc: datetime) -> None:
        stat.games_played = counters.games_played
        stat.games_won = counters.games_won
        stat.total_attempts = counters.total_attempts
        stat.total_time_seconds = counters.total_time_seconds
        stat.current_streak = counters.current_streak
        stat.best_streak = counters.best_streak
        stat.average_attempts = counters.average_attempts
        stat.success_rate = counters.success_rate
        stat.updated_at = now_utc

    @staticmethod
    def _entry(rank: int, stat: LeaderboardStat, user: User) -> LeaderboardEntry:
        return LeaderboardEntry(
            rank=rank,
            user_id=stat.user_id,
            name=user.name,
            avatar_url=user.avatar_url,
            games_played=stat.games_played,
            games_won=stat.games_won,
            total_attempts=stat.total_attempts,
            total_time_seconds=stat.total_time_seconds,
            current_streak=stat.current_streak,
            best_streak=stat.best_streak,
            average_attempts=stat.average_attempts,
            success_rate=stat.success_rate,
        )

    @staticmethod
    async def record_completion(
        session: AsyncSession,
        *,
        event: CompletionEvent,
        completed_at_utc: datetime,
    ) -> list[LeaderboardStat]:
        """Folds one finished session into its daily, weekly, monthly and all-time rows.

        The four rows are written inside one SAVEPOINT: either every bucket
        counts the session or none does.
        """
        day = platform_today(completed_at_utc)
        keys = {period_type.value: key for period_type, key in period_keys_for(day).items()}

        async with session.begin_nested():
            await LeaderboardStatsRepo.ensure_rows(
                session,
                user_id=event.user_id,
                game_id=event.game_id,
                period_keys=keys,
                now_utc=completed_at_utc,
            )
            stats = await LeaderboardStatsRepo.list_for_update(
                session,
                user_id=event.user_id,
                game_id=event.game_id,
                period_keys=keys,
            )
            if len(stats) != len(keys):
                raise RuntimeError(
                    f"expected {len(keys)} leaderboard rows, found {len(stats)}"
                )

            for stat in stats:
                updated = apply_completion(LeaderboardService._counters_from_model(stat), event)
                LeaderboardService._apply_counters_to_model(stat, updated, completed_at_utc)
            await session.flush()

        logger.info(
            "leaderboard_stats_updated",
            user_id=event.user_id,
            game_id=event.game_id,
            won=event.won,
            attempts=event.attempts,
            period_keys=keys,
        )
        return stats

    @staticmethod
    async def get_leaderboard(
        session: AsyncSession,
        *,
        game_id: str,
        period_type: str | PeriodType,
        group_name: str,
        now_utc: datetime | None = None,
        limit: int = DEFAULT_LEADERBOARD_LIMIT,
    ) -> LeaderboardView:
        resolved = parse_period_type(period_type)
        key = period_key(resolved, platform_today(now_utc or datetime.now(timezone.utc)))

        rows = await LeaderboardStatsRepo.list_for_group(
            session,
            game_id=game_id,
            period_type=resolved.value,
            period_key=key,
            group_name=group_name,
        )
        ranked = assign_ranks(rows, stat_of=lambda row: row[0])
        entries = tuple(
            LeaderboardService._entry(rank, stat, user)
            for rank, (stat, user) in ranked[: max(0, limit)]
        )
        return LeaderboardView(
            game_id=game_id,
            period_type=resolved.value,
            period_key=key,
            group_name=group_name,
            entries=entries,
        )

    @staticmethod
    async def get_user_rank(
        session: AsyncSession,
        *,
        user_id: str,
        game_id: str,
        period_type: str | PeriodType,
        group_name: str,
        now_utc: datetime | None = None,
    ) -> LeaderboardEntry | None:
        resolved = parse_period_type(period_type)
        key = period_key(resolved, platform_today(now_utc or datetime.now(timezone.utc)))

        found = await LeaderboardStatsRepo.get_for_user_in_group(
            session,
            user_id=user_id,
            game_id=game_id,
            period_type=resolved.value,
            period_key=key,
            group_name=group_name,
        )
        if found is None:
            return None

        stat, user = found
        preceding = await LeaderboardStatsRepo.count_preceding(
            session,
            stat_id=stat.id,
            group_name=group_name,
        )
        return LeaderboardService._entry(preceding + 1, stat, user)


class GroupLeaderboardQueries:
    """Leaderboard reads scoped to the caller's whitelist group."""

    def __init__(
        self,
        *,
        whitelist: Whitelist,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        self._whitelist = whitelist
        self._session_factory = session_factory

    def group_for(self, email: str) -> str:
        group_name = self._whitelist.group_name_for(email)
        if group_name is None:
            raise NotGroupMemberError
        return group_name

    async def leaderboard(
        self,
        *,
        email: str,
        game_id: str,
        period_type: str | PeriodType,
        now_utc: datetime | None = None,
        limit: int = DEFAULT_LEADERBOARD_LIMIT,
    ) -> LeaderboardView:
        group_name = self.group_for(email)
        async with self._session_factory() as session:
            return await LeaderboardService.get_leaderboard(
                session,
                game_id=game_id,
                period_type=period_type,
                group_name=group_name,
                now_utc=now_utc,
                limit=limit,
            )

    async def user_rank(
        self,
        *,
        email: str,
        user_id: str,
        game_id: str,
        period_type: str | PeriodType,
        now_utc: datetime | None = None,
    ) -> LeaderboardEntry | None:
        group_name = self.group_for(email)
        async with self._session_factory() as session:
            return await LeaderboardService.get_user_rank(
                session,
                user_id=user_id,
                game_id=game_id,
                period_type=period_type,
                group_name=group_name,
                now_utc=now_utc,
            )
