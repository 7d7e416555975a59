from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime

from sqlalchemy import Numeric, and_, cast, func, or_, select, tuple_
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from app.db.models.leaderboard_stats import LeaderboardStat
from app.db.models.users import User
from app.game.leaderboard.ranking import RANK_DECIMAL_PLACES


def _rounded(column):
    return func.round(cast(column, Numeric), RANK_DECIMAL_PLACES)


class LeaderboardStatsRepo:
    @staticmethod
    async def ensure_rows(
        session: AsyncSession,
        *,
        user_id: str,
        game_id: str,
        period_keys: Mapping[str, str],
        now_utc: datetime,
    ) -> None:
        values = [
            {
                "user_id": user_id,
                "game_id": game_id,
                "period_type": period_type,
                "period_key": period_key,
                "games_played": 0,
                "games_won": 0,
                "total_attempts": 0,
                "total_time_seconds": 0,
                "current_streak": 0,
                "best_streak": 0,
                "average_attempts": None,
                "success_rate": 0.0,
                "updated_at": now_utc,
            }
            for period_type, period_key in period_keys.items()
        ]
        stmt = insert(LeaderboardStat).values(values)
        stmt = stmt.on_conflict_do_nothing(
            index_elements=[
                LeaderboardStat.user_id,
                LeaderboardStat.game_id,
                LeaderboardStat.period_type,
                LeaderboardStat.period_key,
            ],
        )
        await session.execute(stmt)

    @staticmethod
    async def list_for_update(
        session: AsyncSession,
        *,
        user_id: str,
        game_id: str,
        period_keys: Mapping[str, str],
    ) -> list[LeaderboardStat]:
        stmt = (
            select(LeaderboardStat)
            .where(
                LeaderboardStat.user_id == user_id,
                LeaderboardStat.game_id == game_id,
                tuple_(LeaderboardStat.period_type, LeaderboardStat.period_key).in_(
                    list(period_keys.items())
                ),
            )
            .order_by(LeaderboardStat.id.asc())
            .with_for_update()
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_for_group(
        session: AsyncSession,
        *,
        game_id: str,
        period_type: str,
        period_key: str,
        group_name: str,
        limit: int | None = None,
    ) -> list[tuple[LeaderboardStat, User]]:
        stmt = (
            select(LeaderboardStat, User)
            .join(User, User.id == LeaderboardStat.user_id)
            .where(
                LeaderboardStat.game_id == game_id,
                LeaderboardStat.period_type == period_type,
                LeaderboardStat.period_key == period_key,
                User.group_name == group_name,
            )
            .order_by(
                _rounded(LeaderboardStat.success_rate).desc(),
                LeaderboardStat.current_streak.desc(),
                _rounded(LeaderboardStat.average_attempts).asc().nulls_last(),
                LeaderboardStat.games_won.desc(),
                LeaderboardStat.user_id.asc(),
            )
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await session.execute(stmt)
        return [(stat, user) for stat, user in result.all()]

    @staticmethod
    async def get_for_user_in_group(
        session: AsyncSession,
        *,
        user_id: str,
        game_id: str,
        period_type: str,
        period_key: str,
        group_name: str,
    ) -> tuple[LeaderboardStat, User] | None:
        stmt = (
            select(LeaderboardStat, User)
            .join(User, User.id == LeaderboardStat.user_id)
            .where(
                LeaderboardStat.user_id == user_id,
                LeaderboardStat.game_id == game_id,
                LeaderboardStat.period_type == period_type,
                LeaderboardStat.period_key == period_key,
                User.group_name == group_name,
            )
        )
        result = await session.execute(stmt)
        row = result.one_or_none()
        if row is None:
            return None
        return row[0], row[1]

    @staticmethod
    async def count_preceding(
        session: AsyncSession,
        *,
        stat_id: int,
        group_name: str,
    ) -> int:
        """Counts group rows of the same game/period ranked strictly ahead of ``stat_id``.

        Both sides go through the same ROUND(..., 6) expressions so equal
        ratios reached through different counters compare as equal.
        """
        me = aliased(LeaderboardStat, name="me")
        other = aliased(LeaderboardStat, name="other")

        other_rate = _rounded(other.success_rate)
        me_rate = _rounded(me.success_rate)
        other_avg = _rounded(other.average_attempts)
        me_avg = _rounded(me.average_attempts)

        avg_ahead = or_(
            and_(me.average_attempts.is_(None), other.average_attempts.is_not(None)),
            other_avg < me_avg,
        )
        avg_equal = or_(
            and_(me.average_attempts.is_(None), other.average_attempts.is_(None)),
            other_avg == me_avg,
        )
        same_rate = other_rate == me_rate
        same_streak = other.current_streak == me.current_streak

        stmt = (
            select(func.count(other.id))
            .select_from(other)
            .join(User, User.id == other.user_id)
            .join(
                me,
                and_(
                    me.id == stat_id,
                    other.game_id == me.game_id,
                    other.period_type == me.period_type,
                    other.period_key == me.period_key,
                ),
            )
            .where(
                User.group_name == group_name,
                or_(
                    other_rate > me_rate,
                    and_(same_rate, other.current_streak > me.current_streak),
                    and_(same_rate, same_streak, avg_ahead),
                    and_(same_rate, same_streak, avg_equal, other.games_won > me.games_won),
                ),
            )
        )
        result = await session.execute(stmt)
        return int(result.scalar_one())
