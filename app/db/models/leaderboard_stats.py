from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class LeaderboardStat(Base):
    __tablename__ = "leaderboard_stats"
    __table_args__ = (
        UniqueConstraint(
            "user_id",
            "game_id",
            "period_type",
            "period_key",
            name="uq_leaderboard_stats_user_game_period",
        ),
        CheckConstraint(
            "period_type IN ('daily','weekly','monthly','all_time')",
            name="ck_leaderboard_stats_period_type",
        ),
        CheckConstraint("games_won <= games_played", name="ck_leaderboard_stats_won_le_played"),
        CheckConstraint("current_streak >= 0", name="ck_leaderboard_stats_current_streak_non_negative"),
        CheckConstraint("best_streak >= current_streak", name="ck_leaderboard_stats_best_ge_current"),
        Index("idx_leaderboard_game_period", "game_id", "period_type", "period_key"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    game_id: Mapped[str] = mapped_column(String(64), nullable=False)
    period_type: Mapped[str] = mapped_column(String(16), nullable=False)
    period_key: Mapped[str] = mapped_column(String(16), nullable=False)
    games_played: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    games_won: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_time_seconds: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    current_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    best_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    average_attempts: Mapped[float | None] = mapped_column(Float, nullable=True)
    success_rate: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
