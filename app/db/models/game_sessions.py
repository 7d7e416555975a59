from __future__ import annotations

from datetime import date, datetime
from typing import Any

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class GameSession(Base):
    __tablename__ = "game_sessions"
    __table_args__ = (
        CheckConstraint("attempts >= 0", name="ck_game_sessions_attempts_non_negative"),
        CheckConstraint(
            "max_attempts IS NULL OR attempts <= max_attempts",
            name="ck_game_sessions_attempts_within_max",
        ),
        CheckConstraint(
            "(completed_at IS NULL) = (NOT is_complete)",
            name="ck_game_sessions_completion_consistency",
        ),
        Index(
            "uq_game_sessions_user_game_date",
            "user_id",
            "game_id",
            "game_date",
            unique=True,
            postgresql_nulls_not_distinct=True,
        ),
        Index("idx_game_sessions_user_started", "user_id", "started_at"),
        Index("idx_game_sessions_game_date", "game_id", "game_date"),
        Index("idx_game_sessions_completed", "completed_at"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    game_id: Mapped[str] = mapped_column(String(64), nullable=False)
    game_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_attempts: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_complete: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    won: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    time_seconds: Mapped[int | None] = mapped_column(Integer, nullable=True)
    state_data: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False, default=dict)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
