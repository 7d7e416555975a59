"""ferdle_core_schema

Revision ID: 5d1e7a3c9b20
Revises:
Create Date: 2026-10-19 09:30:00.000000
"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "5d1e7a3c9b20"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("avatar_url", sa.String(1024), nullable=True),
        sa.Column("group_name", sa.String(128), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )
    op.create_index("idx_users_group", "users", ["group_name"])

    op.create_table(
        "game_sessions",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("game_id", sa.String(64), nullable=False),
        sa.Column("game_date", sa.Date(), nullable=True),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("max_attempts", sa.Integer(), nullable=True),
        sa.Column("is_complete", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("won", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("time_seconds", sa.Integer(), nullable=True),
        sa.Column(
            "state_data",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("attempts >= 0", name="ck_game_sessions_attempts_non_negative"),
        sa.CheckConstraint(
            "max_attempts IS NULL OR attempts <= max_attempts",
            name="ck_game_sessions_attempts_within_max",
        ),
        sa.CheckConstraint(
            "(completed_at IS NULL) = (NOT is_complete)",
            name="ck_game_sessions_completion_consistency",
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
    )
    # unlimited games store game_date NULL and still get one row per user
    op.create_index(
        "uq_game_sessions_user_game_date",
        "game_sessions",
        ["user_id", "game_id", "game_date"],
        unique=True,
        postgresql_nulls_not_distinct=True,
    )
    op.create_index("idx_game_sessions_user_started", "game_sessions", ["user_id", "started_at"])
    op.create_index("idx_game_sessions_game_date", "game_sessions", ["game_id", "game_date"])
    op.create_index("idx_game_sessions_completed", "game_sessions", ["completed_at"])

    op.create_table(
        "leaderboard_stats",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("game_id", sa.String(64), nullable=False),
        sa.Column("period_type", sa.String(16), nullable=False),
        sa.Column("period_key", sa.String(16), nullable=False),
        sa.Column("games_played", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("games_won", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_attempts", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_time_seconds", sa.BigInteger(), nullable=False, server_default=sa.text("0")),
        sa.Column("current_streak", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("best_streak", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("average_attempts", sa.Float(), nullable=True),
        sa.Column("success_rate", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint(
            "period_type IN ('daily','weekly','monthly','all_time')",
            name="ck_leaderboard_stats_period_type",
        ),
        sa.CheckConstraint("games_won <= games_played", name="ck_leaderboard_stats_won_le_played"),
        sa.CheckConstraint("current_streak >= 0", name="ck_leaderboard_stats_current_streak_non_negative"),
        sa.CheckConstraint("best_streak >= current_streak", name="ck_leaderboard_stats_best_ge_current"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint(
            "user_id",
            "game_id",
            "period_type",
            "period_key",
            name="uq_leaderboard_stats_user_game_period",
        ),
    )
    op.create_index(
        "idx_leaderboard_game_period",
        "leaderboard_stats",
        ["game_id", "period_type", "period_key"],
    )

    op.create_table(
        "illustration_cache",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("word", sa.String(64), nullable=False),
        sa.Column("language", sa.String(8), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("prompt", sa.Text(), nullable=False),
        sa.Column("image_url", sa.String(1024), nullable=False),
        sa.Column("model", sa.String(64), nullable=True),
        sa.Column("generated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.UniqueConstraint("word", "language", name="uq_illustration_cache_word_language"),
    )

    op.create_table(
        "illustration_queue",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("word", sa.String(64), nullable=False),
        sa.Column("language", sa.String(8), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("status", sa.String(16), nullable=False, server_default=sa.text("'PENDING'")),
        sa.Column("last_error", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("last_attempt_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "status IN ('PENDING','PROCESSING','DONE','FAILED')",
            name="ck_illustration_queue_status",
        ),
        sa.CheckConstraint("attempts >= 0", name="ck_illustration_queue_attempts_non_negative"),
    )
    op.create_index(
        "idx_illustration_queue_status_created",
        "illustration_queue",
        ["status", "created_at"],
    )


def downgrade() -> None:
    op.drop_index("idx_illustration_queue_status_created", table_name="illustration_queue")
    op.drop_table("illustration_queue")
    op.drop_table("illustration_cache")

    op.drop_index("idx_leaderboard_game_period", table_name="leaderboard_stats")
    op.drop_table("leaderboard_stats")

    op.drop_index("idx_game_sessions_completed", table_name="game_sessions")
    op.drop_index("idx_game_sessions_game_date", table_name="game_sessions")
    op.drop_index("idx_game_sessions_user_started", table_name="game_sessions")
    op.drop_index("uq_game_sessions_user_game_date", table_name="game_sessions")
    op.drop_table("game_sessions")

    op.drop_index("idx_users_group", table_name="users")
    op.drop_table("users")
