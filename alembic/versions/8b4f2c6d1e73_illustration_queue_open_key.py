"""illustration_queue_open_key

Revision ID: 8b4f2c6d1e73
Revises: 5d1e7a3c9b20
Create Date: 2026-10-20 11:15:00.000000
"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "8b4f2c6d1e73"
down_revision: str | None = "5d1e7a3c9b20"
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    # keep the oldest open row per key before the unique index goes in
    op.execute(
        """
        DELETE FROM illustration_queue AS q
        USING illustration_queue AS older
        WHERE q.word = older.word
          AND q.language = older.language
          AND q.status IN ('PENDING','PROCESSING')
          AND older.status IN ('PENDING','PROCESSING')
          AND q.id > older.id
        """
    )
    op.create_index(
        "uq_illustration_queue_open_word_language",
        "illustration_queue",
        ["word", "language"],
        unique=True,
        postgresql_where=sa.text("status IN ('PENDING','PROCESSING')"),
    )


def downgrade() -> None:
    op.drop_index("uq_illustration_queue_open_word_language", table_name="illustration_queue")
