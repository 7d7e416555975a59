from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base

OPEN_QUEUE_PREDICATE = "status IN ('PENDING','PROCESSING')"


class IllustrationCacheEntry(Base):
    __tablename__ = "illustration_cache"
    __table_args__ = (
        UniqueConstraint("word", "language", name="uq_illustration_cache_word_language"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    word: Mapped[str] = mapped_column(String(64), nullable=False)
    language: Mapped[str] = mapped_column(String(8), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    prompt: Mapped[str] = mapped_column(Text, nullable=False)
    image_url: Mapped[str] = mapped_column(String(1024), nullable=False)
    model: Mapped[str | None] = mapped_column(String(64), nullable=True)
    generated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class IllustrationQueueEntry(Base):
    __tablename__ = "illustration_queue"
    __table_args__ = (
        CheckConstraint(
            "status IN ('PENDING','PROCESSING','DONE','FAILED')",
            name="ck_illustration_queue_status",
        ),
        CheckConstraint("attempts >= 0", name="ck_illustration_queue_attempts_non_negative"),
        Index("idx_illustration_queue_status_created", "status", "created_at"),
        Index(
            "uq_illustration_queue_open_word_language",
            "word",
            "language",
            unique=True,
            postgresql_where=text(OPEN_QUEUE_PREDICATE),
        ),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    word: Mapped[str] = mapped_column(String(64), nullable=False)
    language: Mapped[str] = mapped_column(String(8), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="PENDING")
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    last_attempt_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
