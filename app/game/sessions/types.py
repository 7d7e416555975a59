from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from app.services.illustrations import IllustrationResult


@dataclass(slots=True)
class GameSessionView:
    """Client-facing session record; hidden answers are already stripped."""

    game_id: str
    user_id: str
    game_date: date | None
    attempts: int
    max_attempts: int | None
    attempts_remaining: int | None
    is_complete: bool
    won: bool
    started_at: datetime
    completed_at: datetime | None
    time_seconds: int | None
    state_data: dict[str, Any]
    illustration: IllustrationResult | None = None


@dataclass(slots=True)
class MoveResult:
    session: GameSessionView
    error: str | None = None
    completed_now: bool = False

    @property
    def accepted(self) -> bool:
        return self.error is None
