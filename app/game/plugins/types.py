from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Protocol, runtime_checkable


class PlayMode(str, Enum):
    DAILY = "daily"
    UNLIMITED = "unlimited"


class GameCategory(str, Enum):
    WORD = "word"
    MATH = "math"
    GEOGRAPHY = "geography"
    LOGIC = "logic"
    TRIVIA = "trivia"
    OTHER = "other"


@dataclass(frozen=True, slots=True)
class GameConfig:
    id: str
    name: str
    description: str
    category: GameCategory
    play_mode: PlayMode
    max_attempts: int | None
    supports_leaderboard: bool
    uses_illustrations: bool
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class GameState:
    game_id: str
    user_id: str
    game_date: date | None
    started_at: datetime
    attempts: int = 0
    max_attempts: int | None = None
    is_complete: bool = False
    won: bool = False
    completed_at: datetime | None = None
    time_seconds: int | None = None
    state_data: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class MoveValidation:
    valid: bool
    error: str | None = None


@dataclass(frozen=True, slots=True)
class IllustrationRequest:
    word: str
    language: str
    description: str


@runtime_checkable
class GamePlugin(Protocol):
    """Capabilities every registered game exposes to the session orchestrator.

    ``validate_move`` must not mutate the state. ``apply_move`` is only called
    after a successful validation and on a session that is not complete.
    """

    def get_config(self) -> GameConfig: ...

    def initialize_game(
        self,
        *,
        user_id: str,
        game_date: date | None,
        now_utc: datetime,
    ) -> GameState: ...

    def validate_move(self, state: GameState, move: Any) -> MoveValidation: ...

    def apply_move(self, state: GameState, move: Any) -> GameState: ...

    def get_illustration_request(self, state: GameState) -> IllustrationRequest | None: ...

    def public_state_data(self, state: GameState) -> dict[str, Any]: ...
