from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class StatCounters:
    games_played: int = 0
    games_won: int = 0
    total_attempts: int = 0
    total_time_seconds: int = 0
    current_streak: int = 0
    best_streak: int = 0
    average_attempts: float | None = None
    success_rate: float = 0.0


@dataclass(frozen=True, slots=True)
class CompletionEvent:
    user_id: str
    game_id: str
    won: bool
    attempts: int
    time_seconds: int


@dataclass(frozen=True, slots=True)
class LeaderboardEntry:
    rank: int
    user_id: str
    name: str
    avatar_url: str | None
    games_played: int
    games_won: int
    total_attempts: int
    total_time_seconds: int
    current_streak: int
    best_streak: int
    average_attempts: float | None
    success_rate: float


@dataclass(frozen=True, slots=True)
class LeaderboardView:
    game_id: str
    period_type: str
    period_key: str
    group_name: str
    entries: tuple[LeaderboardEntry, ...]
