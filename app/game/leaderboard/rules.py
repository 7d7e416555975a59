from __future__ import annotations

from dataclasses import replace

from app.game.leaderboard.types import CompletionEvent, StatCounters


def derived_metrics(
    *,
    games_played: int,
    games_won: int,
    total_attempts: int,
) -> tuple[float | None, float]:
    """Returns (average attempts among wins, success rate) from the counters."""
    average_attempts = total_attempts / games_won if games_won > 0 else None
    success_rate = games_won / games_played if games_played > 0 else 0.0
    return average_attempts, success_rate


def apply_completion(counters: StatCounters, event: CompletionEvent) -> StatCounters:
    games_played = counters.games_played + 1
    games_won = counters.games_won + (1 if event.won else 0)
    # losses do not feed the wins-only attempt average
    total_attempts = counters.total_attempts + (event.attempts if event.won else 0)
    total_time_seconds = counters.total_time_seconds + max(0, event.time_seconds)

    if event.won:
        current_streak = counters.current_streak + 1
    else:
        current_streak = 0
    best_streak = max(counters.best_streak, current_streak)

    average_attempts, success_rate = derived_metrics(
        games_played=games_played,
        games_won=games_won,
        total_attempts=total_attempts,
    )
    return replace(
        counters,
        games_played=games_played,
        games_won=games_won,
        total_attempts=total_attempts,
        total_time_seconds=total_time_seconds,
        current_streak=current_streak,
        best_streak=best_streak,
        average_attempts=average_attempts,
        success_rate=success_rate,
    )
