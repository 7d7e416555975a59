from __future__ import annotations

import math
from collections.abc import Callable, Iterable, Sequence
from decimal import ROUND_HALF_UP, Decimal
from typing import Protocol, TypeVar

RANK_DECIMAL_PLACES = 6
RANK_QUANTUM = Decimal(1).scaleb(-RANK_DECIMAL_PLACES)


class RankedStat(Protocol):
    success_rate: float
    current_streak: int
    average_attempts: float | None
    games_won: int


T = TypeVar("T")


def rounded(value: float | None) -> float | None:
    if value is None:
        return None
    # same as round(value::numeric, 6) in PostgreSQL: 15 significant digits, half away from zero
    return float(Decimal(f"{float(value):.15g}").quantize(RANK_QUANTUM, rounding=ROUND_HALF_UP))


def ranking_key(stat: RankedStat) -> tuple[float, int, float, int]:
    """Sort key: success rate desc, streak desc, average attempts asc, wins desc.

    Rows without wins have no average and sort after every row that has one.
    """
    average = rounded(stat.average_attempts)
    return (
        -(rounded(stat.success_rate) or 0.0),
        -stat.current_streak,
        math.inf if average is None else average,
        -stat.games_won,
    )


def count_preceding(target: RankedStat, stats: Iterable[RankedStat]) -> int:
    target_key = ranking_key(target)
    return sum(1 for stat in stats if ranking_key(stat) < target_key)


def assign_ranks(
    rows: Sequence[T],
    *,
    stat_of: Callable[[T], RankedStat],
) -> list[tuple[int, T]]:
    """Orders rows and gives each a 1-based rank; fully tied rows share a rank."""
    ordered = sorted(rows, key=lambda row: ranking_key(stat_of(row)))
    ranked: list[tuple[int, T]] = []
    previous_key: tuple[float, int, float, int] | None = None
    current_rank = 0
    for position, row in enumerate(ordered, start=1):
        key = ranking_key(stat_of(row))
        if key != previous_key:
            current_rank = position
            previous_key = key
        ranked.append((current_rank, row))
    return ranked
