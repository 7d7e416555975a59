from __future__ import annotations

from dataclasses import dataclass

from app.game.leaderboard.ranking import assign_ranks, count_preceding, ranking_key, rounded


@dataclass
class Stat:
    user_id: str
    success_rate: float
    current_streak: int
    average_attempts: float | None
    games_won: int


def ranked_ids(stats: list[Stat]) -> list[tuple[int, str]]:
    return [(rank, stat.user_id) for rank, stat in assign_ranks(stats, stat_of=lambda stat: stat)]


def test_equal_ratios_from_different_counts_tie_on_rate() -> None:
    a = Stat("a", 2 / 3, 0, 4.5, 2)
    b = Stat("b", 4 / 6, 0, 5.0, 4)

    assert rounded(a.success_rate) == rounded(b.success_rate)
    assert ranking_key(a) < ranking_key(b)
    assert ranked_ids([b, a]) == [(1, "a"), (2, "b")]


def test_float_noise_does_not_split_rates() -> None:
    a = Stat("a", 0.1 + 0.2, 1, 4.0, 3)
    b = Stat("b", 0.3, 1, 4.0, 3)

    assert ranking_key(a) == ranking_key(b)
    assert ranked_ids([a, b]) == [(1, "a"), (1, "b")]


def test_full_tie_break_order() -> None:
    stats = [
        Stat("low_rate", 0.5, 9, 2.0, 9),
        Stat("more_wins", 1.0, 2, 4.0, 5),
        Stat("long_streak", 1.0, 3, 6.0, 3),
        Stat("fewer_attempts", 1.0, 2, 3.0, 2),
    ]

    assert [user_id for _, user_id in ranked_ids(stats)] == [
        "long_streak",
        "fewer_attempts",
        "more_wins",
        "low_rate",
    ]


def test_rows_without_wins_sort_last_within_rate() -> None:
    no_wins = Stat("no_wins", 0.0, 0, None, 0)
    one_win = Stat("one_win", 0.0, 0, 6.0, 0)

    assert ranked_ids([no_wins, one_win]) == [(1, "one_win"), (2, "no_wins")]


def test_competition_ranks_skip_after_ties() -> None:
    stats = [
        Stat("a", 1.0, 1, 3.0, 1),
        Stat("b", 1.0, 1, 3.0, 1),
        Stat("c", 0.5, 0, 3.0, 1),
    ]

    assert [rank for rank, _ in ranked_ids(stats)] == [1, 1, 3]


def test_count_preceding_matches_assigned_rank() -> None:
    stats = [
        Stat("a", 1.0, 2, 3.0, 2),
        Stat("b", 2 / 3, 0, 4.5, 2),
        Stat("c", 4 / 6, 0, 5.0, 4),
        Stat("d", 4 / 6, 0, 5.0, 4),
        Stat("e", 0.0, 0, None, 0),
    ]

    for rank, stat in assign_ranks(stats, stat_of=lambda stat: stat):
        assert count_preceding(stat, stats) + 1 == rank


def test_rounding_matches_database_half_up() -> None:
    # 5e-07 is stored as 4.99999...e-07; the database rounds its 15-digit text form
    assert rounded(0.0000005) == 0.000001
    assert rounded(0.0000015) == 0.000002
    assert rounded(2 / 3) == 0.666667
    assert rounded(None) is None
