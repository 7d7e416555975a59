from __future__ import annotations

from datetime import date, timedelta

import pytest

from app.game.ferdle.selection import DAILY_EPOCH, DailyWordSelector, days_since_epoch, shuffle_with_seed

POOL = ("apple", "berry", "cherry", "dates", "elder", "figgy", "grape")


def test_shuffle_with_seed_is_deterministic_permutation() -> None:
    first = shuffle_with_seed(POOL, "ferdle-en-5")
    second = shuffle_with_seed(list(POOL), "ferdle-en-5")

    assert first == second
    assert sorted(first) == sorted(POOL)


def test_shuffle_with_seed_depends_on_seed() -> None:
    long_pool = tuple(f"w{index:03d}" for index in range(100))

    assert shuffle_with_seed(long_pool, "ferdle-en-5") != shuffle_with_seed(long_pool, "ferdle-ru-4")


def test_days_since_epoch() -> None:
    assert days_since_epoch(DAILY_EPOCH) == 0
    assert days_since_epoch(date(2024, 1, 31)) == 30
    assert days_since_epoch(date(2023, 12, 31)) == -1


def test_selection_is_idempotent_per_date() -> None:
    selector = DailyWordSelector(POOL, seed="ferdle-en-5")
    other = DailyWordSelector(POOL, seed="ferdle-en-5")
    day = date(2025, 3, 14)

    assert selector.word_for(day) == selector.word_for(day)
    assert selector.word_for(day) == other.word_for(day)


def test_selection_repeats_only_after_pool_exhausted() -> None:
    selector = DailyWordSelector(POOL, seed="ferdle-en-5")
    start = date(2024, 6, 1)

    words = [selector.word_for(start + timedelta(days=offset)) for offset in range(len(POOL))]
    assert sorted(words) == sorted(POOL)
    assert selector.word_for(start + timedelta(days=len(POOL))) == words[0]


def test_index_wraps_modulo_pool_size() -> None:
    selector = DailyWordSelector(POOL, seed="ferdle-en-5")

    assert selector.pool_size == len(POOL)
    assert selector.index_for(DAILY_EPOCH) == 0
    assert selector.index_for(DAILY_EPOCH + timedelta(days=len(POOL) + 2)) == 2


def test_empty_pool_rejected() -> None:
    with pytest.raises(ValueError):
        DailyWordSelector((), seed="ferdle-en-5")
