from __future__ import annotations

import random
from collections.abc import Sequence
from datetime import date

DAILY_EPOCH = date(2024, 1, 1)


def shuffle_with_seed(words: Sequence[str], seed: str) -> tuple[str, ...]:
    """Fisher-Yates shuffle driven by a string-seeded RNG.

    ``random.Random`` seeded with a str is stable across processes and
    interpreter runs, so every instance built with the same seed produces the
    same permutation.
    """
    rng = random.Random(seed)
    result = list(words)
    for i in range(len(result) - 1, 0, -1):
        j = int(rng.random() * (i + 1))
        result[i], result[j] = result[j], result[i]
    return tuple(result)


def days_since_epoch(game_date: date) -> int:
    return (game_date - DAILY_EPOCH).days


class DailyWordSelector:
    """Maps calendar dates onto a fixed permutation of the target pool.

    Words cycle in the same order once the pool is exhausted. Any edit to the
    underlying word list changes the permutation and therefore every later
    answer.
    """

    def __init__(self, targets: Sequence[str], *, seed: str) -> None:
        if not targets:
            raise ValueError("target pool is empty")
        self.seed = seed
        self._permutation = shuffle_with_seed(targets, seed)

    @property
    def pool_size(self) -> int:
        return len(self._permutation)

    def index_for(self, game_date: date) -> int:
        return days_since_epoch(game_date) % len(self._permutation)

    def word_for(self, game_date: date) -> str:
        return self._permutation[self.index_for(game_date)]
