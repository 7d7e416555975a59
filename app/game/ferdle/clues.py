from __future__ import annotations

from collections import Counter
from collections.abc import MutableMapping, Sequence
from enum import Enum


class Clue(str, Enum):
    CORRECT = "correct"
    PRESENT = "present"
    ABSENT = "absent"


def generate_clues(guess: str, target: str) -> list[Clue]:
    """Scores a guess against the target with Wordle duplicate-letter rules.

    Exact matches consume their letter before any ``present`` is handed out,
    so a repeated guess letter is only marked ``present`` while the target
    still has unclaimed copies of it.
    """
    if len(guess) != len(target):
        raise ValueError("guess and target must have the same length")

    clues = [Clue.ABSENT] * len(guess)
    available = Counter(target)

    for index, (guess_letter, target_letter) in enumerate(zip(guess, target)):
        if guess_letter == target_letter:
            clues[index] = Clue.CORRECT
            available[guess_letter] -= 1

    for index, guess_letter in enumerate(guess):
        if clues[index] == Clue.CORRECT:
            continue
        if available[guess_letter] > 0:
            clues[index] = Clue.PRESENT
            available[guess_letter] -= 1

    return clues


def merge_letter_states(
    letter_states: MutableMapping[str, str],
    guess: str,
    clues: Sequence[Clue | str],
) -> MutableMapping[str, str]:
    # correct > present > absent; a letter is never downgraded
    for letter, raw_clue in zip(guess, clues):
        clue = Clue(raw_clue)
        current = letter_states.get(letter)
        if clue == Clue.CORRECT:
            letter_states[letter] = Clue.CORRECT.value
        elif clue == Clue.PRESENT and current != Clue.CORRECT.value:
            letter_states[letter] = Clue.PRESENT.value
        elif current is None:
            letter_states[letter] = clue.value
    return letter_states
