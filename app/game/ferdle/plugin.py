from __future__ import annotations

from datetime import date, datetime
from pathlib import Path
from typing import Any

from app.game.ferdle.clues import generate_clues, merge_letter_states
from app.game.ferdle.selection import DailyWordSelector
from app.game.ferdle.words import WordLists, load_word_lists
from app.game.plugins.types import (
    GameCategory,
    GameConfig,
    GameState,
    IllustrationRequest,
    MoveValidation,
    PlayMode,
)
from app.game.sessions.errors import GameDateRequiredError

FERDLE_MAX_ATTEMPTS = 10
FERDLE_VARIANTS: tuple[tuple[str, int], ...] = (
    ("en", 5),
    ("ru", 4),
)
LANGUAGE_NAMES = {
    "en": "English",
    "ru": "Русский",
}
GAME_NAMES = {
    "en": "Ferdle",
    "ru": "Фердл",
}

ERROR_GUESS_NOT_STRING = "Guess must be a string"
ERROR_NOT_A_WORD = "Not a word"
ERROR_ALREADY_GUESSED = "Already guessed this word"


def _extract_guess(move: Any) -> Any:
    if isinstance(move, dict):
        return move.get("guess")
    return getattr(move, "guess", None)


class FerdleGame:
    def __init__(
        self,
        language: str,
        word_length: int,
        *,
        word_lists: WordLists | None = None,
        assets_dir: str | Path | None = None,
        max_attempts: int = FERDLE_MAX_ATTEMPTS,
    ) -> None:
        self.language = language
        self.word_length = word_length
        self.max_attempts = max_attempts
        if word_lists is None:
            word_lists = load_word_lists(
                language=language,
                word_length=word_length,
                assets_dir=assets_dir,
            )
        self.dictionary = word_lists.dictionary
        self.targets = word_lists.targets
        self.selector = DailyWordSelector(self.targets, seed=self.seed)
        self._config = GameConfig(
            id=f"ferdle-{language}-{word_length}",
            name=GAME_NAMES.get(language, "Ferdle"),
            description=f"{LANGUAGE_NAMES.get(language, language)} {word_length}-letter word guessing game",
            category=GameCategory.WORD,
            play_mode=PlayMode.DAILY,
            max_attempts=max_attempts,
            supports_leaderboard=True,
            uses_illustrations=True,
            metadata={"language": language, "word_length": word_length},
        )

    @property
    def seed(self) -> str:
        return f"ferdle-{self.language}-{self.word_length}"

    def get_config(self) -> GameConfig:
        return self._config

    def daily_word(self, game_date: date) -> str:
        return self.selector.word_for(game_date)

    def initialize_game(
        self,
        *,
        user_id: str,
        game_date: date | None,
        now_utc: datetime,
    ) -> GameState:
        if game_date is None:
            raise GameDateRequiredError

        return GameState(
            game_id=self._config.id,
            user_id=user_id,
            game_date=game_date,
            started_at=now_utc,
            attempts=0,
            max_attempts=self.max_attempts,
            state_data={
                "target_word": self.daily_word(game_date),
                "guesses": [],
                "letter_states": {},
                "language": self.language,
            },
        )

    def validate_move(self, state: GameState, move: Any) -> MoveValidation:
        guess = _extract_guess(move)
        if not isinstance(guess, str):
            return MoveValidation(valid=False, error=ERROR_GUESS_NOT_STRING)

        normalized = guess.strip().lower()
        if len(normalized) != self.word_length:
            return MoveValidation(valid=False, error=f"Word must be {self.word_length} letters")

        if normalized not in self.dictionary:
            return MoveValidation(valid=False, error=ERROR_NOT_A_WORD)

        previous = state.state_data.get("guesses", [])
        if any(str(entry["word"]).lower() == normalized for entry in previous):
            return MoveValidation(valid=False, error=ERROR_ALREADY_GUESSED)

        return MoveValidation(valid=True)

    def apply_move(self, state: GameState, move: Any) -> GameState:
        guess = str(_extract_guess(move)).strip().lower()
        data = state.state_data
        target = data["target_word"]

        clues = generate_clues(guess, target)
        data.setdefault("guesses", []).append(
            {"word": guess, "clues": [clue.value for clue in clues]}
        )
        merge_letter_states(data.setdefault("letter_states", {}), guess, clues)

        state.attempts += 1
        if guess == target:
            state.won = True
            state.is_complete = True
        elif state.max_attempts is not None and state.attempts >= state.max_attempts:
            state.won = False
            state.is_complete = True
        return state

    def get_illustration_request(self, state: GameState) -> IllustrationRequest | None:
        if not state.won:
            return None
        word = state.state_data["target_word"]
        return IllustrationRequest(
            word=word,
            language=self.language,
            description=f"Definition of {word}",
        )

    def public_state_data(self, state: GameState) -> dict[str, Any]:
        data = dict(state.state_data)
        if not state.is_complete:
            data.pop("target_word", None)
        return data


def build_ferdle_plugins(*, assets_dir: str | Path | None = None) -> list[FerdleGame]:
    return [
        FerdleGame(language, word_length, assets_dir=assets_dir)
        for language, word_length in FERDLE_VARIANTS
    ]
