class GameSessionError(Exception):
    reason = "Game session error"

    def __init__(self, reason: str | None = None) -> None:
        super().__init__(reason or self.reason)
        if reason is not None:
            self.reason = reason


class GameNotFoundError(GameSessionError):
    def __init__(self, game_id: str) -> None:
        super().__init__(f"Game {game_id} not found")
        self.game_id = game_id


class GameAlreadyRegisteredError(GameSessionError):
    def __init__(self, game_id: str) -> None:
        super().__init__(f"Game {game_id} is already registered")
        self.game_id = game_id


class GameAlreadyCompleteError(GameSessionError):
    reason = "Game is already complete"


class GameDateRequiredError(GameSessionError):
    reason = "Game date is required for daily games"


class InvalidGameDateError(GameSessionError):
    reason = "Invalid game date"


class FutureGameDateError(InvalidGameDateError):
    reason = "Cannot play future games"


class GameDateTooOldError(InvalidGameDateError):
    reason = "Date too far in past (max 30 days)"
