class LeaderboardError(Exception):
    reason = "Leaderboard error"

    def __init__(self, reason: str | None = None) -> None:
        super().__init__(reason or self.reason)
        if reason is not None:
            self.reason = reason


class InvalidPeriodTypeError(LeaderboardError):
    def __init__(self, period_type: str) -> None:
        super().__init__(f"Invalid period type: {period_type}")
        self.period_type = period_type


class NotGroupMemberError(LeaderboardError):
    reason = "Not a member of any group"
