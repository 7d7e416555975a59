from app.db.models.game_sessions import GameSession
from app.db.models.illustrations import IllustrationCacheEntry, IllustrationQueueEntry
from app.db.models.leaderboard_stats import LeaderboardStat
from app.db.models.users import User

__all__ = [
    "GameSession",
    "IllustrationCacheEntry",
    "IllustrationQueueEntry",
    "LeaderboardStat",
    "User",
]
