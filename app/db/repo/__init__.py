from app.db.repo.game_sessions_repo import GameSessionsRepo
from app.db.repo.illustrations_repo import IllustrationsRepo
from app.db.repo.leaderboard_stats_repo import LeaderboardStatsRepo
from app.db.repo.users_repo import UsersRepo

__all__ = [
    "GameSessionsRepo",
    "IllustrationsRepo",
    "LeaderboardStatsRepo",
    "UsersRepo",
]
