from __future__ import annotations

import asyncio
from dataclasses import dataclass

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.config import Settings, get_settings
from app.core.logging import configure_logging
from app.db.session import SessionLocal
from app.game.leaderboard.service import GroupLeaderboardQueries
from app.game.plugins.registry import GameRegistry, build_default_registry
from app.game.sessions.service import GameSessionService
from app.services.illustrations import IllustrationService, build_illustration_service
from app.services.whitelist import Whitelist

logger = structlog.get_logger("app.main")


@dataclass(slots=True)
class Platform:
    """Wired service graph handed to whatever transport sits in front of it."""

    settings: Settings
    registry: GameRegistry
    whitelist: Whitelist
    illustrations: IllustrationService
    sessions: GameSessionService
    leaderboards: GroupLeaderboardQueries


def create_platform(
    *,
    settings: Settings | None = None,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> Platform:
    resolved = settings or get_settings()
    configure_logging(resolved.log_level)

    if session_factory is None:
        session_factory = SessionLocal

    registry = build_default_registry(assets_dir=resolved.game_assets_dir)
    whitelist = Whitelist.from_file(resolved.whitelist_path)
    illustrations = build_illustration_service(session_factory, settings=resolved)
    sessions = GameSessionService(
        registry=registry,
        session_factory=session_factory,
        illustrations=illustrations,
    )
    leaderboards = GroupLeaderboardQueries(whitelist=whitelist, session_factory=session_factory)

    logger.info(
        "platform_initialized",
        app_env=resolved.app_env,
        games=[config.id for config in registry.get_all_configs()],
        whitelist_entries=len(whitelist),
        illustrations_enabled=resolved.illustrations_enabled,
    )
    return Platform(
        settings=resolved,
        registry=registry,
        whitelist=whitelist,
        illustrations=illustrations,
        sessions=sessions,
        leaderboards=leaderboards,
    )


async def warm_daily_illustrations(platform: Platform) -> int:
    scheduled = platform.sessions.prewarm_daily_illustrations()
    await platform.illustrations.drain()
    logger.info("daily_illustrations_warmed", games=scheduled)
    return scheduled


def run() -> None:
    platform = create_platform()
    asyncio.run(warm_daily_illustrations(platform))


if __name__ == "__main__":
    run()
