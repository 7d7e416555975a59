from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, timezone
from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.calendar import platform_today, retention_floor
from app.game.leaderboard.service import LeaderboardService
from app.game.leaderboard.types import CompletionEvent
from app.game.plugins.registry import GameRegistry
from app.game.plugins.types import GameConfig, GamePlugin, GameState, PlayMode
from app.game.sessions.errors import (
    FutureGameDateError,
    GameAlreadyCompleteError,
    GameDateTooOldError,
    GameNotFoundError,
    InvalidGameDateError,
)
from app.game.sessions.store import GameSessionStore
from app.game.sessions.types import GameSessionView, MoveResult
from app.services.illustrations import IllustrationResult, IllustrationService

logger = structlog.get_logger("app.game.sessions.service")

DEFAULT_INVALID_MOVE_REASON = "Invalid move"


def _coerce_game_date(game_date: date | str | None) -> date | None:
    if isinstance(game_date, datetime):
        # aware instants are read on the platform calendar
        return platform_today(game_date) if game_date.tzinfo is not None else game_date.date()
    if game_date is None or isinstance(game_date, date):
        return game_date
    try:
        return date.fromisoformat(game_date)
    except (TypeError, ValueError):
        raise InvalidGameDateError("Invalid game date format") from None


def resolve_game_date(
    config: GameConfig,
    game_date: date | str | None,
    *,
    now_utc: datetime,
) -> date | None:
    """Picks the session date key for a game.

    Daily games default to the platform "today". Explicit dates must lie in
    the retention window ending today, which keeps clients from opening
    future puzzles or back-filling old leaderboard periods.
    """
    if config.play_mode != PlayMode.DAILY:
        return None

    today = platform_today(now_utc)
    requested = _coerce_game_date(game_date)
    if requested is None:
        return today
    if requested > today:
        raise FutureGameDateError
    if requested < retention_floor(today):
        raise GameDateTooOldError
    return requested


class GameSessionService:
    def __init__(
        self,
        *,
        registry: GameRegistry,
        session_factory: async_sessionmaker[AsyncSession],
        illustrations: IllustrationService | None = None,
    ) -> None:
        self._registry = registry
        self._session_factory = session_factory
        self._illustrations = illustrations

    @property
    def registry(self) -> GameRegistry:
        return self._registry

    def _require_plugin(self, game_id: str) -> GamePlugin:
        plugin = self._registry.get(game_id)
        if plugin is None:
            raise GameNotFoundError(game_id)
        return plugin

    @staticmethod
    def _view(
        plugin: GamePlugin | None,
        state: GameState,
        illustration: IllustrationResult | None = None,
    ) -> GameSessionView:
        if plugin is not None:
            public_data = plugin.public_state_data(state)
        else:
            public_data = dict(state.state_data) if state.is_complete else {}

        attempts_remaining = None
        if state.max_attempts is not None:
            attempts_remaining = max(0, state.max_attempts - state.attempts)

        return GameSessionView(
            game_id=state.game_id,
            user_id=state.user_id,
            game_date=state.game_date,
            attempts=state.attempts,
            max_attempts=state.max_attempts,
            attempts_remaining=attempts_remaining,
            is_complete=state.is_complete,
            won=state.won,
            started_at=state.started_at,
            completed_at=state.completed_at,
            time_seconds=state.time_seconds,
            state_data=public_data,
            illustration=illustration,
        )

    @staticmethod
    async def _load_or_create(
        session: AsyncSession,
        *,
        plugin: GamePlugin,
        user_id: str,
        game_date: date | None,
        now_utc: datetime,
        for_update: bool,
    ) -> GameState:
        game_id = plugin.get_config().id
        state = await GameSessionStore.load(
            session,
            user_id=user_id,
            game_id=game_id,
            game_date=game_date,
            for_update=for_update,
        )
        if state is not None:
            return state

        fresh = plugin.initialize_game(user_id=user_id, game_date=game_date, now_utc=now_utc)
        state = await GameSessionStore.create(session, fresh, now_utc=now_utc)
        if not for_update:
            return state

        locked = await GameSessionStore.load(
            session,
            user_id=user_id,
            game_id=game_id,
            game_date=game_date,
            for_update=True,
        )
        return locked if locked is not None else state

    def _prewarm_illustration(self, plugin: GamePlugin, state: GameState) -> None:
        if self._illustrations is None or state.is_complete:
            return
        if not plugin.get_config().uses_illustrations:
            return
        try:
            request = plugin.get_illustration_request(replace(state, won=True))
            if request is not None:
                self._illustrations.prewarm(request)
        except Exception:
            logger.exception(
                "illustration_prewarm_failed",
                user_id=state.user_id,
                game_id=state.game_id,
            )

    async def get_or_create(
        self,
        *,
        user_id: str,
        game_id: str,
        game_date: date | str | None = None,
        now_utc: datetime | None = None,
    ) -> GameSessionView:
        now = now_utc or datetime.now(timezone.utc)
        plugin = self._require_plugin(game_id)
        resolved_date = resolve_game_date(plugin.get_config(), game_date, now_utc=now)

        async with self._session_factory.begin() as session:
            state = await self._load_or_create(
                session,
                plugin=plugin,
                user_id=user_id,
                game_date=resolved_date,
                now_utc=now,
                for_update=False,
            )

        self._prewarm_illustration(plugin, state)
        return self._view(plugin, state)

    async def submit_move(
        self,
        *,
        user_id: str,
        game_id: str,
        move: Any,
        game_date: date | str | None = None,
        now_utc: datetime | None = None,
    ) -> MoveResult:
        now = now_utc or datetime.now(timezone.utc)
        plugin = self._require_plugin(game_id)
        config = plugin.get_config()
        resolved_date = resolve_game_date(config, game_date, now_utc=now)

        async with self._session_factory.begin() as session:
            state = await self._load_or_create(
                session,
                plugin=plugin,
                user_id=user_id,
                game_date=resolved_date,
                now_utc=now,
                for_update=True,
            )
            if state.is_complete:
                raise GameAlreadyCompleteError

            validation = plugin.validate_move(state, move)
            if not validation.valid:
                reason = validation.error or DEFAULT_INVALID_MOVE_REASON
                logger.info(
                    "game_move_rejected",
                    user_id=user_id,
                    game_id=game_id,
                    reason=reason,
                )
                return MoveResult(session=self._view(plugin, state), error=reason)

            state = plugin.apply_move(state, move)
            completed_now = state.is_complete
            if completed_now and state.completed_at is None:
                state.completed_at = now

            state = await GameSessionStore.save(session, state, now_utc=now)

            if completed_now and config.supports_leaderboard:
                await LeaderboardService.record_completion(
                    session,
                    event=CompletionEvent(
                        user_id=user_id,
                        game_id=game_id,
                        won=state.won,
                        attempts=state.attempts,
                        time_seconds=state.time_seconds or 0,
                    ),
                    completed_at_utc=state.completed_at or now,
                )

        illustration: IllustrationResult | None = None
        if completed_now:
            logger.info(
                "game_session_completed",
                user_id=user_id,
                game_id=game_id,
                won=state.won,
                attempts=state.attempts,
                time_seconds=state.time_seconds,
            )
            if state.won and self._illustrations is not None and config.uses_illustrations:
                request = plugin.get_illustration_request(state)
                if request is not None:
                    illustration = await self._illustrations.generate(request)
        else:
            self._prewarm_illustration(plugin, state)

        return MoveResult(
            session=self._view(plugin, state, illustration),
            completed_now=completed_now,
        )

    async def get_history(
        self,
        *,
        user_id: str,
        game_id: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[GameSessionView]:
        async with self._session_factory() as session:
            states = await GameSessionStore.history(
                session,
                user_id=user_id,
                game_id=game_id,
                limit=max(1, limit),
                offset=max(0, offset),
            )
        return [self._view(self._registry.get(state.game_id), state) for state in states]

    def prewarm_daily_illustrations(self, *, now_utc: datetime | None = None) -> int:
        """Queues background generation for today's answer of every daily game."""
        now = now_utc or datetime.now(timezone.utc)
        today = platform_today(now)
        scheduled = 0
        for plugin in self._registry.get_all():
            config = plugin.get_config()
            if config.play_mode != PlayMode.DAILY or not config.uses_illustrations:
                continue
            state = plugin.initialize_game(user_id="", game_date=today, now_utc=now)
            self._prewarm_illustration(plugin, state)
            scheduled += 1
        return scheduled

    def list_games(self) -> list[GameConfig]:
        return self._registry.get_all_configs()

    @staticmethod
    def today(now_utc: datetime | None = None) -> date:
        return platform_today(now_utc)
