from __future__ import annotations

from collections.abc import Iterable

import structlog

from app.game.ferdle.plugin import build_ferdle_plugins
from app.game.plugins.types import GameCategory, GameConfig, GamePlugin
from app.game.sessions.errors import GameAlreadyRegisteredError

logger = structlog.get_logger("app.game.plugins.registry")


class GameRegistry:
    """Catalog of game plugins keyed by their config id.

    Filled once at startup; lookups afterwards are read-only.
    """

    def __init__(self, plugins: Iterable[GamePlugin] = ()) -> None:
        self._games: dict[str, GamePlugin] = {}
        for plugin in plugins:
            self.register(plugin)

    def register(self, plugin: GamePlugin) -> None:
        config = plugin.get_config()
        if config.id in self._games:
            raise GameAlreadyRegisteredError(config.id)
        self._games[config.id] = plugin
        logger.info("game_registered", game_id=config.id, game_name=config.name)

    def get(self, game_id: str) -> GamePlugin | None:
        return self._games.get(game_id)

    def has(self, game_id: str) -> bool:
        return game_id in self._games

    def get_all(self) -> list[GamePlugin]:
        return list(self._games.values())

    def get_all_configs(self) -> list[GameConfig]:
        return [plugin.get_config() for plugin in self._games.values()]

    def get_by_category(self, category: str | GameCategory) -> list[GamePlugin]:
        wanted = category.value if isinstance(category, GameCategory) else category
        return [
            plugin for plugin in self._games.values() if plugin.get_config().category.value == wanted
        ]


def build_default_registry(*, assets_dir: str | None = None) -> GameRegistry:
    return GameRegistry(build_ferdle_plugins(assets_dir=assets_dir))
