from __future__ import annotations

import pytest

from app.core.config import Settings
from app.main import create_platform, warm_daily_illustrations
from tests.game.helpers import DummySessionFactory


def _settings(tmp_path, **overrides: object) -> Settings:
    whitelist = tmp_path / "whitelist.txt"
    whitelist.write_text("ann@example.com,team-a\n", encoding="utf-8")
    values = {
        "WHITELIST_PATH": str(whitelist),
        "ILLUSTRATIONS_ENABLED": False,
        "LOG_LEVEL": "WARNING",
    }
    values.update(overrides)
    return Settings(**values)


def test_create_platform_wires_services(tmp_path) -> None:
    factory = DummySessionFactory()

    platform = create_platform(settings=_settings(tmp_path), session_factory=factory)

    assert {config.id for config in platform.sessions.list_games()} == {"ferdle-en-5", "ferdle-ru-4"}
    assert platform.whitelist.group_name_for("ann@example.com") == "team-a"
    assert platform.leaderboards.group_for("ann@example.com") == "team-a"
    assert platform.sessions.registry is platform.registry


@pytest.mark.asyncio
async def test_warm_daily_illustrations_skips_when_disabled(tmp_path) -> None:
    platform = create_platform(settings=_settings(tmp_path), session_factory=DummySessionFactory())

    assert await warm_daily_illustrations(platform) == 2
    assert len(platform.illustrations.guard) == 0
