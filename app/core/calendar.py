from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from enum import Enum
from zoneinfo import ZoneInfo

from app.game.leaderboard.errors import InvalidPeriodTypeError

PLATFORM_TIMEZONE = "America/New_York"
GAME_DATE_RETENTION_DAYS = 30
ALL_TIME_PERIOD_KEY = "all"


class PeriodType(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    ALL_TIME = "all_time"


def platform_local_datetime(now_utc: datetime) -> datetime:
    return now_utc.astimezone(ZoneInfo(PLATFORM_TIMEZONE))


def platform_today(now_utc: datetime | None = None) -> date:
    """Returns the platform-wide calendar date for the given UTC instant."""
    if now_utc is None:
        now_utc = datetime.now(timezone.utc)
    return platform_local_datetime(now_utc).date()


def iso_week_label(day: date) -> str:
    """ISO-8601 week label, e.g. ``2025-W01`` for 2024-12-30."""
    iso_year, iso_week, _ = day.isocalendar()
    return f"{iso_year}-W{iso_week:02d}"


def parse_period_type(value: str | PeriodType) -> PeriodType:
    if isinstance(value, PeriodType):
        return value
    try:
        return PeriodType(value)
    except ValueError:
        raise InvalidPeriodTypeError(value) from None


def period_key(period_type: str | PeriodType, day: date) -> str:
    resolved = parse_period_type(period_type)
    if resolved == PeriodType.DAILY:
        return day.isoformat()
    if resolved == PeriodType.WEEKLY:
        return iso_week_label(day)
    if resolved == PeriodType.MONTHLY:
        return f"{day.year:04d}-{day.month:02d}"
    return ALL_TIME_PERIOD_KEY


def period_keys_for(day: date) -> dict[PeriodType, str]:
    return {period_type: period_key(period_type, day) for period_type in PeriodType}


def retention_floor(today: date) -> date:
    return today - timedelta(days=GAME_DATE_RETENTION_DAYS)
