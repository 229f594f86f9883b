"""Current-date providers for daily decisions."""

from collections.abc import Callable
from datetime import date, datetime
from zoneinfo import ZoneInfo

from app.config import get_settings

TodayProvider = Callable[[], date]


def today_in_timezone(tz_name: str) -> date:
    """Calendar date right now in the given IANA timezone."""
    return datetime.now(ZoneInfo(tz_name)).date()


def reference_today_provider(tz_name: str | None = None) -> TodayProvider:
    """Provider of 'today' in the configured reference timezone."""
    tz = tz_name or get_settings().timezone
    return lambda: today_in_timezone(tz)
