"""
Standardized Date/Time Handling Utilities

CRITICAL RULES:
- Always store datetimes as aware UTC (use now_utc() or the injected clock)
- Calendar days (streaks, "first practice today", heatmap buckets) and
  hour-of-day bonuses are evaluated in the practice time zone
  (PRACTICE_TIMEZONE), the same zone for every user and every read path
- Never mix naive and aware datetimes
"""

import logging
from datetime import datetime, date, time, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

from mindshift import config

logger = logging.getLogger(__name__)

UTC = ZoneInfo("UTC")


def practice_timezone(tz_name: Optional[str] = None) -> ZoneInfo:
    """
    Get the zone used for day boundaries

    Args:
        tz_name: Override zone name (defaults to config.PRACTICE_TIMEZONE)

    Returns:
        ZoneInfo object
    """
    return ZoneInfo(tz_name or config.PRACTICE_TIMEZONE)


def now_utc() -> datetime:
    """
    Get current datetime in UTC (timezone-aware)

    Returns:
        Current datetime in UTC with timezone info
    """
    return datetime.now(UTC)


def to_local(dt: datetime) -> datetime:
    """Convert an aware datetime to the practice time zone"""
    if dt.tzinfo is None:
        # Assume UTC if naive
        dt = dt.replace(tzinfo=UTC)
        logger.warning(f"Received naive datetime, assuming UTC: {dt}")
    return dt.astimezone(practice_timezone())


def local_date(dt: datetime) -> date:
    """Calendar date of dt in the practice time zone"""
    return to_local(dt).date()


def local_hour(dt: datetime) -> int:
    """Hour of day of dt in the practice time zone"""
    return to_local(dt).hour


def start_of_local_day(day: date) -> datetime:
    """UTC instant at which the given practice-zone calendar day starts"""
    return datetime.combine(day, time.min, tzinfo=practice_timezone()).astimezone(UTC)


def parse_user_time(time_str: str) -> time:
    """
    Parse time string (HH:MM format) to time object

    Args:
        time_str: Time string in HH:MM format (e.g., "09:00")

    Returns:
        time object

    Raises:
        ValueError: If time_str is not in HH:MM format
    """
    try:
        hour, minute = map(int, time_str.split(":"))
    except (AttributeError, ValueError) as e:
        raise ValueError(f"Invalid time format '{time_str}'. Expected HH:MM") from e
    if not (0 <= hour < 24 and 0 <= minute < 60):
        raise ValueError(f"Invalid time: {time_str}")
    return time(hour, minute)


def date_range(end: date, days: int) -> list[date]:
    """The `days` calendar dates ending at (and including) end, oldest first"""
    return [end - timedelta(days=offset) for offset in range(days - 1, -1, -1)]
