"""
Day-key Date Utilities

Ritual completions are bucketed by calendar day using YYYY-MM-DD keys.
Which calendar day "today" is depends on the configured day-boundary
time zone (DAY_BOUNDARY_TIMEZONE, UTC by default).

RULES:
- Store and compare day keys, never datetimes, when counting streaks
- Decide "today" once per request with today_in_timezone() and pass it down
"""

import logging
from datetime import datetime, date, timedelta
from typing import Optional, Union
from zoneinfo import ZoneInfo

from buzzwin.config import DAY_BOUNDARY_TIMEZONE

logger = logging.getLogger(__name__)

DAY_KEY_FORMAT = "%Y-%m-%d"


def today_in_timezone(tz_name: Optional[str] = None) -> date:
    """
    Get today's date in the given zone (defaults to DAY_BOUNDARY_TIMEZONE)

    Args:
        tz_name: IANA time zone name

    Returns:
        Today's date in that zone
    """
    return datetime.now(ZoneInfo(tz_name or DAY_BOUNDARY_TIMEZONE)).date()


def parse_day_key(day_key: Union[str, date]) -> date:
    """
    Parse a YYYY-MM-DD day key

    Raises:
        ValueError: If day_key is not a valid YYYY-MM-DD string
    """
    if isinstance(day_key, datetime):
        return day_key.date()
    if isinstance(day_key, date):
        return day_key
    try:
        return datetime.strptime(day_key, DAY_KEY_FORMAT).date()
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid day key '{day_key}'. Expected YYYY-MM-DD") from e


def to_day_key(day: date) -> str:
    """Format a date as a YYYY-MM-DD day key"""
    return day.strftime(DAY_KEY_FORMAT)


def day_key_days_ago(today: date, days_ago: int) -> str:
    """Day key for the date days_ago days before today"""
    return to_day_key(today - timedelta(days=days_ago))


def start_of_week(day: date) -> date:
    """Monday of the ISO week containing day"""
    return day - timedelta(days=day.weekday())


def start_of_month(day: date) -> date:
    return day.replace(day=1)
