# barbershop/core/timeutils.py

import re
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .errors import InvalidInput

_HHMM = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")
_YMD = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _system_now() -> datetime:
    return datetime.now(timezone.utc)


class BusinessCalendar:
    """Clock anchored to the shop's timezone.

    The timezone only decides which calendar day "now" falls on; every
    instant handed out is UTC.
    """

    def __init__(self, tz_name: str = "Europe/Berlin", clock: Optional[Callable[[], datetime]] = None):
        try:
            self.tz = ZoneInfo(tz_name)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise InvalidInput(f"Unknown timezone: {tz_name}") from exc
        self._clock = clock or _system_now

    def now(self) -> datetime:
        return ensure_utc(self._clock())

    def today(self) -> date:
        """Calendar date of now in the business timezone."""
        return self.now().astimezone(self.tz).date()

    def utc_today(self) -> date:
        return self.now().date()

    def local_iso(self, value: datetime) -> str:
        return ensure_utc(value).astimezone(self.tz).isoformat()


def rolling_window(now: datetime, days: int) -> Tuple[datetime, datetime]:
    # "days from right now", not the calendar week
    start = ensure_utc(now)
    return start, start + timedelta(days=days)


def ensure_utc(value: datetime) -> datetime:
    if not isinstance(value, datetime):
        raise InvalidInput("Expected a datetime")
    if value.tzinfo is None or value.utcoffset() is None:
        raise InvalidInput("Timestamps must carry a UTC offset")
    return value.astimezone(timezone.utc)


def parse_hhmm(value: str, allow_end_of_day: bool = False) -> int:
    """Minutes since midnight for an ``HH:MM`` string.

    ``24:00`` is only accepted with ``allow_end_of_day``, for closing times.
    """
    if not isinstance(value, str):
        raise InvalidInput("Time must be a string in HH:MM format")
    if allow_end_of_day and value == "24:00":
        return 24 * 60
    m = _HHMM.match(value)
    if m is None:
        raise InvalidInput(f"Invalid time {value!r}, expected HH:MM")
    return int(m.group(1)) * 60 + int(m.group(2))


def format_hhmm(minutes: int) -> str:
    if not 0 <= minutes <= 24 * 60:
        raise InvalidInput(f"Minute of day out of range: {minutes}")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def add_minutes(start: datetime, minutes: int) -> datetime:
    try:
        return start + timedelta(minutes=minutes)
    except OverflowError as exc:
        raise InvalidInput(f"{minutes} minutes from {start.isoformat()} is out of range") from exc


def parse_ymd(value: str) -> date:
    if not isinstance(value, str) or not _YMD.match(value):
        raise InvalidInput(f"Invalid date {value!r}, expected YYYY-MM-DD")
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise InvalidInput(f"Invalid date {value!r}") from exc


def utc_day_start(day: date) -> datetime:
    return datetime(day.year, day.month, day.day, tzinfo=timezone.utc)


def weekday_index(day: date) -> int:
    """0=Sunday ... 6=Saturday."""
    return (day.weekday() + 1) % 7
