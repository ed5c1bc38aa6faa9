"""Shared constants and small helpers for the test suite."""
from datetime import datetime, timedelta, timezone

# Monday 2026-10-19 12:00 UTC
NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
TODAY = "2026-10-19"
TOMORROW = "2026-10-20"
WEDNESDAY = "2026-10-21"
SATURDAY = "2026-10-24"

MON_TO_FRI = {day: ("09:00", "17:00") for day in (1, 2, 3, 4, 5)}


class FixedClock:
    def __init__(self, now: datetime):
        self.current = now

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


def minutes(hhmm: str) -> int:
    h, m = hhmm.split(":")
    return int(h) * 60 + int(m)


def at(day: str, hhmm: str) -> datetime:
    """UTC instant for a YYYY-MM-DD day and HH:MM time."""
    return datetime.fromisoformat(f"{day}T{hhmm}:00+00:00")
