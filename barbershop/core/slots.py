# barbershop/core/slots.py
"""Bookable slot generation for one barber and one day.

The requested date is read as a UTC calendar day, and "today" (which turns
on the lead-time buffer) is the UTC day of the calendar's now. This can differ
from the shop's local "today".
"""

import logging
from datetime import datetime, timedelta
from typing import List, NamedTuple, Tuple

from sqlmodel import Session

from .. import repository
from ..models import Barber
from .errors import InvalidInput
from .overlap import overlaps
from .timeutils import BusinessCalendar, parse_ymd, utc_day_start, weekday_index

logger = logging.getLogger(__name__)


class SlotWindow(NamedTuple):
    start: datetime
    end: datetime


def blocked_intervals(
    session: Session, barber_id: int, range_start: datetime, range_end: datetime
) -> List[Tuple[datetime, datetime]]:
    """Active appointments and time-off overlapping the range, as one list."""
    blocks = [
        (a.starts_at, a.ends_at)
        for a in repository.find_active_appointments(session, barber_id, range_start, range_end)
    ]
    blocks.extend(
        (t.start, t.end) for t in repository.find_time_off(session, barber_id, range_start, range_end)
    )
    return blocks


def generate_slots(
    session: Session,
    calendar: BusinessCalendar,
    barber_id: int,
    date_ymd: str,
    duration_minutes: int,
    step_minutes: int = 15,
    buffer_minutes: int = 5,
) -> List[SlotWindow]:
    day = parse_ymd(date_ymd)

    if duration_minutes <= 0 or step_minutes <= 0:
        return []

    barber = session.get(Barber, barber_id)
    if barber is None:
        return []

    rule = repository.get_working_hour(session, barber_id, weekday_index(day))
    if rule is None:
        return []

    try:
        day_start = utc_day_start(day)
        range_start = day_start + timedelta(minutes=rule.start_minute)
        range_end = day_start + timedelta(minutes=rule.end_minute)
        duration = timedelta(minutes=duration_minutes)
        step = timedelta(minutes=step_minutes)
    except OverflowError as exc:
        raise InvalidInput(f"Slot range out of bounds for {date_ymd}") from exc

    if range_end - range_start < duration:
        return []

    blocks = blocked_intervals(session, barber_id, range_start, range_end)

    now = calendar.now()
    min_start = None
    if day == calendar.utc_today():
        min_start = now + timedelta(minutes=buffer_minutes)

    slots = []
    last_k = (range_end - range_start - duration) // step
    for k in range(last_k + 1):
        p = range_start + k * step
        q = p + duration
        free = not any(overlaps(p, q, s, e) for s, e in blocks)
        if free and (min_start is None or p >= min_start):
            slots.append(SlotWindow(p, q))

    logger.debug(
        "barber %s on %s: %d slots of %d min (%d blocks)",
        barber_id, date_ymd, len(slots), duration_minutes, len(blocks),
    )
    return slots


def outside_working_hours(session: Session, barber_id: int, since: datetime) -> List[int]:
    """Ids of active bookings from ``since`` on that no longer fit the barber's hours.

    Used after the rule set is replaced; the bookings are reported, not cancelled.
    """
    rules = {wh.weekday: wh for wh in repository.get_working_hours(session, barber_id)}
    upcoming = repository.find_active_appointments(session, barber_id, since, datetime.max.replace(tzinfo=since.tzinfo))

    flagged = []
    for appt in upcoming:
        day = appt.starts_at.date()
        rule = rules.get(weekday_index(day))
        if rule is None:
            flagged.append(appt.id)
            continue
        day_start = utc_day_start(day)
        if (
            appt.starts_at < day_start + timedelta(minutes=rule.start_minute)
            or appt.ends_at > day_start + timedelta(minutes=rule.end_minute)
        ):
            flagged.append(appt.id)
    return flagged
