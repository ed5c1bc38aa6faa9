# barbershop/core/overlap.py

from datetime import datetime
from typing import Optional

from sqlmodel import Session

from .. import repository
from .timeutils import ensure_utc


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    # half-open intervals: touching endpoints are not an overlap
    return a_start < b_end and a_end > b_start


def has_overlap(
    session: Session,
    barber_id: int,
    start: datetime,
    end: datetime,
    exclude_appointment_id: Optional[int] = None,
) -> bool:
    """True if an active appointment of ``barber_id`` overlaps ``[start, end)``.

    ``exclude_appointment_id`` skips one booking, so a reschedule doesn't
    collide with itself.
    """
    start = ensure_utc(start)
    end = ensure_utc(end)
    count = repository.count_active_appointments(
        session, barber_id, start, end, exclude_id=exclude_appointment_id
    )
    return count > 0
