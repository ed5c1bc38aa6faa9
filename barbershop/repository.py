# barbershop/repository.py
"""Store queries the booking core depends on."""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import func, update
from sqlmodel import Session, select

from .models import Appointment, Barber, TimeOff, User, WorkingHour
from .schemas import ACTIVE_STATUSES


def _active_overlapping(barber_id: int, start: datetime, end: datetime, exclude_id: Optional[int] = None):
    stmt = (
        select(Appointment)
        .where(Appointment.barber_id == barber_id)
        .where(Appointment.status.in_(ACTIVE_STATUSES))
        .where(Appointment.starts_at < end)
        .where(Appointment.ends_at > start)
    )
    if exclude_id is not None:
        stmt = stmt.where(Appointment.id != exclude_id)
    return stmt


def find_active_appointments(
    session: Session, barber_id: int, start: datetime, end: datetime, exclude_id: Optional[int] = None
) -> List[Appointment]:
    stmt = _active_overlapping(barber_id, start, end, exclude_id).order_by(Appointment.starts_at)
    return list(session.exec(stmt).all())


def count_active_appointments(
    session: Session, barber_id: int, start: datetime, end: datetime, exclude_id: Optional[int] = None
) -> int:
    sub = _active_overlapping(barber_id, start, end, exclude_id).subquery()
    return session.exec(select(func.count()).select_from(sub)).one()


def count_user_active_starting_in(
    session: Session, user_id: int, start: datetime, end: datetime, exclude_id: Optional[int] = None
) -> int:
    stmt = (
        select(func.count())
        .select_from(Appointment)
        .where(Appointment.user_id == user_id)
        .where(Appointment.status.in_(ACTIVE_STATUSES))
        .where(Appointment.starts_at >= start)
        .where(Appointment.starts_at < end)
    )
    if exclude_id is not None:
        stmt = stmt.where(Appointment.id != exclude_id)
    return session.exec(stmt).one()


def find_time_off(session: Session, barber_id: int, start: datetime, end: datetime) -> List[TimeOff]:
    stmt = (
        select(TimeOff)
        .where(TimeOff.barber_id == barber_id)
        .where(TimeOff.start < end)
        .where(TimeOff.end > start)
        .order_by(TimeOff.start)
    )
    return list(session.exec(stmt).all())


def find_user(session: Session, user_id: int) -> Optional[User]:
    return session.get(User, user_id)


def get_working_hours(session: Session, barber_id: int) -> List[WorkingHour]:
    stmt = select(WorkingHour).where(WorkingHour.barber_id == barber_id).order_by(WorkingHour.weekday)
    return list(session.exec(stmt).all())


def get_working_hour(session: Session, barber_id: int, weekday: int) -> Optional[WorkingHour]:
    return session.exec(
        select(WorkingHour)
        .where(WorkingHour.barber_id == barber_id)
        .where(WorkingHour.weekday == weekday)
    ).first()


def bump_booking_version(session: Session, barber_id: int, expected: int) -> bool:
    """Compare-and-swap on the barber's booking version.

    Returns False when another writer got there first.
    """
    result = session.exec(
        update(Barber)
        .where(Barber.id == barber_id)
        .where(Barber.booking_version == expected)
        .values(booking_version=expected + 1)
    )
    return result.rowcount == 1
