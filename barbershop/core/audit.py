# barbershop/core/audit.py

from datetime import datetime
from typing import Optional

from sqlmodel import Session

from ..models import Appointment, AuditLog, User


def _jsonable(value):
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def snapshot(obj, fields) -> dict:
    return {f: _jsonable(getattr(obj, f)) for f in fields}


BOOKING_FIELDS = ("status", "starts_at", "ends_at", "duration_minutes", "barber_id", "service_name")
ELIGIBILITY_FIELDS = ("warning_count", "is_booking_blocked", "block_reason", "last_warning_at")
USER_FIELDS = ("name", "email", "role", "is_booking_blocked", "block_reason")


def booking_snapshot(appt: Appointment) -> dict:
    return snapshot(appt, BOOKING_FIELDS)


def eligibility_snapshot(user: User) -> dict:
    return snapshot(user, ELIGIBILITY_FIELDS)


def user_snapshot(user: User) -> dict:
    return snapshot(user, USER_FIELDS)


def record(
    session: Session,
    actor_id: Optional[int],
    action: str,
    entity_type: str,
    entity_id: int,
    before: Optional[dict] = None,
    after: Optional[dict] = None,
) -> AuditLog:
    # added to the caller's unit of work; committed together with the change
    entry = AuditLog(
        actor_id=actor_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        before=before,
        after=after,
    )
    session.add(entry)
    return entry
