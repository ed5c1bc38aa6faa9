# barbershop/core/eligibility.py
"""Per-user booking policy: the block flag and one active booking per week."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlmodel import Session

from .. import repository
from ..models import User
from . import audit
from .errors import BookingBlocked, BookingError, NotFound, Unauthorized, WeeklyLimitReached
from .timeutils import rolling_window

logger = logging.getLogger(__name__)

BLOCKED_MESSAGE = (
    "Online booking is restricted for your account. Please contact the shop to book."
)
WEEKLY_LIMIT_MESSAGE = "You can only have one active booking within {days} days."
NO_SHOW_BLOCK_REASON = "Blocked after repeated no-shows"


@dataclass(frozen=True)
class Decision:
    allowed: bool
    error: Optional[BookingError] = None

    def raise_if_denied(self) -> None:
        if not self.allowed:
            raise self.error


ALLOWED = Decision(True)


def check_eligibility(
    session: Session,
    user_id: int,
    now: datetime,
    window_days: int = 7,
    exclude_appointment_id: Optional[int] = None,
) -> Decision:
    user = repository.find_user(session, user_id)
    if user is None:
        return Decision(False, Unauthorized("Unknown user"))

    if user.is_booking_blocked:
        return Decision(False, BookingBlocked(BLOCKED_MESSAGE))

    start, end = rolling_window(now, window_days)
    active = repository.count_user_active_starting_in(
        session, user_id, start, end, exclude_id=exclude_appointment_id
    )
    if active > 0:
        return Decision(False, WeeklyLimitReached(WEEKLY_LIMIT_MESSAGE.format(days=window_days)))

    return ALLOWED


def _get_user(session: Session, user_id: int) -> User:
    user = session.get(User, user_id)
    if user is None:
        raise NotFound("User not found")
    return user


def block_user(session: Session, actor_id: int, user_id: int, reason: Optional[str] = None) -> User:
    user = _get_user(session, user_id)
    before = audit.eligibility_snapshot(user)

    user.is_booking_blocked = True
    user.block_reason = reason or ""
    session.add(user)
    audit.record(session, actor_id, "user.block", "user", user.id, before, audit.eligibility_snapshot(user))
    session.commit()
    session.refresh(user)

    logger.info("user %s blocked by %s", user.id, actor_id)
    return user


def unblock_user(session: Session, actor_id: int, user_id: int) -> User:
    user = _get_user(session, user_id)
    before = audit.eligibility_snapshot(user)

    user.is_booking_blocked = False
    user.block_reason = None
    session.add(user)
    audit.record(session, actor_id, "user.unblock", "user", user.id, before, audit.eligibility_snapshot(user))
    session.commit()
    session.refresh(user)

    logger.info("user %s unblocked by %s", user.id, actor_id)
    return user


def clear_one_warning(session: Session, actor_id: int, user_id: int) -> User:
    user = _get_user(session, user_id)
    before = audit.eligibility_snapshot(user)

    user.warning_count = max(0, user.warning_count - 1)
    if user.warning_count == 0:
        user.last_warning_at = None
    session.add(user)
    audit.record(
        session, actor_id, "user.warning.clear_one", "user", user.id, before, audit.eligibility_snapshot(user)
    )
    session.commit()
    session.refresh(user)
    return user
