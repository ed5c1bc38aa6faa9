# barbershop/core/lifecycle.py
"""Appointment state transitions.

Every operation validates its input completely before the first write and
commits at most once. Create and reschedule also re-check for overlaps
inside the transaction, guarded by a compare-and-swap on the barber's
booking version.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from .. import repository
from ..models import Appointment, Barber, User
from ..schemas import AppointmentStatus
from . import audit
from .eligibility import NO_SHOW_BLOCK_REASON, check_eligibility
from .errors import BookingError, InvalidInput, InvalidTransition, NotFound, SlotConflict
from .overlap import has_overlap
from .timeutils import BusinessCalendar, add_minutes, ensure_utc

logger = logging.getLogger(__name__)

S = AppointmentStatus

_FROM_ACTIVE = frozenset({S.rescheduled, S.cancelled, S.completed, S.no_show})
TRANSITIONS = {
    S.booked: _FROM_ACTIVE,
    S.rescheduled: _FROM_ACTIVE,
    S.cancelled: frozenset(),
    S.completed: frozenset(),
    S.no_show: frozenset(),
}

SLOT_TAKEN_MESSAGE = "Time slot not available"


def can_transition(current: str, target: str) -> bool:
    return S(target) in TRANSITIONS[S(current)]


def assert_transition(appt: Appointment, target: AppointmentStatus) -> None:
    if not can_transition(appt.status, target):
        raise InvalidTransition(f"Cannot change a {appt.status} booking to {target.value}")


class BookingLifecycle:
    def __init__(
        self,
        session: Session,
        calendar: BusinessCalendar,
        max_duration_minutes: int = 480,
        weekly_limit_days: int = 7,
        no_show_block_threshold: int = 2,
    ):
        self.session = session
        self.calendar = calendar
        self.max_duration_minutes = max_duration_minutes
        self.weekly_limit_days = weekly_limit_days
        self.no_show_block_threshold = no_show_block_threshold

    # validation

    def _validate_duration(self, duration_minutes) -> int:
        if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, int):
            raise InvalidInput("duration_minutes must be an integer")
        if duration_minutes <= 0 or duration_minutes > self.max_duration_minutes:
            raise InvalidInput(
                f"duration_minutes must be between 1 and {self.max_duration_minutes}"
            )
        return duration_minutes

    def _validate_start(self, starts_at: datetime, now: datetime) -> datetime:
        starts_at = ensure_utc(starts_at)
        if starts_at < now:
            raise InvalidInput("Cannot book an appointment in the past")
        return starts_at

    def _deny(self, err: BookingError, **context) -> None:
        logger.warning("booking rejected (%s): %s %s", err.kind, err.reason, context)
        raise err

    # lookups

    def get_for_actor(self, appointment_id: int, actor_id: int, is_admin: bool = False) -> Appointment:
        # other users' bookings look exactly like missing ones
        appt = self.session.get(Appointment, appointment_id)
        if appt is None or (not is_admin and appt.user_id != actor_id):
            raise NotFound("Booking not found")
        return appt

    def _bookable_barber(self, barber_id: int) -> Barber:
        barber = self.session.get(Barber, barber_id)
        if barber is None or not barber.active:
            raise NotFound("Barber not found")
        return barber

    # commit

    def _commit_booking(self, appt: Appointment, expected_version: int, action: str, actor_id, before=None):
        session = self.session
        try:
            session.add(appt)
            session.flush()
            if not repository.bump_booking_version(session, appt.barber_id, expected_version):
                raise SlotConflict(SLOT_TAKEN_MESSAGE)
            if has_overlap(session, appt.barber_id, appt.starts_at, appt.ends_at, exclude_appointment_id=appt.id):
                raise SlotConflict(SLOT_TAKEN_MESSAGE)
            audit.record(session, actor_id, action, "booking", appt.id, before, audit.booking_snapshot(appt))
            session.commit()
        except SlotConflict as err:
            session.rollback()
            self._deny(err, barber_id=appt.barber_id, stage="commit")
        except IntegrityError as exc:
            session.rollback()
            self._deny(SlotConflict(SLOT_TAKEN_MESSAGE), barber_id=appt.barber_id, stage="integrity", cause=exc)
        session.refresh(appt)
        return appt

    # operations

    def create(
        self,
        user_id: int,
        barber_id: int,
        service_name: str,
        duration_minutes: int,
        starts_at: datetime,
        notes: Optional[str] = None,
    ) -> Appointment:
        now = self.calendar.now()
        duration_minutes = self._validate_duration(duration_minutes)
        starts_at = self._validate_start(starts_at, now)
        if not service_name or not service_name.strip():
            raise InvalidInput("service_name is required")
        ends_at = add_minutes(starts_at, duration_minutes)

        decision = check_eligibility(self.session, user_id, now, window_days=self.weekly_limit_days)
        if not decision.allowed:
            self._deny(decision.error, user_id=user_id)

        barber = self._bookable_barber(barber_id)
        expected_version = barber.booking_version

        if has_overlap(self.session, barber_id, starts_at, ends_at):
            self._deny(SlotConflict(SLOT_TAKEN_MESSAGE), barber_id=barber_id, stage="check")

        appt = Appointment(
            user_id=user_id,
            barber_id=barber_id,
            service_name=service_name.strip(),
            duration_minutes=duration_minutes,
            starts_at=starts_at,
            ends_at=ends_at,
            status=S.booked.value,
            notes=notes,
            created_at=now,
            updated_at=now,
        )
        self._commit_booking(appt, expected_version, "booking.create", user_id)
        logger.info(
            "booking %s created for user %s with barber %s at %s",
            appt.id, user_id, barber_id, self.calendar.local_iso(starts_at),
        )
        return appt

    def cancel(self, appointment_id: int, actor_id: int, is_admin: bool = False) -> Appointment:
        appt = self.get_for_actor(appointment_id, actor_id, is_admin)
        # a second cancel is "not found", never a silent no-op
        if not can_transition(appt.status, S.cancelled):
            raise NotFound("Booking not found")
        return self._set_status(appt, S.cancelled, actor_id, "booking.cancel")

    def complete(self, appointment_id: int, actor_id: int) -> Appointment:
        appt = self.get_for_actor(appointment_id, actor_id, is_admin=True)
        assert_transition(appt, S.completed)
        return self._set_status(appt, S.completed, actor_id, "booking.complete")

    def _set_status(self, appt: Appointment, target: AppointmentStatus, actor_id: int, action: str) -> Appointment:
        before = audit.booking_snapshot(appt)
        appt.status = target.value
        appt.updated_at = self.calendar.now()
        self.session.add(appt)
        audit.record(self.session, actor_id, action, "booking", appt.id, before, audit.booking_snapshot(appt))
        self.session.commit()
        self.session.refresh(appt)
        logger.info("booking %s -> %s by %s", appt.id, target.value, actor_id)
        return appt

    def reschedule(
        self,
        appointment_id: int,
        actor_id: int,
        is_admin: bool = False,
        starts_at: Optional[datetime] = None,
        duration_minutes: Optional[int] = None,
    ) -> Appointment:
        if starts_at is None and duration_minutes is None:
            raise InvalidInput("Provide starts_at and/or duration_minutes")

        now = self.calendar.now()
        if duration_minutes is not None:
            duration_minutes = self._validate_duration(duration_minutes)
        if starts_at is not None:
            starts_at = self._validate_start(starts_at, now)

        appt = self.get_for_actor(appointment_id, actor_id, is_admin)
        assert_transition(appt, S.rescheduled)

        new_start = starts_at if starts_at is not None else appt.starts_at
        new_duration = duration_minutes if duration_minutes is not None else appt.duration_minutes
        new_end = add_minutes(new_start, new_duration)

        # the booking being moved doesn't count against its owner's weekly limit
        decision = check_eligibility(
            self.session, appt.user_id, now,
            window_days=self.weekly_limit_days,
            exclude_appointment_id=appt.id,
        )
        if not decision.allowed:
            self._deny(decision.error, user_id=appt.user_id, appointment_id=appt.id)

        barber = self.session.get(Barber, appt.barber_id)
        expected_version = barber.booking_version

        if has_overlap(self.session, appt.barber_id, new_start, new_end, exclude_appointment_id=appt.id):
            self._deny(SlotConflict(SLOT_TAKEN_MESSAGE), barber_id=appt.barber_id, stage="check")

        before = audit.booking_snapshot(appt)
        appt.starts_at = new_start
        appt.ends_at = new_end
        appt.duration_minutes = new_duration
        appt.status = S.rescheduled.value
        appt.updated_at = now
        self._commit_booking(appt, expected_version, "booking.reschedule", actor_id, before=before)
        logger.info(
            "booking %s rescheduled to %s (%d min) by %s",
            appt.id, self.calendar.local_iso(new_start), new_duration, actor_id,
        )
        return appt

    def mark_no_show(self, appointment_id: int, actor_id: int) -> Appointment:
        appt = self.get_for_actor(appointment_id, actor_id, is_admin=True)
        assert_transition(appt, S.no_show)

        user = self.session.get(User, appt.user_id)
        if user is None:
            raise NotFound("User not found")

        now = self.calendar.now()
        booking_before = audit.booking_snapshot(appt)
        user_before = audit.eligibility_snapshot(user)

        # appointment and user change together or not at all
        try:
            appt.status = S.no_show.value
            appt.updated_at = now
            user.warning_count += 1
            user.last_warning_at = now
            if user.warning_count >= self.no_show_block_threshold:
                user.is_booking_blocked = True
                user.block_reason = NO_SHOW_BLOCK_REASON
            self.session.add(appt)
            self.session.add(user)
            audit.record(
                self.session, actor_id, "booking.no_show", "booking", appt.id,
                {"booking": booking_before, "user": user_before},
                {"booking": audit.booking_snapshot(appt), "user": audit.eligibility_snapshot(user)},
            )
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        self.session.refresh(appt)
        self.session.refresh(user)
        logger.info(
            "booking %s marked no-show; user %s has %d warning(s)%s",
            appt.id, user.id, user.warning_count, ", blocked" if user.is_booking_blocked else "",
        )
        return appt
