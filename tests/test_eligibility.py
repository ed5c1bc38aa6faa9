from datetime import timedelta

import pytest
from sqlmodel import select

from barbershop.core import eligibility
from barbershop.core.eligibility import check_eligibility
from barbershop.core.errors import (
    BookingBlocked,
    NotFound,
    Unauthorized,
    WeeklyLimitReached,
)
from barbershop.models import AuditLog

from helpers import NOW


def test_unknown_user_is_an_authorization_failure(session):
    decision = check_eligibility(session, 404, NOW)
    assert not decision.allowed
    assert isinstance(decision.error, Unauthorized)


def test_fresh_user_is_allowed(session, make_user):
    decision = check_eligibility(session, make_user().id, NOW)
    assert decision.allowed
    decision.raise_if_denied()


def test_blocked_user_is_denied_without_revealing_counts(session, make_user):
    user = make_user(is_booking_blocked=True, block_reason="no-shows", warning_count=2)

    decision = check_eligibility(session, user.id, NOW)

    assert isinstance(decision.error, BookingBlocked)
    assert "restricted" in decision.error.reason
    assert "2" not in decision.error.reason
    with pytest.raises(BookingBlocked):
        decision.raise_if_denied()


class TestWeeklyLimit:
    @pytest.fixture
    def user_and_barber(self, make_user, make_barber):
        return make_user(), make_barber()

    def test_active_booking_inside_window_denies(self, session, add_appointment, user_and_barber):
        user, barber = user_and_barber
        add_appointment(user, barber, NOW + timedelta(days=7) - timedelta(minutes=1))

        decision = check_eligibility(session, user.id, NOW)

        assert isinstance(decision.error, WeeklyLimitReached)
        assert "one active booking" in decision.error.reason

    def test_booking_exactly_at_window_end_is_outside(self, session, add_appointment, user_and_barber):
        user, barber = user_and_barber
        add_appointment(user, barber, NOW + timedelta(days=7))

        assert check_eligibility(session, user.id, NOW).allowed

    def test_booking_exactly_now_is_inside(self, session, add_appointment, user_and_barber):
        user, barber = user_and_barber
        add_appointment(user, barber, NOW)

        assert not check_eligibility(session, user.id, NOW).allowed

    def test_window_rolls_with_the_clock(self, session, add_appointment, user_and_barber):
        user, barber = user_and_barber
        add_appointment(user, barber, NOW)

        assert check_eligibility(session, user.id, NOW + timedelta(days=7)).allowed

    @pytest.mark.parametrize("status", ["cancelled", "completed", "no_show"])
    def test_inactive_bookings_do_not_count(self, session, add_appointment, user_and_barber, status):
        user, barber = user_and_barber
        add_appointment(user, barber, NOW + timedelta(days=1), status=status)

        assert check_eligibility(session, user.id, NOW).allowed

    def test_excluded_booking_does_not_count(self, session, add_appointment, user_and_barber):
        user, barber = user_and_barber
        appt = add_appointment(user, barber, NOW + timedelta(days=1))

        assert check_eligibility(session, user.id, NOW, exclude_appointment_id=appt.id).allowed

    def test_window_length_is_configurable(self, session, add_appointment, user_and_barber):
        user, barber = user_and_barber
        add_appointment(user, barber, NOW + timedelta(days=3))

        assert check_eligibility(session, user.id, NOW, window_days=2).allowed
        assert not check_eligibility(session, user.id, NOW, window_days=4).allowed


class TestAdminActions:
    def test_block_then_unblock(self, session, make_user):
        admin = make_user("admin@example.com", role="admin")
        user = make_user()

        eligibility.block_user(session, admin.id, user.id, "abusive")
        assert user.is_booking_blocked
        assert user.block_reason == "abusive"
        assert not check_eligibility(session, user.id, NOW).allowed

        eligibility.unblock_user(session, admin.id, user.id)
        assert not user.is_booking_blocked
        assert user.block_reason is None
        assert check_eligibility(session, user.id, NOW).allowed

        actions = [a.action for a in session.exec(select(AuditLog).order_by(AuditLog.id))]
        assert actions == ["user.block", "user.unblock"]

    def test_clear_warning_floors_at_zero(self, session, make_user):
        admin = make_user("admin@example.com", role="admin")
        user = make_user(warning_count=1, last_warning_at=NOW)

        eligibility.clear_one_warning(session, admin.id, user.id)
        assert user.warning_count == 0
        assert user.last_warning_at is None

        eligibility.clear_one_warning(session, admin.id, user.id)
        assert user.warning_count == 0

    def test_unknown_user(self, session):
        with pytest.raises(NotFound):
            eligibility.unblock_user(session, 1, 999)
