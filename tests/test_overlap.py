from datetime import datetime

import pytest

from barbershop.core.errors import InvalidInput
from barbershop.core.overlap import has_overlap, overlaps

from helpers import WEDNESDAY, at


def test_interval_overlap_is_half_open():
    nine, ten, eleven = at(WEDNESDAY, "09:00"), at(WEDNESDAY, "10:00"), at(WEDNESDAY, "11:00")
    assert overlaps(nine, eleven, ten, eleven)
    assert not overlaps(nine, ten, ten, eleven)
    assert not overlaps(ten, eleven, nine, ten)


class TestHasOverlap:
    @pytest.fixture
    def booked(self, make_barber, make_user, add_appointment):
        barber = make_barber()
        user = make_user()
        appt = add_appointment(user, barber, at(WEDNESDAY, "10:00"), length=30)
        return barber, appt

    def test_partial_and_containing_overlaps(self, session, booked):
        barber, _ = booked
        assert has_overlap(session, barber.id, at(WEDNESDAY, "09:45"), at(WEDNESDAY, "10:15"))
        assert has_overlap(session, barber.id, at(WEDNESDAY, "10:10"), at(WEDNESDAY, "10:20"))
        assert has_overlap(session, barber.id, at(WEDNESDAY, "09:00"), at(WEDNESDAY, "12:00"))

    def test_touching_endpoints_are_free(self, session, booked):
        barber, _ = booked
        assert not has_overlap(session, barber.id, at(WEDNESDAY, "09:30"), at(WEDNESDAY, "10:00"))
        assert not has_overlap(session, barber.id, at(WEDNESDAY, "10:30"), at(WEDNESDAY, "11:00"))

    def test_other_barbers_are_independent(self, session, booked, make_barber):
        other = make_barber(name="Alex")
        assert not has_overlap(session, other.id, at(WEDNESDAY, "10:00"), at(WEDNESDAY, "10:30"))

    def test_excluded_appointment_does_not_conflict_with_itself(self, session, booked):
        barber, appt = booked
        assert not has_overlap(
            session, barber.id, at(WEDNESDAY, "10:00"), at(WEDNESDAY, "10:30"), exclude_appointment_id=appt.id
        )

    @pytest.mark.parametrize("status", ["cancelled", "completed", "no_show"])
    def test_inactive_statuses_are_ignored(self, session, make_barber, make_user, add_appointment, status):
        barber = make_barber()
        add_appointment(make_user(), barber, at(WEDNESDAY, "10:00"), status=status)
        assert not has_overlap(session, barber.id, at(WEDNESDAY, "10:00"), at(WEDNESDAY, "10:30"))

    def test_rescheduled_counts_as_active(self, session, make_barber, make_user, add_appointment):
        barber = make_barber()
        add_appointment(make_user(), barber, at(WEDNESDAY, "10:00"), status="rescheduled")
        assert has_overlap(session, barber.id, at(WEDNESDAY, "10:00"), at(WEDNESDAY, "10:30"))

    def test_naive_instants_are_rejected(self, session, booked):
        barber, _ = booked
        with pytest.raises(InvalidInput):
            has_overlap(session, barber.id, datetime(2026, 10, 21, 10), datetime(2026, 10, 21, 11))
