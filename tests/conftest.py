"""
Pytest fixtures: in-memory SQLite, a fixed clock and an API client whose
session/calendar dependencies point at them.
"""
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from barbershop.auth import create_access_token
from barbershop.core.lifecycle import BookingLifecycle
from barbershop.core.timeutils import BusinessCalendar
from barbershop.db import create_db_and_tables, get_session
from barbershop.deps import get_calendar
from barbershop.main import app
from barbershop.models import Appointment, Barber, User, WorkingHour

from helpers import MON_TO_FRI, NOW, FixedClock, minutes


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_db_and_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def calendar(clock):
    return BusinessCalendar("Europe/Berlin", clock=clock)


@pytest.fixture
def lifecycle(session, calendar):
    return BookingLifecycle(session, calendar)


@pytest.fixture
def make_user(session):
    def _make(email="client@example.com", role="user", **fields):
        user = User(email=email, name=email.split("@")[0], password_hash="not-a-real-hash", role=role, **fields)
        session.add(user)
        session.commit()
        session.refresh(user)
        return user
    return _make


@pytest.fixture
def make_barber(session):
    def _make(name="Sam", hours=None, active=True):
        hours = MON_TO_FRI if hours is None else hours
        barber = Barber(name=name, specialties=["fade"], active=active)
        session.add(barber)
        session.flush()
        for weekday, (start, end) in hours.items():
            session.add(WorkingHour(
                barber_id=barber.id, weekday=weekday,
                start_minute=minutes(start), end_minute=minutes(end),
            ))
        session.commit()
        session.refresh(barber)
        return barber
    return _make


@pytest.fixture
def add_appointment(session):
    """Insert an appointment directly, bypassing the lifecycle checks."""
    def _add(user, barber, starts_at, length=30, status="booked"):
        appt = Appointment(
            user_id=user.id,
            barber_id=barber.id,
            service_name="Haircut",
            duration_minutes=length,
            starts_at=starts_at,
            ends_at=starts_at + timedelta(minutes=length),
            status=status,
        )
        session.add(appt)
        session.commit()
        session.refresh(appt)
        return appt
    return _add


@pytest.fixture
def client(engine, calendar):
    def _get_session():
        with Session(engine) as s:
            yield s

    app.dependency_overrides[get_session] = _get_session
    app.dependency_overrides[get_calendar] = lambda: calendar
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def _headers(user):
        return {"Authorization": f"Bearer {create_access_token({'sub': user.email})}"}
    return _headers
