# barbershop/models.py

from typing import Optional, List
from datetime import datetime, timezone

from sqlalchemy import UniqueConstraint
from sqlalchemy.types import JSON, DateTime, TypeDecorator
from sqlmodel import SQLModel, Field, Column


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    """Stores aware datetimes as naive UTC and hands them back as aware UTC.

    SQLite drops tzinfo on the way back, so without this every read would
    produce naive values that can't be compared with the aware instants the
    rest of the service works in.
    """

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            raise ValueError("naive datetime cannot be stored; attach a UTC offset")
        return value.astimezone(timezone.utc).replace(tzinfo=None)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return value.replace(tzinfo=timezone.utc)


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(index=True, unique=True)
    name: str = ""
    password_hash: str
    role: str = "user"  # user or admin

    # booking eligibility, mutated by no-show and by admin actions only
    warning_count: int = 0
    is_booking_blocked: bool = False
    block_reason: Optional[str] = None
    last_warning_at: Optional[datetime] = Field(
        default=None, sa_column=Column(UTCDateTime(), nullable=True)
    )


class Barber(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    specialties: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    active: bool = True
    # bumped on every booking write for this barber; commit-time compare-and-swap
    booking_version: int = 0


class WorkingHour(SQLModel, table=True):
    __table_args__ = (
        UniqueConstraint("barber_id", "weekday", name="uq_barber_weekday"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    barber_id: int = Field(foreign_key="barber.id", index=True)
    weekday: int  # 0=Sunday ... 6=Saturday
    start_minute: int
    end_minute: int


class TimeOff(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    barber_id: int = Field(foreign_key="barber.id", index=True)
    start: datetime = Field(sa_column=Column(UTCDateTime(), nullable=False, index=True))
    end: datetime = Field(sa_column=Column(UTCDateTime(), nullable=False))  # exclusive
    reason: Optional[str] = None


class Appointment(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    user_id: int = Field(foreign_key="user.id", index=True)
    barber_id: int = Field(foreign_key="barber.id", index=True)
    service_name: str
    duration_minutes: int
    starts_at: datetime = Field(sa_column=Column(UTCDateTime(), nullable=False, index=True))
    ends_at: datetime = Field(sa_column=Column(UTCDateTime(), nullable=False))
    status: str = "booked"
    notes: Optional[str] = None

    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(UTCDateTime(), nullable=False))
    updated_at: datetime = Field(default_factory=utcnow, sa_column=Column(UTCDateTime(), nullable=False))


class AuditLog(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    actor_id: Optional[int] = None  # None for system actions
    action: str  # e.g. "booking.create", "booking.no_show", "user.unblock"
    entity_type: str  # booking or user
    entity_id: int = Field(index=True)
    before: Optional[dict] = Field(default=None, sa_column=Column(JSON))
    after: Optional[dict] = Field(default=None, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(UTCDateTime(), nullable=False))
