# barbershop/schemas.py

from pydantic import BaseModel, Field, AwareDatetime, ValidationInfo, field_validator
from enum import Enum
from datetime import datetime
from typing import List, Optional

from .core.timeutils import parse_hhmm


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserRole(str, Enum):
    user = "user"
    admin = "admin"


class AppointmentStatus(str, Enum):
    booked = "booked"
    rescheduled = "rescheduled"
    completed = "completed"
    cancelled = "cancelled"
    no_show = "no_show"


ACTIVE_STATUSES = (AppointmentStatus.booked.value, AppointmentStatus.rescheduled.value)


class UserPublic(BaseModel):
    id: int
    email: str
    name: str
    role: UserRole


class UserCreate(BaseModel):
    email: str
    name: str = Field(default="", max_length=120)
    password: str = Field(min_length=8, max_length=72)


class UserEligibility(BaseModel):
    id: int
    email: str
    name: str
    role: UserRole
    warning_count: int
    is_booking_blocked: bool
    block_reason: Optional[str] = None
    last_warning_at: Optional[datetime] = None


class BlockUser(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=300)


class UserUpdate(BaseModel):
    name: Optional[str] = Field(default=None, max_length=120)
    role: Optional[UserRole] = None
    is_booking_blocked: Optional[bool] = None
    block_reason: Optional[str] = Field(default=None, max_length=300)


class WorkingHourIn(BaseModel):
    weekday: int = Field(ge=0, le=6)  # 0=Sun ... 6=Sat
    start: str  # "HH:MM"
    end: str  # "HH:MM", or "24:00" to close at midnight

    @field_validator("start", "end")
    @classmethod
    def _hhmm(cls, v: str, info: ValidationInfo) -> str:
        parse_hhmm(v, allow_end_of_day=info.field_name == "end")
        return v


class WorkingHourOut(BaseModel):
    weekday: int
    start: str
    end: str


class BarberCreate(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    specialties: List[str] = []
    working_hours: List[WorkingHourIn] = []


class BarberPublic(BaseModel):
    id: int
    name: str
    specialties: List[str]
    active: bool
    working_hours: List[WorkingHourOut]


class WorkingHoursUpdateResponse(BaseModel):
    barber: BarberPublic
    # future active bookings that now fall outside the barber's hours
    flagged_appointment_ids: List[int]


class Slot(BaseModel):
    start: datetime
    end: datetime


class SlotsResponse(BaseModel):
    barber_id: int
    date: str
    duration: int
    slots: List[Slot]


class TimeOffCreate(BaseModel):
    barber_id: int
    start: AwareDatetime
    end: AwareDatetime
    reason: Optional[str] = Field(default=None, max_length=200)


class TimeOffPublic(BaseModel):
    id: int
    barber_id: int
    start: datetime
    end: datetime
    reason: Optional[str] = None


class AppointmentCreate(BaseModel):
    barber_id: int
    service_name: str = Field(min_length=1, max_length=100)
    duration_minutes: int
    starts_at: AwareDatetime
    notes: Optional[str] = Field(default=None, max_length=500)


class AppointmentReschedule(BaseModel):
    starts_at: Optional[AwareDatetime] = None
    duration_minutes: Optional[int] = None


class AppointmentPublic(BaseModel):
    id: int
    user_id: int
    barber_id: int
    service_name: str
    duration_minutes: int
    starts_at: datetime
    ends_at: datetime
    status: AppointmentStatus
    notes: Optional[str] = None


class AuditLogPublic(BaseModel):
    id: int
    actor_id: Optional[int] = None
    action: str
    entity_type: str
    entity_id: int
    before: Optional[dict] = None
    after: Optional[dict] = None
    created_at: datetime
