# barbershop/deps.py

from fastapi import Depends, HTTPException
from sqlmodel import Session

from .config import Settings, get_settings
from .core.lifecycle import BookingLifecycle
from .core.timeutils import BusinessCalendar
from .db import get_session


def require_role(user: dict, role: str):
    if user["role"] != role:
        raise HTTPException(status_code=403, detail="Forbidden")


def get_calendar(settings: Settings = Depends(get_settings)) -> BusinessCalendar:
    return BusinessCalendar(settings.business_timezone)


def get_lifecycle(
    session: Session = Depends(get_session),
    calendar: BusinessCalendar = Depends(get_calendar),
    settings: Settings = Depends(get_settings),
) -> BookingLifecycle:
    return BookingLifecycle(
        session,
        calendar,
        max_duration_minutes=settings.max_duration_minutes,
        weekly_limit_days=settings.weekly_limit_days,
        no_show_block_threshold=settings.no_show_block_threshold,
    )
