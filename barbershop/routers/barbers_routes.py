# barbershop/routers/barbers_routes.py

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session, select

from barbershop.config import Settings, get_settings
from barbershop.db import get_session
from barbershop.deps import get_calendar
from barbershop.models import Barber
from barbershop.repository import get_working_hours
from barbershop.schemas import BarberPublic, SlotsResponse
from barbershop.core.slots import generate_slots
from barbershop.core.timeutils import BusinessCalendar, format_hhmm

router = APIRouter(
    prefix="/barbers",
    tags=["barbers"],
)

# a working day never exceeds this
MAX_QUERY_MINUTES = 24 * 60


def barber_public(session: Session, barber: Barber) -> dict:
    return {
        "id": barber.id,
        "name": barber.name,
        "specialties": barber.specialties or [],
        "active": barber.active,
        "working_hours": [
            {"weekday": wh.weekday, "start": format_hhmm(wh.start_minute), "end": format_hhmm(wh.end_minute)}
            for wh in get_working_hours(session, barber.id)
        ],
    }


@router.get("", response_model=List[BarberPublic])
def list_barbers(session: Session = Depends(get_session)):
    barbers = session.exec(
        select(Barber).where(Barber.active == True).order_by(Barber.name)  # noqa: E712
    ).all()
    return [barber_public(session, b) for b in barbers]


@router.get("/{barber_id}", response_model=BarberPublic)
def get_barber(barber_id: int, session: Session = Depends(get_session)):
    barber = session.get(Barber, barber_id)
    if barber is None or not barber.active:
        raise HTTPException(status_code=404, detail="Barber not found")
    return barber_public(session, barber)


@router.get("/{barber_id}/slots", response_model=SlotsResponse)
def barber_slots(
    barber_id: int,
    date: str = Query(..., description="UTC calendar day, YYYY-MM-DD"),
    duration: int = Query(..., gt=0, le=MAX_QUERY_MINUTES),
    step: Optional[int] = Query(default=None, gt=0, le=MAX_QUERY_MINUTES),
    session: Session = Depends(get_session),
    calendar: BusinessCalendar = Depends(get_calendar),
    settings: Settings = Depends(get_settings),
):
    barber = session.get(Barber, barber_id)
    if barber is None or not barber.active:
        raise HTTPException(status_code=404, detail="Barber not found")

    slots = generate_slots(
        session,
        calendar,
        barber_id,
        date,
        duration,
        step_minutes=step or settings.slot_step_minutes,
        buffer_minutes=settings.booking_buffer_minutes,
    )
    return {
        "barber_id": barber_id,
        "date": date,
        "duration": duration,
        "slots": [{"start": s.start, "end": s.end} for s in slots],
    }
