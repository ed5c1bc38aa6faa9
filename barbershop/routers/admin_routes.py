# barbershop/routers/admin_routes.py

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from barbershop.db import get_session
from barbershop.models import AuditLog, Barber, TimeOff, User, WorkingHour
from barbershop.repository import get_working_hours
from barbershop.schemas import (
    AuditLogPublic,
    BarberCreate,
    BarberPublic,
    BlockUser,
    TimeOffCreate,
    TimeOffPublic,
    UserEligibility,
    UserUpdate,
    WorkingHourIn,
    WorkingHoursUpdateResponse,
)
from barbershop.auth import get_current_user
from barbershop.deps import get_calendar, require_role
from barbershop.routers.barbers_routes import barber_public
from barbershop.core import accounts, eligibility
from barbershop.core.errors import InvalidInput
from barbershop.core.slots import outside_working_hours
from barbershop.core.timeutils import BusinessCalendar, ensure_utc, parse_hhmm

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/admin",
    tags=["admin"],
)


def require_admin(current_user: dict = Depends(get_current_user)) -> dict:
    require_role(current_user, "admin")
    return current_user


def _working_hour_rows(barber_id: int, rules: List[WorkingHourIn]) -> List[WorkingHour]:
    weekdays = [r.weekday for r in rules]
    if len(weekdays) != len(set(weekdays)):
        raise InvalidInput("working_hours cannot contain the same weekday twice")

    rows = []
    for r in rules:
        start, end = parse_hhmm(r.start), parse_hhmm(r.end, allow_end_of_day=True)
        if end <= start:
            raise InvalidInput(f"Working hours for weekday {r.weekday} must end after they start")
        rows.append(WorkingHour(barber_id=barber_id, weekday=r.weekday, start_minute=start, end_minute=end))
    return rows


# Barbers

@router.post("/barbers", response_model=BarberPublic, status_code=201)
def create_barber(
    barber: BarberCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    # validate the rule set before touching the db
    _working_hour_rows(0, barber.working_hours)

    db_barber = Barber(name=barber.name.strip(), specialties=barber.specialties)
    session.add(db_barber)
    session.flush()
    for row in _working_hour_rows(db_barber.id, barber.working_hours):
        session.add(row)
    session.commit()
    session.refresh(db_barber)

    logger.info("barber %s created by %s", db_barber.id, current_user["id"])
    return barber_public(session, db_barber)


@router.put("/barbers/{barber_id}/working-hours", response_model=WorkingHoursUpdateResponse)
def replace_working_hours(
    barber_id: int,
    rules: List[WorkingHourIn],
    session: Session = Depends(get_session),
    calendar: BusinessCalendar = Depends(get_calendar),
    current_user: dict = Depends(require_admin),
):
    rows = _working_hour_rows(barber_id, rules)

    barber = session.get(Barber, barber_id)
    if barber is None:
        raise HTTPException(status_code=404, detail="Barber not found")

    # replaced wholesale
    for old in get_working_hours(session, barber_id):
        session.delete(old)
    session.flush()
    for row in rows:
        session.add(row)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise HTTPException(status_code=409, detail="Working hours changed concurrently, try again")

    flagged = outside_working_hours(session, barber_id, calendar.now())
    if flagged:
        logger.warning(
            "barber %s working hours changed; %d upcoming booking(s) now outside hours: %s",
            barber_id, len(flagged), flagged,
        )
    return {"barber": barber_public(session, barber), "flagged_appointment_ids": flagged}


@router.post("/barbers/{barber_id}/deactivate", response_model=BarberPublic)
def deactivate_barber(
    barber_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    barber = session.get(Barber, barber_id)
    if barber is None:
        raise HTTPException(status_code=404, detail="Barber not found")
    barber.active = False
    session.add(barber)
    session.commit()
    session.refresh(barber)
    return barber_public(session, barber)


# Time off

@router.post("/timeoff", response_model=TimeOffPublic, status_code=201)
def create_time_off(
    body: TimeOffCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    start, end = ensure_utc(body.start), ensure_utc(body.end)
    if end <= start:
        raise InvalidInput("Time off must end after it starts")

    if session.get(Barber, body.barber_id) is None:
        raise HTTPException(status_code=404, detail="Barber not found")

    db_off = TimeOff(barber_id=body.barber_id, start=start, end=end, reason=body.reason)
    session.add(db_off)
    session.commit()
    session.refresh(db_off)
    return db_off


@router.get("/timeoff", response_model=List[TimeOffPublic])
def list_time_off(
    barber_id: Optional[int] = None,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    stmt = select(TimeOff)
    if barber_id is not None:
        stmt = stmt.where(TimeOff.barber_id == barber_id)
    return session.exec(stmt.order_by(TimeOff.start)).all()


@router.delete("/timeoff/{timeoff_id}", response_model=TimeOffPublic)
def delete_time_off(
    timeoff_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    db_off = session.get(TimeOff, timeoff_id)
    if db_off is None:
        raise HTTPException(status_code=404, detail="Time-off not found")
    deleted = TimeOffPublic.model_validate(db_off, from_attributes=True)
    session.delete(db_off)
    session.commit()
    return deleted


# Users

@router.get("/users", response_model=List[UserEligibility])
def list_users(
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    return session.exec(select(User).order_by(User.id)).all()


@router.get("/users/{user_id}", response_model=UserEligibility)
def get_user(
    user_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    return accounts.get_user(session, user_id)


@router.patch("/users/{user_id}", response_model=UserEligibility)
def update_user(
    user_id: int,
    patch: UserUpdate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    return accounts.update_user(session, current_user["id"], user_id, patch.model_dump(exclude_unset=True))


@router.post("/users/{user_id}/block", response_model=UserEligibility)
def block_user(
    user_id: int,
    body: BlockUser,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    return eligibility.block_user(session, current_user["id"], user_id, body.reason)


@router.post("/users/{user_id}/unblock", response_model=UserEligibility)
def unblock_user(
    user_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    return eligibility.unblock_user(session, current_user["id"], user_id)


@router.post("/users/{user_id}/clear-warning", response_model=UserEligibility)
def clear_warning(
    user_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    return eligibility.clear_one_warning(session, current_user["id"], user_id)


# Audit

@router.get("/audit", response_model=List[AuditLogPublic])
def list_audit(
    entity_type: Optional[str] = None,
    entity_id: Optional[int] = None,
    session: Session = Depends(get_session),
    current_user: dict = Depends(require_admin),
):
    stmt = select(AuditLog)
    if entity_type is not None:
        stmt = stmt.where(AuditLog.entity_type == entity_type)
    if entity_id is not None:
        stmt = stmt.where(AuditLog.entity_id == entity_id)
    return session.exec(stmt.order_by(AuditLog.id.desc())).all()
