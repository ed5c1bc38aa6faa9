# barbershop/routers/appointments_routes.py

from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session, select

from barbershop.db import get_session
from barbershop.models import Appointment
from barbershop.schemas import (
    AppointmentCreate,
    AppointmentPublic,
    AppointmentReschedule,
    AppointmentStatus,
)
from barbershop.auth import get_current_user
from barbershop.deps import get_lifecycle, require_role
from barbershop.core.lifecycle import BookingLifecycle

router = APIRouter(
    prefix="/bookings",
    tags=["bookings"],
)


# Customer routes

@router.get("/me", response_model=List[AppointmentPublic])
def my_bookings(
    status: Optional[AppointmentStatus] = None,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    stmt = select(Appointment).where(Appointment.user_id == current_user["id"])
    if status is not None:
        stmt = stmt.where(Appointment.status == status.value)
    stmt = stmt.order_by(Appointment.starts_at)
    return session.exec(stmt).all()


@router.post("", response_model=AppointmentPublic, status_code=201)
def create_booking(
    appt: AppointmentCreate,
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
    current_user: dict = Depends(get_current_user),
):
    return lifecycle.create(
        user_id=current_user["id"],
        barber_id=appt.barber_id,
        service_name=appt.service_name,
        duration_minutes=appt.duration_minutes,
        starts_at=appt.starts_at,
        notes=appt.notes,
    )


@router.post("/{appt_id}/cancel", response_model=AppointmentPublic)
def cancel_booking(
    appt_id: int,
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
    current_user: dict = Depends(get_current_user),
):
    return lifecycle.cancel(appt_id, current_user["id"])


@router.patch("/{appt_id}", response_model=AppointmentPublic)
def reschedule_booking(
    appt_id: int,
    patch: AppointmentReschedule,
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
    current_user: dict = Depends(get_current_user),
):
    return lifecycle.reschedule(
        appt_id,
        current_user["id"],
        starts_at=patch.starts_at,
        duration_minutes=patch.duration_minutes,
    )


# Admin routes

@router.get("/admin/all", response_model=List[AppointmentPublic])
def admin_all_bookings(
    status: Optional[AppointmentStatus] = None,
    barber_id: Optional[int] = None,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "admin")
    stmt = select(Appointment)
    if status is not None:
        stmt = stmt.where(Appointment.status == status.value)
    if barber_id is not None:
        stmt = stmt.where(Appointment.barber_id == barber_id)
    return session.exec(stmt.order_by(Appointment.starts_at)).all()


@router.post("/admin/{appt_id}/cancel", response_model=AppointmentPublic)
def admin_cancel_booking(
    appt_id: int,
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "admin")
    return lifecycle.cancel(appt_id, current_user["id"], is_admin=True)


@router.post("/admin/{appt_id}/complete", response_model=AppointmentPublic)
def admin_complete_booking(
    appt_id: int,
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "admin")
    return lifecycle.complete(appt_id, current_user["id"])


@router.patch("/admin/{appt_id}", response_model=AppointmentPublic)
def admin_reschedule_booking(
    appt_id: int,
    patch: AppointmentReschedule,
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "admin")
    return lifecycle.reschedule(
        appt_id,
        current_user["id"],
        is_admin=True,
        starts_at=patch.starts_at,
        duration_minutes=patch.duration_minutes,
    )


@router.post("/admin/{appt_id}/no-show", response_model=AppointmentPublic)
def admin_mark_no_show(
    appt_id: int,
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "admin")
    return lifecycle.mark_no_show(appt_id, current_user["id"])
