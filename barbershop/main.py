# barbershop/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Depends, Request
from fastapi.responses import JSONResponse

from .config import Settings, get_settings
from .core.errors import BookingError
from .core.timeutils import BusinessCalendar
from .db import create_db_and_tables
from .deps import get_calendar
from .routers import admin_routes, appointments_routes, auth_routes, barbers_routes, users_routes

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings.log_level)
    create_db_and_tables()
    logger.info(
        "barbershop api ready (tz=%s, buffer=%d min)",
        settings.business_timezone, settings.booking_buffer_minutes,
    )
    yield


app = FastAPI(title="Barbershop Booking API", lifespan=lifespan)

app.include_router(auth_routes.router)
app.include_router(users_routes.router)
app.include_router(barbers_routes.router)
app.include_router(appointments_routes.router)
app.include_router(admin_routes.router)


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.get("/health")
def health_check(
    calendar: BusinessCalendar = Depends(get_calendar),
    settings: Settings = Depends(get_settings),
):
    return {
        "status": "ok",
        "timezone": settings.business_timezone,
        "business_today": calendar.today().isoformat(),
        "booking_buffer_minutes": settings.booking_buffer_minutes,
    }
