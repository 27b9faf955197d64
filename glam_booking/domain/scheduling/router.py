"""Scheduling router - Availability, booking and appointment endpoints"""

import logging
from datetime import date, datetime, timedelta
from typing import Callable, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ...database import get_db
from ...models import AppointmentStatus
from ...notifications import appointment_notice, send_booking_confirmation, send_status_update
from ...shared.validators import format_hhmm
from ..customers.service import CustomerService
from .calendar import BusinessCalendar, get_business_calendar
from .engine import SchedulingEngine
from .lifecycle import AppointmentLifecycle
from .locks import get_date_locks
from .repository import AppointmentRepository
from .schemas import AppointmentResponse, AppointmentUpdate, BookingCreate, to_appointment_response

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Scheduling"])

MAX_LISTING_DAYS = 92


def get_clock(calendar: BusinessCalendar = Depends(get_business_calendar)) -> Callable[[], datetime]:
    """Dependency injection for the business-time clock"""
    return calendar.now


def get_scheduling_engine(
    db: Session = Depends(get_db),
    calendar: BusinessCalendar = Depends(get_business_calendar),
    locks=Depends(get_date_locks),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> SchedulingEngine:
    """Dependency injection for SchedulingEngine"""
    return SchedulingEngine(db, calendar, locks, clock=clock)


def get_appointment_lifecycle(
    db: Session = Depends(get_db),
    calendar: BusinessCalendar = Depends(get_business_calendar),
    locks=Depends(get_date_locks),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> AppointmentLifecycle:
    """Dependency injection for AppointmentLifecycle"""
    return AppointmentLifecycle(db, calendar, locks, clock=clock)


# ============================================================================
# AVAILABILITY & BOOKING
# ============================================================================


@router.get("/availability", response_model=list[str])
async def list_availability(
    service_id: int = Query(..., alias="serviceId"),
    day: date = Query(..., alias="date"),
    engine: SchedulingEngine = Depends(get_scheduling_engine),
):
    """Free start times ("HH:MM") for a service on a date"""
    return [format_hhmm(t) for t in engine.list_available_slots(service_id, day)]


@router.post("/bookings", response_model=AppointmentResponse, status_code=201)
def create_booking(
    data: BookingCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    engine: SchedulingEngine = Depends(get_scheduling_engine),
):
    """
    Book a slot.

    New customers are matched by email, so repeat visitors keep one
    customer record. Returns 409 when the slot was taken in the meantime;
    the client should list availability again.
    """
    if data.customer is not None:
        customer_id = CustomerService(db).find_or_create(data.customer).id
    else:
        customer_id = data.customerId

    logger.info(
        f"📥 Booking request: service {data.serviceId} on {data.day} "
        f"{format_hhmm(data.start)} for customer {customer_id}"
    )
    appointment = engine.commit_booking(
        customer_id=customer_id,
        service_id=data.serviceId,
        day=data.day,
        start=data.start,
        notes=data.notes,
    )

    notice = appointment_notice(appointment)
    if notice:
        background_tasks.add_task(send_booking_confirmation, notice)

    return to_appointment_response(appointment)


# ============================================================================
# APPOINTMENTS
# ============================================================================


@router.get("/appointments", response_model=list[AppointmentResponse])
async def list_appointments(
    start: Optional[date] = Query(None, alias="from"),
    end: Optional[date] = Query(None, alias="to"),
    status: Optional[str] = Query(None, description="Filter by status"),
    db: Session = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    """Appointments between two dates (inclusive); defaults to the next 7 days"""
    start = start or clock().date()
    end = end or start + timedelta(days=7)

    if end < start:
        raise HTTPException(status_code=400, detail="'to' must not be before 'from'")
    if (end - start).days > MAX_LISTING_DAYS:
        raise HTTPException(
            status_code=400, detail=f"Date range cannot exceed {MAX_LISTING_DAYS} days"
        )
    if status and status not in [s.value for s in AppointmentStatus]:
        raise HTTPException(status_code=400, detail=f"Unknown status '{status}'")

    appointments = AppointmentRepository.list_between(db, start, end, status)
    return [to_appointment_response(a) for a in appointments]


@router.get("/appointments/today", response_model=list[AppointmentResponse])
async def list_today(
    db: Session = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    """Today's appointments in business time"""
    today = clock().date()
    return [to_appointment_response(a) for a in AppointmentRepository.list_between(db, today, today)]


@router.get("/appointments/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(
    appointment_id: int,
    lifecycle: AppointmentLifecycle = Depends(get_appointment_lifecycle),
):
    """Get a single appointment"""
    return to_appointment_response(lifecycle.get(appointment_id))


@router.patch("/appointments/{appointment_id}", response_model=AppointmentResponse)
def update_appointment(
    appointment_id: int,
    data: AppointmentUpdate,
    background_tasks: BackgroundTasks,
    lifecycle: AppointmentLifecycle = Depends(get_appointment_lifecycle),
):
    """Change status, move the slot, or edit notes / deposit"""
    before = lifecycle.get(appointment_id)
    previous = (before.status, before.appointment_date, before.start_time)

    appointment = lifecycle.update(
        appointment_id,
        status=data.status,
        day=data.day,
        start=data.start,
        service_id=data.serviceId,
        notes=data.notes,
        deposit_paid=data.depositPaid,
    )

    current = (appointment.status, appointment.appointment_date, appointment.start_time)
    customer_facing = appointment.status in (
        AppointmentStatus.CONFIRMED.value,
        AppointmentStatus.CANCELLED.value,
    )
    if current != previous and (customer_facing or previous[1:] != current[1:]):
        notice = appointment_notice(appointment)
        if notice:
            background_tasks.add_task(send_status_update, notice)

    return to_appointment_response(appointment)
