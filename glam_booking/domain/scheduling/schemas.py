"""Scheduling domain schemas - Pydantic models for validation"""

from datetime import date, datetime, time
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ...models import Appointment, AppointmentStatus
from ...shared.validators import format_hhmm, parse_hhmm
from ...utils.sanitization import validate_and_sanitize_input
from ..customers.schemas import CustomerCreate


def _parse_start(v):
    if v is None or isinstance(v, time):
        return v
    return parse_hhmm(v)


class BookingCreate(BaseModel):
    """Schema for booking a slot returned by GET /availability"""

    model_config = ConfigDict(populate_by_name=True)

    customerId: Optional[int] = None
    customer: Optional[CustomerCreate] = None
    serviceId: int
    day: date = Field(alias="date")
    start: time
    notes: Optional[str] = None

    @field_validator("start", mode="before")
    @classmethod
    def validate_start(cls, v):
        return _parse_start(v)

    @field_validator("notes")
    @classmethod
    def validate_notes(cls, v):
        return validate_and_sanitize_input(v, max_length=2000)

    @model_validator(mode="after")
    def validate_customer(self):
        if (self.customerId is None) == (self.customer is None):
            raise ValueError("Provide exactly one of customerId or customer")
        return self


class AppointmentUpdate(BaseModel):
    """Schema for status changes and administrative edits"""

    model_config = ConfigDict(populate_by_name=True)

    status: Optional[str] = None
    day: Optional[date] = Field(None, alias="date")
    start: Optional[time] = None
    serviceId: Optional[int] = None
    notes: Optional[str] = None
    depositPaid: Optional[bool] = None

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        if v is None:
            return v
        valid = [s.value for s in AppointmentStatus]
        if v not in valid:
            raise ValueError(f"Status must be one of: {', '.join(valid)}")
        return v

    @field_validator("start", mode="before")
    @classmethod
    def validate_start(cls, v):
        return _parse_start(v)

    @field_validator("notes")
    @classmethod
    def validate_notes(cls, v):
        return validate_and_sanitize_input(v, max_length=2000)


class AppointmentResponse(BaseModel):
    """Schema for appointment response"""

    id: int
    customer_id: int
    service_id: int
    service_name: Optional[str] = None
    appointment_date: date
    start_time: str
    end_time: str
    status: str
    total_price: float
    deposit_amount: float
    deposit_paid: bool
    reminder_sent: bool
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


def to_appointment_response(appointment: Appointment) -> AppointmentResponse:
    return AppointmentResponse(
        id=appointment.id,
        customer_id=appointment.customer_id,
        service_id=appointment.service_id,
        service_name=appointment.service.name if appointment.service else None,
        appointment_date=appointment.appointment_date,
        start_time=format_hhmm(appointment.start_time),
        end_time=format_hhmm(appointment.end_time),
        status=appointment.status,
        total_price=float(appointment.total_price),
        deposit_amount=float(appointment.deposit_amount or 0),
        deposit_paid=bool(appointment.deposit_paid),
        reminder_sent=bool(appointment.reminder_sent),
        notes=appointment.notes,
        created_at=appointment.created_at,
        updated_at=appointment.updated_at,
    )
