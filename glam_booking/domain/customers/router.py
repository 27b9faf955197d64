"""Customer router - "My appointments" lookup"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ...database import get_db
from ...shared.validators import validate_email
from ..scheduling.schemas import AppointmentResponse, to_appointment_response
from .service import CustomerService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/customers", tags=["Customers"])


def get_customer_service(db: Session = Depends(get_db)) -> CustomerService:
    """Dependency injection for CustomerService"""
    return CustomerService(db)


@router.get("/appointments", response_model=list[AppointmentResponse])
async def get_customer_appointments(
    email: str = Query(...),
    service: CustomerService = Depends(get_customer_service),
):
    """Get the appointments booked under an email address"""
    try:
        email = validate_email(email)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    appointments = service.list_appointments(email)
    logger.info(f"📋 Found {len(appointments)} appointment(s) for {email}")
    return [to_appointment_response(a) for a in appointments]
