"""Customer service - Business logic for the customer directory"""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...models import Appointment, Customer
from ..scheduling.repository import AppointmentRepository
from .repository import CustomerRepository
from .schemas import CustomerCreate

logger = logging.getLogger(__name__)


class CustomerService:
    """Service layer for customer operations"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = CustomerRepository()

    def find_or_create(self, data: CustomerCreate) -> Customer:
        """
        Return the customer with this email, creating one on first booking.

        Existing customers keep their stored name; a missing phone number is
        filled in from the new booking.
        """
        existing = self.repo.find_by_email(self.db, data.email)
        if existing:
            if data.phone and not existing.phone:
                existing.phone = data.phone
                self.db.commit()
            logger.info(f"👤 Reusing customer {existing.id} for {data.email}")
            return existing

        try:
            customer = self.repo.create(
                self.db,
                first_name=data.firstName,
                last_name=data.lastName,
                email=data.email,
                phone=data.phone,
            )
        except IntegrityError:
            # Created by a concurrent booking since the lookup
            self.db.rollback()
            customer = self.repo.find_by_email(self.db, data.email)
            if not customer:
                raise
            return customer

        logger.info(f"✅ Created customer {customer.id} for {data.email}")
        return customer

    def list_appointments(self, email: str) -> list[Appointment]:
        """Appointments booked under an email address, most recent first"""
        return AppointmentRepository.list_for_customer_email(self.db, email)
