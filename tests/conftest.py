"""
Pytest configuration and fixtures.

Every test gets its own in-memory SQLite database and a fixed business-time
clock: Monday 2030-06-03 08:00, the day before the first open day used in
the tests (Tuesday 2030-06-04).
"""

import os
import sys
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path

# Must be set before glam_booking.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("DB_LOG_SLOW_QUERIES", "false")
os.environ["RESEND_API_KEY"] = ""

# Add project root to Python path
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from glam_booking.database import Base
from glam_booking.domain.scheduling.availability import end_of
from glam_booking.domain.scheduling.calendar import BusinessCalendar
from glam_booking.domain.scheduling.engine import SchedulingEngine
from glam_booking.domain.scheduling.lifecycle import AppointmentLifecycle
from glam_booking.domain.scheduling.locks import LocalDateLocks
from glam_booking.models import Appointment, AppointmentStatus, Customer, Service
from glam_booking.shared.validators import parse_hhmm

NOW = datetime(2030, 6, 3, 8, 0)
MONDAY = date(2030, 6, 3)
TUESDAY = date(2030, 6, 4)
WEDNESDAY = date(2030, 6, 5)
SATURDAY = date(2030, 6, 8)
SUNDAY = date(2030, 6, 9)


def make_calendar(**overrides) -> BusinessCalendar:
    settings = {
        "open_days": ["tuesday", "wednesday", "thursday", "friday", "saturday"],
        "opening": parse_hhmm("09:00"),
        "closing": parse_hhmm("19:00"),
        "granularity_minutes": 30,
        "timezone": "Europe/Paris",
    }
    settings.update(overrides)
    return BusinessCalendar(**settings)


@pytest.fixture
def calendar() -> BusinessCalendar:
    return make_calendar()


@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(db_engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def locks() -> LocalDateLocks:
    return LocalDateLocks(timeout_seconds=2)


@pytest.fixture
def scheduler(db, calendar, locks) -> SchedulingEngine:
    return SchedulingEngine(db, calendar, locks, clock=lambda: NOW)


@pytest.fixture
def lifecycle(db, calendar, locks) -> AppointmentLifecycle:
    return AppointmentLifecycle(db, calendar, locks, clock=lambda: NOW)


@pytest.fixture
def service_factory(db):
    def create(name="Soin visage", duration=45, price="55.00", is_active=True) -> Service:
        service = Service(
            name=name,
            category="soins visage",
            price=Decimal(price),
            duration_minutes=duration,
            is_active=is_active,
        )
        db.add(service)
        db.commit()
        db.refresh(service)
        return service

    return create


@pytest.fixture
def service(service_factory) -> Service:
    return service_factory()


@pytest.fixture
def customer(db) -> Customer:
    customer = Customer(first_name="Awa", last_name="Diallo", email="awa@example.com")
    db.add(customer)
    db.commit()
    db.refresh(customer)
    return customer


@pytest.fixture
def add_appointment(db, customer):
    """Insert an appointment directly, bypassing the engine"""

    def create(service, day, start, status=AppointmentStatus.SCHEDULED) -> Appointment:
        start_time = parse_hhmm(start)
        appointment = Appointment(
            customer_id=customer.id,
            service_id=service.id,
            appointment_date=day,
            start_time=start_time,
            end_time=end_of(day, start_time, service.duration_minutes),
            status=status.value,
            total_price=service.price,
        )
        db.add(appointment)
        db.commit()
        db.refresh(appointment)
        return appointment

    return create
