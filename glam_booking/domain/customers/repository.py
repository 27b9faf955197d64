"""Customer repository - Database operations for customers"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Customer


class CustomerRepository:
    """Repository for customer database operations"""

    @staticmethod
    def get(db: Session, customer_id: int) -> Optional[Customer]:
        """Get a customer by ID"""
        return db.query(Customer).filter(Customer.id == customer_id).first()

    @staticmethod
    def find_by_email(db: Session, email: str) -> Optional[Customer]:
        """Get a customer by (case-insensitive) email"""
        return db.query(Customer).filter(Customer.email == email.strip().lower()).first()

    @staticmethod
    def create(db: Session, **customer_data) -> Customer:
        """Create a new customer"""
        customer = Customer(**customer_data)
        db.add(customer)
        db.commit()
        db.refresh(customer)
        return customer
