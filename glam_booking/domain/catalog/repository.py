"""Service repository - Database operations for the service catalog"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Service


class ServiceRepository:
    """Repository for service catalog lookups"""

    @staticmethod
    def get_by_id(db: Session, service_id: int) -> Optional[Service]:
        """Get a service by ID, active or not"""
        return db.query(Service).filter(Service.id == service_id).first()

    @staticmethod
    def get_active(db: Session, service_id: int) -> Optional[Service]:
        """Get a service only if it can currently be booked"""
        return (
            db.query(Service)
            .filter(Service.id == service_id, Service.is_active.is_(True))
            .first()
        )

    @staticmethod
    def list_active(db: Session, category: Optional[str] = None) -> list[Service]:
        """Active services, grouped by category then name"""
        query = db.query(Service).filter(Service.is_active.is_(True))
        if category:
            query = query.filter(Service.category == category)
        return query.order_by(Service.category, Service.name).all()
