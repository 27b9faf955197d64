"""Catalog router - Read-only service endpoints"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ...database import get_db
from ...models import Service
from .repository import ServiceRepository
from .schemas import ServiceResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/services", tags=["Services"])


def _to_response(service: Service) -> ServiceResponse:
    return ServiceResponse(
        id=service.id,
        name=service.name,
        description=service.description,
        category=service.category,
        price=float(service.price),
        durationMinutes=service.duration_minutes,
    )


@router.get("", response_model=list[ServiceResponse])
async def list_services(
    category: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    """List bookable services"""
    return [_to_response(s) for s in ServiceRepository.list_active(db, category)]


@router.get("/{service_id}", response_model=ServiceResponse)
async def get_service(service_id: int, db: Session = Depends(get_db)):
    """Get a bookable service"""
    service = ServiceRepository.get_active(db, service_id)
    if not service:
        raise HTTPException(status_code=404, detail="Service not found")
    return _to_response(service)
