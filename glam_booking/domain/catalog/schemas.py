"""Catalog domain schemas - Pydantic models for services"""

from typing import Optional

from pydantic import BaseModel


class ServiceResponse(BaseModel):
    """Schema for service response"""

    id: int
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    price: float
    durationMinutes: int
