"""
Pydantic schemas for venue catalog input validation.
"""

from typing import Optional
from pydantic import Field

from venue_admin.schemas.common import CamelModel


class VenueCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    city: str = Field(..., min_length=1, max_length=255)
    capacity: int = Field(..., gt=0)
    price_per_night: int = Field(..., ge=0)  # minor units
    amenities: list[str] = Field(default_factory=list)
    images: list[str] = Field(default_factory=list)
    description: Optional[str] = Field(None, max_length=2000)


class VenueUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    city: Optional[str] = Field(None, min_length=1, max_length=255)
    capacity: Optional[int] = Field(None, gt=0)
    price_per_night: Optional[int] = Field(None, ge=0)
    amenities: Optional[list[str]] = None
    images: Optional[list[str]] = None
    description: Optional[str] = Field(None, max_length=2000)


class VenueFilters(CamelModel):
    city: Optional[str] = None
    min_capacity: Optional[int] = Field(None, ge=0)
    max_price: Optional[int] = Field(None, ge=0)
    amenities: Optional[list[str]] = None
    page: Optional[int] = Field(None, ge=1)
    limit: Optional[int] = Field(None, ge=1, le=100)
