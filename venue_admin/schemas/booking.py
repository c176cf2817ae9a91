"""
Pydantic schemas for booking request validation.
"""

from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field, ValidationInfo, field_validator
from pydantic_core import PydanticCustomError

from venue_admin.models.booking import BookingStatus, as_utc
from venue_admin.schemas.common import CamelModel


class BookingCreate(CamelModel):
    venue_id: str = Field(..., min_length=1)
    company_name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    start_date: datetime
    end_date: datetime
    attendee_count: int = Field(..., ge=1)
    special_requests: Optional[str] = Field(None, max_length=2000)

    @field_validator("start_date")
    @classmethod
    def _start_utc(cls, value: datetime) -> datetime:
        return as_utc(value)

    @field_validator("end_date")
    @classmethod
    def _end_after_start(cls, value: datetime, info: ValidationInfo) -> datetime:
        value = as_utc(value)
        start = info.data.get("start_date")
        if start is not None and start >= value:
            raise PydanticCustomError("date_order", "End date must be after start date")
        return value


class BookingStatusUpdate(CamelModel):
    status: BookingStatus


class BookingFilters(CamelModel):
    status: Optional[BookingStatus] = None
    venue_id: Optional[str] = None
    company_name: Optional[str] = None
    email: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    page: Optional[int] = Field(None, ge=1)
    limit: Optional[int] = Field(None, ge=1, le=100)
