"""
Booking record representing a company's reservation request for a venue.

Key design decisions:
- Status is only ever changed through the status machine, never by editing fields
- Dates are absolute instants; naive values from the authority are read as UTC
- The embedded venue snapshot is for display and may lag the catalog
"""

import math
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import AliasChoices, Field, field_validator

from venue_admin.models.venue import RecordModel, VenueSnapshot

SECONDS_PER_DAY = 24 * 60 * 60


class BookingStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    REJECTED = "REJECTED"

    def __str__(self) -> str:
        return self.value


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Booking(RecordModel):
    id: str = Field(validation_alias=AliasChoices("id", "_id"))
    venue_id: str
    company_name: str
    email: str  # as stored by the authority; input is checked by BookingCreate
    start_date: datetime
    end_date: datetime
    attendee_count: int = Field(ge=1)
    status: BookingStatus = BookingStatus.PENDING
    special_requests: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    venue: Optional[VenueSnapshot] = None

    @field_validator("start_date", "end_date", "created_at", "updated_at")
    @classmethod
    def _assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value) if value is not None else None

    @property
    def nights(self) -> int:
        """Billable nights; a partial night counts as a full one."""
        seconds = (self.end_date - self.start_date).total_seconds()
        return max(math.ceil(seconds / SECONDS_PER_DAY), 0)

    @property
    def venue_name(self) -> Optional[str]:
        return self.venue.name if self.venue else None

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, venue={self.venue_id}, status={self.status.value})>"
