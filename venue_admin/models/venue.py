"""
Venue record as served by the remote catalog.

Prices are integers in minor currency units (cents). The catalog owns these
records; the client only reads them and forwards edits.
"""

from datetime import datetime
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class RecordModel(BaseModel):
    """Base for records parsed from camelCase JSON."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )


class Venue(RecordModel):
    id: str = Field(validation_alias=AliasChoices("id", "_id"))
    name: str
    city: str
    capacity: int = Field(gt=0)
    price_per_night: int = Field(ge=0)
    amenities: list[str] = Field(default_factory=list)
    images: list[str] = Field(default_factory=list)
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __repr__(self) -> str:
        return f"<Venue(id={self.id}, name={self.name}, city={self.city})>"


class VenueSnapshot(RecordModel):
    """Denormalized venue fields embedded in a booking for display."""

    id: Optional[str] = Field(default=None, validation_alias=AliasChoices("id", "_id"))
    name: Optional[str] = None
    city: Optional[str] = None
    capacity: Optional[int] = None
    price_per_night: Optional[int] = None
