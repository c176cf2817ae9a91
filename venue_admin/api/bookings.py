"""
Booking endpoints.
"""

from typing import Any, Optional

from venue_admin.infrastructure.http_client import ApiClient
from venue_admin.models.booking import BookingStatus
from venue_admin.schemas.booking import BookingCreate, BookingFilters, BookingStatusUpdate


class BookingApi:
    def __init__(self, client: ApiClient):
        self.client = client

    async def list(self, filters: Optional[BookingFilters] = None) -> Any:
        params = filters.to_payload() if filters else None
        return await self.client.get("/bookings", params=params)

    async def get(self, booking_id: str) -> Any:
        return await self.client.get(f"/bookings/{booking_id}")

    async def by_venue(self, venue_id: str) -> Any:
        return await self.client.get(f"/bookings/venue/{venue_id}")

    async def create(self, data: BookingCreate) -> Any:
        # Dates go out as absolute ISO-8601 UTC timestamps
        return await self.client.post("/bookings", json=data.to_payload())

    async def update_status(self, booking_id: str, status: BookingStatus) -> Any:
        body = BookingStatusUpdate(status=status).to_payload()
        return await self.client.put(f"/bookings/{booking_id}/status", json=body)

    async def delete(self, booking_id: str) -> Any:
        return await self.client.delete(f"/bookings/{booking_id}")
