"""
Venue catalog endpoints.
"""

from typing import Any, Optional

from venue_admin.infrastructure.http_client import ApiClient
from venue_admin.schemas.venue import VenueCreate, VenueFilters, VenueUpdate


class VenueApi:
    def __init__(self, client: ApiClient):
        self.client = client

    async def list(self, filters: Optional[VenueFilters] = None) -> Any:
        params = filters.to_payload() if filters else None
        return await self.client.get("/venues", params=params)

    async def get(self, venue_id: str) -> Any:
        return await self.client.get(f"/venues/{venue_id}")

    async def create(self, data: VenueCreate) -> Any:
        return await self.client.post("/venues", json=data.to_payload())

    async def update(self, venue_id: str, data: VenueUpdate) -> Any:
        return await self.client.put(f"/venues/{venue_id}", json=data.to_payload())

    async def delete(self, venue_id: str) -> Any:
        return await self.client.delete(f"/venues/{venue_id}")
