"""
Venue catalog service: cached reads and invalidating writes.
"""

from typing import Any, Iterable, Optional

from venue_admin.api.venues import VenueApi
from venue_admin.core.errors import NotFound
from venue_admin.core.logging import get_logger
from venue_admin.models.venue import Venue
from venue_admin.schemas.common import Page, parse_input
from venue_admin.schemas.venue import VenueCreate, VenueFilters, VenueUpdate
from venue_admin.services.cache_service import QueryCache, make_key
from venue_admin.services.normalizer import (
    extract_collection,
    extract_pagination,
    extract_record,
    parse_records,
)

logger = get_logger(__name__)

# Cache resources
VENUES = "venues"
VENUE = "venue"


def venue_from_payload(payload: Any) -> Optional[Venue]:
    record = extract_record(payload)
    if record is None:
        return None
    parsed = parse_records([record], Venue)
    return parsed[0] if parsed else None


class VenueService:
    def __init__(self, api: VenueApi, cache: QueryCache):
        self.api = api
        self.cache = cache

    async def list_venues(self, filters: Any = None) -> Page[Venue]:
        filters = parse_input(VenueFilters, filters) if filters is not None else None

        async def fetch() -> Page[Venue]:
            payload = await self.api.list(filters)
            return Page[Venue](
                items=parse_records(extract_collection(payload), Venue),
                pagination=extract_pagination(payload),
            )

        return await self.cache.query(make_key(VENUES, filters), fetch)

    async def get_venue(self, venue_id: str) -> Venue:
        async def fetch() -> Venue:
            venue = venue_from_payload(await self.api.get(venue_id))
            if venue is None:
                raise NotFound(f"Venue {venue_id} not found")
            return venue

        return await self.cache.query(make_key(VENUE, venue_id), fetch)

    async def create_venue(self, data: Any) -> Optional[Venue]:
        venue_in = parse_input(VenueCreate, data)
        payload = await self.cache.mutate(
            lambda: self.api.create(venue_in),
            affected=[VENUES],
            name="create_venue",
        )
        venue = venue_from_payload(payload)
        logger.info("venue_created", venue_id=venue.id if venue else None, name=venue_in.name)
        return venue

    async def update_venue(self, venue_id: str, data: Any) -> Optional[Venue]:
        venue_in = parse_input(VenueUpdate, data)
        payload = await self.cache.mutate(
            lambda: self.api.update(venue_id, venue_in),
            affected=[VENUES, make_key(VENUE, venue_id)],
            name="update_venue",
        )
        logger.info("venue_updated", venue_id=venue_id)
        return venue_from_payload(payload)

    async def delete_venue(self, venue_id: str) -> None:
        await self.cache.mutate(
            lambda: self.api.delete(venue_id),
            affected=[VENUES, make_key(VENUE, venue_id)],
            name="delete_venue",
        )
        logger.info("venue_deleted", venue_id=venue_id)

    async def delete_venues(self, venue_ids: Iterable[str]) -> int:
        """
        Delete several venues one by one. Stops at the first failure; the
        deletes that already succeeded have invalidated the cache.
        """
        deleted = 0
        for venue_id in venue_ids:
            await self.delete_venue(venue_id)
            deleted += 1
        return deleted

    async def update_venues(self, venue_ids: Iterable[str], data: Any) -> list[Optional[Venue]]:
        """
        Apply the same edit to several venues, one by one. The edit is
        validated once up front; like delete_venues, the first failure stops
        the run and earlier updates stay applied.
        """
        venue_in = parse_input(VenueUpdate, data)
        updated = []
        for venue_id in venue_ids:
            updated.append(await self.update_venue(venue_id, venue_in))
        logger.info("venues_updated", count=len(updated))
        return updated
