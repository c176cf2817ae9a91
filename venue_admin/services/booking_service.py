"""
Booking service: the request/approval workflow against the remote authority.

Reads go through the query cache. Writes go through the mutation coordinator
and then invalidate every collection the write could have changed; the client
never patches cached collections itself, the next read re-fetches them.

Status changes are checked against the status machine before any remote call:
a same-state request returns immediately and an illegal one raises
InvalidTransition, so neither reaches the network. While a change is being
sent, a second request for the same target joins it and one for a different
target is checked against the target in flight.

No double-booking check is made here. Two bookings for overlapping dates at
the same venue can both be confirmed; the approver is the conflict check.
"""

import asyncio
from collections import OrderedDict
from datetime import datetime
from typing import Any, Optional, Union

from venue_admin.api.bookings import BookingApi
from venue_admin.core.config import Settings
from venue_admin.core.errors import InvalidTransition, NotFound, ValidationError
from venue_admin.core.logging import get_logger
from venue_admin.core.metrics import record_status_transition
from venue_admin.models.booking import Booking, BookingStatus
from venue_admin.models.venue import Venue, VenueSnapshot
from venue_admin.schemas.booking import BookingCreate, BookingFilters
from venue_admin.schemas.common import Page, parse_input
from venue_admin.services.cache_service import QueryCache, make_key
from venue_admin.services.filters import ALL, StatusFilter, filter_bookings
from venue_admin.services.normalizer import (
    extract_collection,
    extract_pagination,
    extract_record,
    parse_records,
)
from venue_admin.services.stats_service import (
    BookingPartitions,
    BookingStats,
    compute_booking_stats,
    partition_bookings,
)
from venue_admin.services.status_machine import apply_transition, plan_transition

logger = get_logger(__name__)

# Cache resources
BOOKINGS = "bookings"
BOOKING = "booking"
VENUE_BOOKINGS = "venue-bookings"


def booking_from_payload(payload: Any) -> Optional[Booking]:
    record = extract_record(payload)
    if record is None:
        return None
    parsed = parse_records([record], Booking)
    return parsed[0] if parsed else None


APPLIED_STATUS_LIMIT = 1024


class BookingService:
    def __init__(
        self,
        api: BookingApi,
        cache: QueryCache,
        settings: Settings,
        applied_limit: int = APPLIED_STATUS_LIMIT,
    ):
        self.api = api
        self.cache = cache
        self.settings = settings
        self.applied_limit = applied_limit
        # Statuses this session has successfully applied, newer than any booking object a caller may hold.
        # Oldest entries are evicted past applied_limit.
        self._applied: OrderedDict[str, BookingStatus] = OrderedDict()
        # Status change currently being sent, per booking id
        self._in_flight: dict[str, tuple[BookingStatus, asyncio.Task]] = {}

    # ---- reads ----

    async def list_bookings(self, filters: Any = None) -> Page[Booking]:
        filters = parse_input(BookingFilters, filters) if filters is not None else None

        async def fetch() -> Page[Booking]:
            payload = await self.api.list(filters)
            return Page[Booking](
                items=parse_records(extract_collection(payload), Booking),
                pagination=extract_pagination(payload),
            )

        return await self.cache.query(make_key(BOOKINGS, filters), fetch)

    async def get_booking(self, booking_id: str) -> Booking:
        async def fetch() -> Booking:
            booking = booking_from_payload(await self.api.get(booking_id))
            if booking is None:
                raise NotFound(f"Booking {booking_id} not found")
            return booking

        return await self.cache.query(make_key(BOOKING, booking_id), fetch)

    async def venue_bookings(self, venue_id: str) -> list[Booking]:
        async def fetch() -> list[Booking]:
            payload = await self.api.by_venue(venue_id)
            return parse_records(extract_collection(payload), Booking)

        return await self.cache.query(make_key(VENUE_BOOKINGS, venue_id), fetch)

    async def search(
        self,
        text: str = "",
        status_filter: StatusFilter = ALL,
        filters: Any = None,
    ) -> list[Booking]:
        page = await self.list_bookings(filters)
        return filter_bookings(page.items, text, status_filter)

    # ---- aggregates ----

    def _stats(self, bookings: list[Booking], nightly_price: Optional[int]) -> BookingStats:
        return compute_booking_stats(
            bookings,
            nightly_price,
            nights_per_booking=self.settings.OCCUPANCY_NIGHTS_PER_BOOKING,
            annual_nights=self.settings.OCCUPANCY_ANNUAL_NIGHTS,
            target_factor=self.settings.OCCUPANCY_TARGET_FACTOR,
        )

    async def venue_stats(self, venue: Venue) -> BookingStats:
        bookings = await self.venue_bookings(venue.id)
        return self._stats(bookings, venue.price_per_night)

    async def overall_stats(self, filters: Any = None) -> BookingStats:
        """Stats across venues; each booking is billed at its venue snapshot price."""
        page = await self.list_bookings(filters)
        return self._stats(page.items, None)

    async def venue_partitions(self, venue_id: str, now: Optional[datetime] = None) -> BookingPartitions:
        return partition_bookings(await self.venue_bookings(venue_id), now)

    # ---- writes ----

    async def create_booking(
        self,
        data: Any,
        venue: Optional[Union[Venue, VenueSnapshot]] = None,
    ) -> Optional[Booking]:
        """
        Submit a booking request; the authority stores it as PENDING.

        ``venue`` is the venue selected in the form. When given, the attendee
        count is checked against its capacity before anything is sent.
        """
        booking_in = parse_input(BookingCreate, data)
        if venue is not None and venue.capacity is not None and booking_in.attendee_count > venue.capacity:
            raise ValidationError({"attendeeCount": f"Maximum capacity is {venue.capacity}"})

        payload = await self.cache.mutate(
            lambda: self.api.create(booking_in),
            affected=[BOOKINGS, make_key(VENUE_BOOKINGS, booking_in.venue_id)],
            name="create_booking",
        )
        booking = booking_from_payload(payload)
        logger.info(
            "booking_created",
            booking_id=booking.id if booking else None,
            venue_id=booking_in.venue_id,
            attendees=booking_in.attendee_count,
        )
        return booking

    async def change_status(self, booking: Booking, target: Union[str, BookingStatus]) -> Booking:
        try:
            target = BookingStatus(target)
        except ValueError:
            raise ValidationError({"status": f"Unknown status: {target}"}) from None

        in_flight = self._in_flight.get(booking.id)
        if in_flight is not None:
            pending_target, task = in_flight
            if pending_target != target:
                self._reject_change(booking, pending_target, target)
                raise InvalidTransition(pending_target.value, target.value)
            record_status_transition(target.value, "noop")
            logger.info("booking_status_change_joined", booking_id=booking.id, status=target.value)
            return await asyncio.shield(task)

        current = self._applied.get(booking.id, booking.status)
        if current != booking.status:
            booking = booking.model_copy(update={"status": current})

        try:
            needed = plan_transition(current, target)
        except InvalidTransition:
            self._reject_change(booking, current, target)
            raise

        if not needed:
            record_status_transition(target.value, "noop")
            logger.info("booking_status_unchanged", booking_id=booking.id, status=target.value)
            return booking

        # Registered before the first await, so a concurrent call on this booking sees it
        task = asyncio.create_task(self._send_status(booking, target))
        self._in_flight[booking.id] = (target, task)
        task.add_done_callback(lambda done: self._release(booking.id, done))
        return await asyncio.shield(task)

    async def _send_status(self, booking: Booking, target: BookingStatus) -> Booking:
        payload = await self.cache.mutate(
            lambda: self.api.update_status(booking.id, target),
            affected=self._affected_by(booking),
            name="update_booking_status",
        )
        updated = booking_from_payload(payload) or apply_transition(booking, target)
        self._remember(booking.id, updated.status)

        record_status_transition(target.value, "applied")
        logger.info(
            "booking_status_changed",
            booking_id=booking.id,
            previous=booking.status.value,
            status=updated.status.value,
        )
        return updated

    def _reject_change(self, booking: Booking, current: BookingStatus, target: BookingStatus) -> None:
        record_status_transition(target.value, "invalid")
        logger.warning(
            "booking_status_change_rejected",
            booking_id=booking.id,
            current=current.value,
            target=target.value,
        )

    def _release(self, booking_id: str, task: asyncio.Task) -> None:
        entry = self._in_flight.get(booking_id)
        if entry is not None and entry[1] is task:
            del self._in_flight[booking_id]
        # Callers may have gone away; the outcome is still consumed here
        if not task.cancelled():
            task.exception()

    def _remember(self, booking_id: str, status: BookingStatus) -> None:
        self._applied[booking_id] = status
        self._applied.move_to_end(booking_id)
        while len(self._applied) > self.applied_limit:
            self._applied.popitem(last=False)

    async def confirm(self, booking: Booking) -> Booking:
        return await self.change_status(booking, BookingStatus.CONFIRMED)

    async def reject(self, booking: Booking) -> Booking:
        return await self.change_status(booking, BookingStatus.REJECTED)

    async def delete_booking(self, booking: Booking) -> None:
        """Remove a booking whatever its status; deletion is not a status transition."""
        await self.cache.mutate(
            lambda: self.api.delete(booking.id),
            affected=self._affected_by(booking),
            name="delete_booking",
        )
        self._applied.pop(booking.id, None)
        logger.info("booking_deleted", booking_id=booking.id, status=booking.status.value)

    @staticmethod
    def _affected_by(booking: Booking) -> list:
        return [
            BOOKINGS,
            make_key(BOOKING, booking.id),
            make_key(VENUE_BOOKINGS, booking.venue_id),
        ]
