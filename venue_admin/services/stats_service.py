"""
Booking aggregates for the dashboards.

Everything here is a pure function of the booking collection, so the
figures are recomputed from whatever the cache currently holds; a status
change invalidates that collection and the next read derives fresh numbers.

The occupancy rate is a display-only estimate scaled from the number of
confirmed bookings against an assumed annual inventory. It is not a
night-by-night overlap computation and must not be used to detect
double bookings.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, Optional, Sequence

from venue_admin.models.booking import Booking, BookingStatus

NIGHTS_PER_BOOKING = 30
ANNUAL_NIGHTS = 365
TARGET_FACTOR = 0.7


@dataclass(frozen=True)
class BookingStats:
    total: int
    confirmed_count: int
    pending_count: int
    rejected_count: int
    revenue: int  # minor units
    occupancy_rate: float  # percent


@dataclass(frozen=True)
class BookingPartitions:
    upcoming: list[Booking] = field(default_factory=list)
    pending: list[Booking] = field(default_factory=list)
    past: list[Booking] = field(default_factory=list)


def booking_revenue(booking: Booking, nightly_price: Optional[int] = None) -> int:
    """
    Nights times price for one booking. Without an explicit price the
    booking's venue snapshot price is used, and 0 if it has none.
    """
    if nightly_price is None:
        nightly_price = (booking.venue.price_per_night if booking.venue else None) or 0
    return booking.nights * nightly_price


def occupancy_rate(
    confirmed_count: int,
    nights_per_booking: int = NIGHTS_PER_BOOKING,
    annual_nights: int = ANNUAL_NIGHTS,
    target_factor: float = TARGET_FACTOR,
) -> float:
    return (confirmed_count * nights_per_booking) / (annual_nights * target_factor) * 100


def compute_booking_stats(
    bookings: Sequence[Booking],
    nightly_price: Optional[int] = None,
    nights_per_booking: int = NIGHTS_PER_BOOKING,
    annual_nights: int = ANNUAL_NIGHTS,
    target_factor: float = TARGET_FACTOR,
) -> BookingStats:
    counts = {status: 0 for status in BookingStatus}
    revenue = 0
    for booking in bookings:
        counts[booking.status] += 1
        if booking.status == BookingStatus.CONFIRMED:
            revenue += booking_revenue(booking, nightly_price)

    confirmed = counts[BookingStatus.CONFIRMED]
    return BookingStats(
        total=len(bookings),
        confirmed_count=confirmed,
        pending_count=counts[BookingStatus.PENDING],
        rejected_count=counts[BookingStatus.REJECTED],
        revenue=revenue,
        occupancy_rate=occupancy_rate(confirmed, nights_per_booking, annual_nights, target_factor),
    )


def is_upcoming(booking: Booking, now: datetime) -> bool:
    return booking.status == BookingStatus.CONFIRMED and booking.start_date > now


def is_past(booking: Booking, now: datetime) -> bool:
    return booking.status != BookingStatus.PENDING and booking.end_date < now


def partition_bookings(
    bookings: Iterable[Booking],
    now: Optional[datetime] = None,
) -> BookingPartitions:
    """
    Split bookings for the dashboard tabs.

    A confirmed booking that is currently running belongs to neither
    ``upcoming`` nor ``past``.
    """
    now = now or datetime.now(timezone.utc)
    partitions = BookingPartitions()
    for booking in bookings:
        if booking.status == BookingStatus.PENDING:
            partitions.pending.append(booking)
        elif is_upcoming(booking, now):
            partitions.upcoming.append(booking)
        elif is_past(booking, now):
            partitions.past.append(booking)
    return partitions
