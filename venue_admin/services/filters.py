"""
Local search over a booking collection. No remote calls; debouncing
keystrokes is left to the caller.
"""

from typing import Iterable, Union

from venue_admin.models.booking import Booking, BookingStatus

ALL = "ALL"

StatusFilter = Union[str, BookingStatus]


def matches_status(booking: Booking, status_filter: StatusFilter) -> bool:
    if status_filter == ALL:
        return True
    return booking.status == BookingStatus(status_filter)


def matches_text(booking: Booking, text: str) -> bool:
    if not text:
        return True
    needle = text.lower()
    haystacks = (booking.company_name, booking.email, booking.venue_name)
    return any(value and needle in value.lower() for value in haystacks)


def matches_booking(booking: Booking, text: str = "", status_filter: StatusFilter = ALL) -> bool:
    return matches_status(booking, status_filter) and matches_text(booking, text)


def filter_bookings(
    bookings: Iterable[Booking],
    text: str = "",
    status_filter: StatusFilter = ALL,
) -> list[Booking]:
    return [b for b in bookings if matches_booking(b, text, status_filter)]
