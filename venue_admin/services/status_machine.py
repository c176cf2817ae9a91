"""
Booking status state machine.

    PENDING --confirm--> CONFIRMED
    PENDING --reject---> REJECTED

CONFIRMED and REJECTED are terminal. Requesting the status a booking already
has is a no-op; every other change out of a terminal state is invalid.
Deletion is not a transition: an administrator may remove a booking in any
status.
"""

from datetime import datetime, timezone
from typing import Optional

from venue_admin.core.errors import InvalidTransition
from venue_admin.models.booking import Booking, BookingStatus

ALLOWED_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.REJECTED}),
    BookingStatus.CONFIRMED: frozenset(),
    BookingStatus.REJECTED: frozenset(),
}

TERMINAL_STATUSES = frozenset(
    status for status, targets in ALLOWED_TRANSITIONS.items() if not targets
)


def plan_transition(current: BookingStatus, target: BookingStatus) -> bool:
    """
    Decide whether a status change must be sent to the authority.

    Returns False for a same-state request, True for a legal transition and
    raises ``InvalidTransition`` otherwise.
    """
    current, target = BookingStatus(current), BookingStatus(target)
    if current == target:
        return False
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidTransition(current.value, target.value)
    return True


def apply_transition(
    booking: Booking,
    target: BookingStatus,
    now: Optional[datetime] = None,
) -> Booking:
    """Return the booking as it looks after the transition (itself for a no-op)."""
    if not plan_transition(booking.status, target):
        return booking
    return booking.model_copy(
        update={
            "status": BookingStatus(target),
            "updated_at": now or datetime.now(timezone.utc),
        }
    )
