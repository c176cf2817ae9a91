"""
Thin wrappers around the remote authority's endpoints, one per resource.
"""

from venue_admin.api.venues import VenueApi
from venue_admin.api.bookings import BookingApi

__all__ = ["VenueApi", "BookingApi"]
