from venue_admin.schemas.common import Page, Pagination, parse_input
from venue_admin.schemas.venue import VenueCreate, VenueUpdate, VenueFilters
from venue_admin.schemas.booking import BookingCreate, BookingStatusUpdate, BookingFilters

__all__ = [
    "Page", "Pagination", "parse_input",
    "VenueCreate", "VenueUpdate", "VenueFilters",
    "BookingCreate", "BookingStatusUpdate", "BookingFilters",
]
