from venue_admin.models.venue import Venue, VenueSnapshot
from venue_admin.models.booking import Booking, BookingStatus

__all__ = ["Venue", "VenueSnapshot", "Booking", "BookingStatus"]
