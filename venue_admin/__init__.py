"""
Venue booking administration client.

A catalog of bookable venues and a request/approval workflow for bookings,
backed by a remote authority and a per-session query cache.
"""

from venue_admin.session import AdminContext, admin_session

__all__ = ["AdminContext", "admin_session"]
