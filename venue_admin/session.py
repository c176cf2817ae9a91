"""
Venue Booking Admin - session entry point.

An admin session owns everything with state: the credential store, the HTTP
client and the query cache. Nothing is a module-level singleton; open a
session, pass its context to whatever needs it, and leave the block to tear
it all down.

    async with admin_session() as ctx:
        page = await ctx.bookings.list_bookings({"status": "PENDING"})
        await ctx.bookings.confirm(page.items[0])
"""

import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Callable, Optional

import httpx
import structlog

from venue_admin.api.bookings import BookingApi
from venue_admin.api.venues import VenueApi
from venue_admin.core.config import Settings, get_settings
from venue_admin.core.logging import get_logger, setup_logging
from venue_admin.infrastructure.credentials import CredentialStore
from venue_admin.infrastructure.http_client import ApiClient
from venue_admin.services.booking_service import BookingService
from venue_admin.services.cache_service import QueryCache
from venue_admin.services.venue_service import VenueService


@dataclass
class AdminContext:
    settings: Settings
    credentials: CredentialStore
    client: ApiClient
    cache: QueryCache
    venues: VenueService
    bookings: BookingService


@asynccontextmanager
async def admin_session(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    on_unauthorized: Optional[Callable[[], None]] = None,
    configure_logging: bool = True,
) -> AsyncIterator[AdminContext]:
    """
    Session lifecycle: startup and shutdown hooks.

    ``on_unauthorized`` is called after a 401 has cleared the credential, so
    the caller can send the user back through sign-in. ``transport`` replaces
    the network transport (tests pass an ASGI or mock transport).
    """
    settings = settings or get_settings()
    if configure_logging:
        setup_logging(settings)
    logger = get_logger(__name__)

    session_id = str(uuid.uuid4())[:8]
    structlog.contextvars.bind_contextvars(session_id=session_id)
    logger.info(
        "session_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        api_url=settings.API_URL,
    )

    credentials = CredentialStore(settings.API_TOKEN, on_cleared=on_unauthorized)
    client = ApiClient(settings, credentials, transport=transport)
    cache = QueryCache(
        ttl=settings.CACHE_TTL,
        retry_attempts=settings.QUERY_RETRY_ATTEMPTS,
        retry_delay=settings.QUERY_RETRY_DELAY,
    )
    ctx = AdminContext(
        settings=settings,
        credentials=credentials,
        client=client,
        cache=cache,
        venues=VenueService(VenueApi(client), cache),
        bookings=BookingService(BookingApi(client), cache, settings),
    )

    try:
        yield ctx
    finally:
        # Cleanup
        await cache.close()
        await client.close()
        logger.info("session_shutdown")
        structlog.contextvars.unbind_contextvars("session_id")
