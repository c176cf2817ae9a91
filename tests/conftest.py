"""
Pytest fixtures: an in-memory fake of the remote authority and a client
session wired to it.

The fake is a small FastAPI app served through httpx's ASGITransport, so the
client runs its real HTTP path without a network. It records every request it
receives, which is what the call-count assertions check.
"""

from datetime import datetime, timezone
from typing import AsyncGenerator, Optional

import httpx
import pytest
import pytest_asyncio
from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse

from venue_admin.core.config import Settings
from venue_admin.session import AdminContext, admin_session

TEST_TOKEN = "test-token"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _not_found() -> JSONResponse:
    return JSONResponse({"success": False, "error": "Not found"}, status_code=404)


def build_authority(token: str = TEST_TOKEN) -> FastAPI:
    app = FastAPI()
    state = app.state
    state.venues = {}
    state.bookings = {}
    state.calls = []
    state.failures = []  # status codes served, in order, before normal handling
    state.gate = None  # asyncio.Event holding GET /bookings until set
    state.counter = 0

    def next_id(prefix: str) -> str:
        state.counter += 1
        return f"{prefix}{state.counter}"

    def add_venue(**fields) -> dict:
        venue = {
            "id": next_id("v"),
            "name": "Grand Hall",
            "city": "Lisbon",
            "capacity": 100,
            "pricePerNight": 10000,
            "amenities": ["wifi"],
            "images": [],
            "description": "A hall",
            "createdAt": _now(),
            "updatedAt": _now(),
        }
        venue.update(fields)
        state.venues[venue["id"]] = venue
        return venue

    def add_booking(venue: dict, **fields) -> dict:
        booking = {
            "id": next_id("b"),
            "venueId": venue["id"],
            "companyName": "Acme Corp",
            "email": "events@acme.com",
            "startDate": "2030-01-01T00:00:00Z",
            "endDate": "2030-01-03T00:00:00Z",
            "attendeeCount": 10,
            "status": "PENDING",
            "createdAt": _now(),
            "updatedAt": _now(),
            "venue": {
                "id": venue["id"],
                "name": venue["name"],
                "city": venue["city"],
                "capacity": venue["capacity"],
                "pricePerNight": venue["pricePerNight"],
            },
        }
        booking.update(fields)
        state.bookings[booking["id"]] = booking
        return booking

    def calls_to(method: str, path: str) -> int:
        return sum(1 for call in state.calls if call == (method, path))

    state.add_venue = add_venue
    state.add_booking = add_booking
    state.calls_to = calls_to

    @app.middleware("http")
    async def record_and_authorize(request: Request, call_next):
        state.calls.append((request.method, request.url.path))
        if request.headers.get("authorization") != f"Bearer {token}":
            return JSONResponse({"success": False, "error": "Unauthorized"}, status_code=401)
        if state.failures:
            status_code = state.failures.pop(0)
            return JSONResponse({"success": False, "error": "Injected failure"}, status_code=status_code)
        return await call_next(request)

    router = APIRouter(prefix="/api")

    @router.get("/venues")
    async def list_venues(
        city: Optional[str] = None,
        minCapacity: Optional[int] = None,
        maxPrice: Optional[int] = None,
        page: int = 1,
        limit: int = 12,
    ):
        venues = [
            v for v in state.venues.values()
            if (city is None or v["city"] == city)
            and (minCapacity is None or v["capacity"] >= minCapacity)
            and (maxPrice is None or v["pricePerNight"] <= maxPrice)
        ]
        start = (page - 1) * limit
        total_pages = max((len(venues) + limit - 1) // limit, 1)
        return {
            "success": True,
            "data": {
                "data": venues[start:start + limit],
                "pagination": {
                    "page": page,
                    "limit": limit,
                    "total": len(venues),
                    "totalPages": total_pages,
                    "hasNext": page < total_pages,
                    "hasPrev": page > 1,
                },
            },
        }

    @router.get("/venues/{venue_id}")
    async def get_venue(venue_id: str):
        if venue_id not in state.venues:
            return _not_found()
        return {"success": True, "data": state.venues[venue_id]}

    @router.post("/venues", status_code=201)
    async def create_venue(request: Request):
        venue = add_venue(**(await request.json()))
        return {"success": True, "data": venue}

    @router.put("/venues/{venue_id}")
    async def update_venue(venue_id: str, request: Request):
        if venue_id not in state.venues:
            return _not_found()
        state.venues[venue_id].update(await request.json(), updatedAt=_now())
        return {"success": True, "data": state.venues[venue_id]}

    @router.delete("/venues/{venue_id}")
    async def delete_venue(venue_id: str):
        if state.venues.pop(venue_id, None) is None:
            return _not_found()
        return {"success": True, "message": "Venue deleted"}

    @router.get("/bookings")
    async def list_bookings(status: Optional[str] = None, venueId: Optional[str] = None):
        if state.gate is not None:
            await state.gate.wait()
        bookings = [
            b for b in state.bookings.values()
            if (status is None or b["status"] == status)
            and (venueId is None or b["venueId"] == venueId)
        ]
        return {
            "success": True,
            "data": bookings,
            "pagination": {"page": 1, "limit": 50, "total": len(bookings), "totalPages": 1},
        }

    @router.get("/bookings/venue/{venue_id}")
    async def venue_bookings(venue_id: str):
        return {
            "success": True,
            "data": [b for b in state.bookings.values() if b["venueId"] == venue_id],
        }

    @router.get("/bookings/{booking_id}")
    async def get_booking(booking_id: str):
        if booking_id not in state.bookings:
            return _not_found()
        return {"success": True, "data": state.bookings[booking_id]}

    @router.post("/bookings", status_code=201)
    async def create_booking(request: Request):
        body = await request.json()
        venue = state.venues.get(body.get("venueId"))
        if venue is None:
            return _not_found()
        booking = add_booking(venue, **body)
        booking["status"] = "PENDING"
        return {"success": True, "data": booking, "message": "Booking created"}

    @router.put("/bookings/{booking_id}/status")
    async def update_booking_status(booking_id: str, request: Request):
        if booking_id not in state.bookings:
            return _not_found()
        body = await request.json()
        state.bookings[booking_id].update(status=body["status"], updatedAt=_now())
        return {"success": True, "data": state.bookings[booking_id]}

    @router.delete("/bookings/{booking_id}")
    async def delete_booking(booking_id: str):
        if state.bookings.pop(booking_id, None) is None:
            return _not_found()
        return {"success": True, "message": "Booking deleted"}

    app.include_router(router)
    return app


@pytest.fixture
def authority() -> FastAPI:
    return build_authority()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        API_URL="http://test/api",
        API_TOKEN=TEST_TOKEN,
        ENVIRONMENT="test",
        QUERY_RETRY_ATTEMPTS=1,
        QUERY_RETRY_DELAY=0.0,
        CACHE_TTL=None,
    )


@pytest.fixture
def unauthorized_calls() -> list:
    return []


@pytest_asyncio.fixture
async def ctx(
    authority: FastAPI,
    settings: Settings,
    unauthorized_calls: list,
) -> AsyncGenerator[AdminContext, None]:
    """Client session talking to the fake authority."""
    transport = httpx.ASGITransport(app=authority)
    async with admin_session(
        settings,
        transport=transport,
        on_unauthorized=lambda: unauthorized_calls.append(True),
        configure_logging=False,
    ) as context:
        yield context


@pytest.fixture
def venue(authority: FastAPI) -> dict:
    """A venue for 100 people at 100.00 per night."""
    return authority.state.add_venue()


@pytest.fixture
def pending_booking(authority: FastAPI, venue: dict) -> dict:
    return authority.state.add_booking(venue)
