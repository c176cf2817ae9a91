"""
Tests for the query cache and mutation coordinator, without HTTP.
"""

import asyncio

import pytest

from venue_admin.core.errors import NetworkError, NotFound, ServerError
from venue_admin.services.cache_service import QueryCache, make_key

BOOKINGS = make_key("bookings")


class CountingFetcher:
    """Async fetcher returning successive values, optionally failing first."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = 0
        self.gate = None

    async def __call__(self):
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def cache() -> QueryCache:
    return QueryCache(ttl=None, retry_attempts=1, retry_delay=0.0)


@pytest.mark.asyncio
async def test_concurrent_queries_share_one_fetch(cache):
    fetcher = CountingFetcher(["a"])
    fetcher.gate = asyncio.Event()

    first = asyncio.create_task(cache.query(BOOKINGS, fetcher))
    second = asyncio.create_task(cache.query(BOOKINGS, fetcher))
    await asyncio.sleep(0)
    assert cache.state(BOOKINGS).is_loading

    fetcher.gate.set()
    assert await asyncio.gather(first, second) == [["a"], ["a"]]
    assert fetcher.calls == 1


@pytest.mark.asyncio
async def test_fresh_value_served_from_cache(cache):
    fetcher = CountingFetcher(["a"])
    await cache.query(BOOKINGS, fetcher)
    assert await cache.query(BOOKINGS, fetcher) == ["a"]
    assert fetcher.calls == 1


@pytest.mark.asyncio
async def test_invalidate_by_resource_refetches_every_variant(cache):
    pending = make_key("bookings", {"status": "PENDING"})
    venues = make_key("venues")
    fetcher = CountingFetcher(["x"])

    for key in (BOOKINGS, pending, venues):
        await cache.query(key, fetcher)
    assert cache.invalidate("bookings") == 2

    assert cache.state(BOOKINGS).is_stale
    assert cache.state(pending).is_stale
    assert not cache.state(venues).is_stale

    await cache.query(pending, fetcher)
    await cache.query(venues, fetcher)
    assert fetcher.calls == 4


@pytest.mark.asyncio
async def test_invalidate_exact_key_only(cache):
    one, two = make_key("booking", "b1"), make_key("booking", "b2")
    fetcher = CountingFetcher({"id": "b"})
    await cache.query(one, fetcher)
    await cache.query(two, fetcher)

    cache.invalidate(one)
    assert cache.state(one).is_stale
    assert not cache.state(two).is_stale


@pytest.mark.asyncio
async def test_failed_refetch_keeps_previous_value(cache):
    fetcher = CountingFetcher(["old"], NotFound())
    await cache.query(BOOKINGS, fetcher)
    cache.invalidate("bookings")

    with pytest.raises(NotFound):
        await cache.query(BOOKINGS, fetcher)

    state = cache.state(BOOKINGS)
    assert state.value == ["old"]
    assert isinstance(state.error, NotFound)
    assert not state.is_loading


@pytest.mark.asyncio
async def test_transient_failure_retried_once(cache):
    fetcher = CountingFetcher(NetworkError(), ["ok"])
    assert await cache.query(BOOKINGS, fetcher) == ["ok"]
    assert fetcher.calls == 2
    assert cache.state(BOOKINGS).error is None


@pytest.mark.asyncio
async def test_retry_is_bounded(cache):
    fetcher = CountingFetcher(ServerError())
    with pytest.raises(ServerError):
        await cache.query(BOOKINGS, fetcher)
    assert fetcher.calls == 2


@pytest.mark.asyncio
async def test_non_transient_failure_not_retried(cache):
    fetcher = CountingFetcher(NotFound())
    with pytest.raises(NotFound):
        await cache.query(BOOKINGS, fetcher)
    assert fetcher.calls == 1


@pytest.mark.asyncio
async def test_mutation_success_invalidates(cache):
    fetcher = CountingFetcher(["before"], ["after"])
    await cache.query(BOOKINGS, fetcher)

    result = await cache.mutate(lambda: asyncio.sleep(0, result="created"), affected=["bookings"])

    assert result == "created"
    assert await cache.query(BOOKINGS, fetcher) == ["after"]
    assert fetcher.calls == 2


@pytest.mark.asyncio
async def test_mutation_failure_leaves_cache_untouched(cache):
    fetcher = CountingFetcher(["cached"])
    await cache.query(BOOKINGS, fetcher)
    attempts = []

    async def failing_write():
        attempts.append(1)
        raise NetworkError()

    with pytest.raises(NetworkError):
        await cache.mutate(failing_write, affected=["bookings"])

    assert len(attempts) == 1  # never retried
    assert not cache.state(BOOKINGS).is_stale
    assert await cache.query(BOOKINGS, fetcher) == ["cached"]
    assert fetcher.calls == 1


@pytest.mark.asyncio
async def test_invalidation_during_fetch_forces_new_fetch(cache):
    """A read started before a write must not satisfy reads issued after it."""
    fetcher = CountingFetcher(["pre-write"], ["post-write"])
    fetcher.gate = asyncio.Event()

    early = asyncio.create_task(cache.query(BOOKINGS, fetcher))
    await asyncio.sleep(0)
    cache.invalidate("bookings")
    late = asyncio.create_task(cache.query(BOOKINGS, fetcher))

    fetcher.gate.set()
    assert await early == ["pre-write"]
    assert await late == ["post-write"]
    assert fetcher.calls == 2


@pytest.mark.asyncio
async def test_late_detached_fetch_does_not_overwrite(cache):
    slow = CountingFetcher(["old"])
    slow.gate = asyncio.Event()
    fast = CountingFetcher(["new"])

    early = asyncio.create_task(cache.query(BOOKINGS, slow))
    await asyncio.sleep(0)
    cache.invalidate("bookings")
    assert await cache.query(BOOKINGS, fast) == ["new"]

    slow.gate.set()
    assert await early == ["old"]
    assert cache.state(BOOKINGS).value == ["new"]
    assert not cache.state(BOOKINGS).is_stale


@pytest.mark.asyncio
async def test_ttl_expiry():
    now = [100.0]
    cache = QueryCache(ttl=10, retry_delay=0.0, clock=lambda: now[0])
    fetcher = CountingFetcher(["a"])

    await cache.query(BOOKINGS, fetcher)
    now[0] += 5
    await cache.query(BOOKINGS, fetcher)
    assert fetcher.calls == 1

    now[0] += 10
    await cache.query(BOOKINGS, fetcher)
    assert fetcher.calls == 2


@pytest.mark.asyncio
async def test_close_cancels_in_flight(cache):
    fetcher = CountingFetcher(["never"])
    fetcher.gate = asyncio.Event()
    pending = asyncio.create_task(cache.query(BOOKINGS, fetcher))
    await asyncio.sleep(0)

    await cache.close()

    with pytest.raises(asyncio.CancelledError):
        await pending
    assert not cache.state(BOOKINGS).has_value


def test_make_key_is_stable():
    assert make_key("bookings", {"status": "PENDING", "page": 1}) == make_key(
        "bookings", {"page": 1, "status": "PENDING"}
    )
    assert make_key("bookings", {"status": None, "email": ""}) == make_key("bookings")
    assert make_key("venue-bookings", "v1").params == "v1"
