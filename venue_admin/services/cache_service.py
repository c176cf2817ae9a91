"""
Client-side query cache and mutation coordinator.

CACHING STRATEGY
================

What we cache:
  - Normalized read results (booking lists, venue pages, single records)
  - Cache key: (resource, serialized params), e.g.
    ("bookings", '{"status": "PENDING"}') or ("venue-bookings", "v1")

Reads:
  - A fresh entry is returned without a remote call
  - Otherwise one fetch runs per key; concurrent readers of the same key
    attach to the in-flight fetch instead of issuing their own
  - Transient failures (network, 5xx) are retried a bounded number of times
    with a fixed delay; other failures are not
  - A failed fetch records the error but keeps the last good value, so a
    caller can keep showing it next to the error

Writes:
  - Mutations run once, never retried (creating a booking is not idempotent)
  - On success every affected key is marked stale; on failure nothing changes
  - Invalidation is synchronous, so the very next query after a mutation
    re-fetches. A fetch already in flight when the mutation lands is
    detached: its callers still get its result, but it is never stored.

Invalidation targets are either an exact CacheKey or a resource name, which
matches every key of that resource (all parameterizations of "bookings").

Single event loop, no locks: the in-flight task per key is what serializes
fetches.
"""

import asyncio
import json
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterable, NamedTuple, Optional, TypeVar, Union

from pydantic import BaseModel

from venue_admin.core.errors import TRANSIENT_ERRORS
from venue_admin.core.logging import get_logger
from venue_admin.core.metrics import record_cache_operation, record_mutation, record_remote_fetch
from venue_admin.infrastructure.http_client import prepare_query_params

logger = get_logger(__name__)

T = TypeVar("T")


class CacheKey(NamedTuple):
    resource: str
    params: str = ""

    def __str__(self) -> str:
        return f"{self.resource}:{self.params}" if self.params else self.resource


CacheTarget = Union[str, CacheKey]


def make_key(resource: str, params: Any = None) -> CacheKey:
    """Build a stable key; equal filters always serialize identically."""
    if params is None:
        return CacheKey(resource)
    if isinstance(params, BaseModel):
        params = params.model_dump(by_alias=True, mode="json", exclude_none=True)
    if isinstance(params, dict):
        prepared = prepare_query_params(params)
        if not prepared:
            return CacheKey(resource)
        return CacheKey(resource, json.dumps(prepared, sort_keys=True, default=str))
    return CacheKey(resource, str(params))


@dataclass
class CacheEntry:
    value: Any = None
    has_value: bool = False
    stale: bool = True
    error: Optional[Exception] = None
    fetched_at: Optional[float] = None
    generation: int = 0
    task: Optional[asyncio.Task] = None


@dataclass(frozen=True)
class QueryState:
    """Read-only view of one key for rendering (data, loading, error)."""

    value: Any
    has_value: bool
    is_stale: bool
    is_loading: bool
    error: Optional[Exception]


def _retrieve_exception(task: asyncio.Task) -> None:
    # A detached or abandoned fetch may fail with nobody awaiting it
    if not task.cancelled():
        task.exception()


class QueryCache:
    """Explicit per-session cache; create one per session and close it on shutdown."""

    def __init__(
        self,
        ttl: Optional[float] = None,
        retry_attempts: int = 1,
        retry_delay: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl = ttl
        self.retry_attempts = retry_attempts
        self.retry_delay = retry_delay
        self._clock = clock
        self._entries: dict[CacheKey, CacheEntry] = {}
        self._detached: set[asyncio.Task] = set()

    def _entry(self, key: CacheKey) -> CacheEntry:
        entry = self._entries.get(key)
        if entry is None:
            entry = self._entries[key] = CacheEntry()
        return entry

    def _is_fresh(self, entry: CacheEntry) -> bool:
        if not entry.has_value or entry.stale:
            return False
        if self.ttl is None:
            return True
        return self._clock() - entry.fetched_at < self.ttl

    async def query(self, key: CacheKey, fetcher: Callable[[], Awaitable[T]]) -> T:
        entry = self._entry(key)

        if self._is_fresh(entry):
            record_cache_operation("hit")
            logger.debug("cache_hit", key=str(key))
            return entry.value

        if entry.task is None:
            record_cache_operation("miss")
            logger.debug("cache_miss", key=str(key))
            entry.task = asyncio.create_task(self._fetch(key, entry, fetcher, entry.generation))
            entry.task.add_done_callback(_retrieve_exception)
        else:
            record_cache_operation("dedup")
            logger.debug("query_attached", key=str(key))

        # Shielded: a caller that goes away does not cancel the shared fetch
        return await asyncio.shield(entry.task)

    async def _fetch(
        self,
        key: CacheKey,
        entry: CacheEntry,
        fetcher: Callable[[], Awaitable[T]],
        generation: int,
    ) -> T:
        try:
            value = await self._fetch_with_retry(key, fetcher)
        except Exception as e:
            record_remote_fetch("error")
            if entry.generation == generation:
                entry.error = e
            logger.warning(
                "query_failed",
                key=str(key),
                error=str(e),
                kept_previous=entry.has_value,
            )
            raise
        finally:
            if entry.task is asyncio.current_task():
                entry.task = None

        record_remote_fetch("success")
        if entry.generation != generation:
            # Invalidated while in flight; a newer fetch owns the entry now
            logger.debug("query_detached", key=str(key))
            return value

        entry.value = value
        entry.has_value = True
        entry.error = None
        entry.fetched_at = self._clock()
        entry.stale = False
        return value

    async def _fetch_with_retry(self, key: CacheKey, fetcher: Callable[[], Awaitable[T]]) -> T:
        for attempt in range(1, self.retry_attempts + 2):
            try:
                return await fetcher()
            except TRANSIENT_ERRORS as e:
                if attempt > self.retry_attempts:
                    raise
                record_remote_fetch("retry")
                logger.info(
                    "query_retry",
                    key=str(key),
                    attempt=attempt,
                    delay=self.retry_delay,
                    error=str(e),
                )
                await asyncio.sleep(self.retry_delay)
        # Should not reach here, but just in case
        raise RuntimeError("query retry loop exited unexpectedly")

    async def mutate(
        self,
        operation: Callable[[], Awaitable[T]],
        affected: Iterable[CacheTarget],
        name: str = "mutation",
    ) -> T:
        """
        Run a remote write once. Invalidates ``affected`` only if it succeeds;
        errors reach the caller untouched.
        """
        affected = list(affected)
        try:
            result = await operation()
        except Exception as e:
            record_mutation(name, success=False)
            logger.warning("mutation_failed", operation=name, error=str(e))
            raise

        record_mutation(name, success=True)
        self.invalidate(*affected)
        logger.info("mutation_applied", operation=name)
        return result

    @staticmethod
    def _matches(key: CacheKey, target: CacheTarget) -> bool:
        if isinstance(target, CacheKey):
            return key == target
        return key.resource == target

    def invalidate(self, *targets: CacheTarget) -> int:
        """Mark every key matching ``targets`` stale. Returns how many were hit."""
        invalidated = 0
        for key, entry in self._entries.items():
            if any(self._matches(key, target) for target in targets):
                entry.stale = True
                entry.generation += 1
                if entry.task is not None and not entry.task.done():
                    self._detached.add(entry.task)
                    entry.task.add_done_callback(self._detached.discard)
                entry.task = None
                invalidated += 1

        logger.info(
            "cache_invalidated",
            targets=[str(target) for target in targets],
            keys_invalidated=invalidated,
        )
        return invalidated

    def state(self, key: CacheKey) -> QueryState:
        entry = self._entries.get(key) or CacheEntry()
        return QueryState(
            value=entry.value,
            has_value=entry.has_value,
            is_stale=not self._is_fresh(entry),
            is_loading=entry.task is not None,
            error=entry.error,
        )

    async def close(self) -> None:
        """Cancel in-flight fetches and drop every entry."""
        tasks = [entry.task for entry in self._entries.values() if entry.task is not None]
        tasks.extend(self._detached)
        self._detached.clear()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._entries.clear()
        logger.info("cache_closed", cancelled_fetches=len(tasks))
