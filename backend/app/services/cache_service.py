"""
Request cache with in-flight deduplication.

Every upstream call goes through a single RequestCache instance:
- completed results are memoized for a TTL (or permanently, for data that can
  no longer change such as a finished day's box scores)
- concurrent callers asking for the same key share one producer run
- failures are never cached and reach every caller waiting on the key
"""

import asyncio
import logging
import time
from dataclasses import dataclass, asdict
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

from app.config import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


def make_cache_key(namespace: str, **params: Any) -> str:
    """
    Build the fingerprint key for a request.

    >>> make_cache_key("roster", team=3, day=101)
    'roster|day=101|team=3'
    """
    parts = [namespace]
    for name in sorted(params):
        value = params[name]
        if isinstance(value, (list, tuple)):
            value = ",".join(str(v) for v in value)
        parts.append(f"{name}={value}")
    return "|".join(parts)


def _retrieve_exception(task: asyncio.Future) -> None:
    # Every caller may have gone away; the failure was already logged by _run
    if not task.cancelled():
        task.exception()


@dataclass
class CacheStats:
    total_requests: int = 0
    hits: int = 0
    misses: int = 0
    deduplicated: int = 0
    errors: int = 0
    active: int = 0
    pending: int = 0
    entries: int = 0

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


class CacheEntry:
    """Represents a single cached value with metadata."""

    __slots__ = ["value", "stored_at", "ttl"]

    def __init__(self, value: Any, stored_at: float, ttl: Optional[float]):
        self.value = value
        self.stored_at = stored_at
        self.ttl = ttl  # None means the entry never expires

    def is_fresh(self, now: float) -> bool:
        return self.ttl is None or now - self.stored_at < self.ttl


class RequestCache:
    """
    Process-wide memoization and request coalescing.

    One instance is created by the service container and injected into every
    consumer; clear() forces full recomputation.
    """

    def __init__(
        self,
        ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._ttl = ttl_seconds if ttl_seconds is not None else settings.cache_ttl_seconds
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._pending: Dict[str, asyncio.Future] = {}
        self._generation = 0
        self._stats = CacheStats()

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def stats(self) -> CacheStats:
        """Snapshot of the counters."""
        snapshot = CacheStats(**self._stats.to_dict())
        snapshot.pending = len(self._pending)
        snapshot.entries = len(self._entries)
        return snapshot

    async def fetch_or_compute(
        self,
        key: str,
        producer: Callable[[], Awaitable[T]],
        permanent: bool = False,
        store_if: Optional[Callable[[T], bool]] = None,
    ) -> T:
        """
        Return the cached value for key, joining or starting the producer as needed.

        The producer runs in its own task, so a caller that is cancelled stops
        waiting without aborting the run other callers share.

        Args:
            key: Fingerprint of the request (see make_cache_key)
            producer: Zero-argument coroutine function computing the value
            permanent: Store the result without expiry
            store_if: Optional predicate; a result it rejects is returned to
                every waiter but not memoized

        Raises:
            Whatever the producer raises; the failure is not cached.
        """
        self._stats.total_requests += 1

        entry = self._entries.get(key)
        if entry is not None:
            if entry.is_fresh(self._clock()):
                self._stats.hits += 1
                return entry.value
            del self._entries[key]

        pending = self._pending.get(key)
        if pending is not None:
            self._stats.deduplicated += 1
            logger.debug(f"Joining in-flight request: {key}")
            return await asyncio.shield(pending)

        self._stats.misses += 1
        task = asyncio.ensure_future(
            self._run(key, producer, self._generation, permanent, store_if)
        )
        task.add_done_callback(_retrieve_exception)
        self._pending[key] = task
        return await asyncio.shield(task)

    async def _run(
        self,
        key: str,
        producer: Callable[[], Awaitable[T]],
        generation: int,
        permanent: bool,
        store_if: Optional[Callable[[T], bool]],
    ) -> T:
        task = asyncio.current_task()
        self._stats.active += 1
        try:
            value = await producer()
        except Exception as exc:
            self._stats.errors += 1
            logger.warning(f"Request failed: {key} ({type(exc).__name__}: {exc})")
            raise
        else:
            if generation != self._generation:
                logger.debug(f"Discarding result for {key}: cache cleared while in flight")
            elif store_if is not None and not store_if(value):
                logger.debug(f"Not caching incomplete result for {key}")
            else:
                ttl = None if permanent else self._ttl
                self._entries[key] = CacheEntry(value, self._clock(), ttl)
            return value
        finally:
            self._stats.active -= 1
            if self._pending.get(key) is task:
                del self._pending[key]

    def invalidate(self, key: str) -> None:
        """Drop a single cached entry."""
        self._entries.pop(key, None)

    def clear(self) -> None:
        """Drop every cached entry and forget in-flight requests."""
        self._entries.clear()
        self._pending.clear()
        self._generation += 1
        logger.info("Request cache cleared")
