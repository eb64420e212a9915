"""
Request cache for idempotent backend reads.

Provides, per cache key:
- TTL-based entries that are purged lazily on lookup, never swept
- In-flight deduplication so concurrent reads share one network request
- Supersession: a forced refresh cancels the pending request it replaces
- Prefix invalidation, called by the resource clients after writes
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from functools import partial
from typing import Any, TypeVar
from urllib.parse import urlencode

from aurelane.core.config import Settings, get_settings
from aurelane.core.metrics import record_cache_event
from aurelane.services.api_errors import RequestCancelledError

logger = logging.getLogger(__name__)
T = TypeVar("T")


# =============================================================================
# TTL Configuration
# =============================================================================


class ResourceKind(str, Enum):
    """Volatility classes used to pick a default TTL."""

    DEFAULT = "default"
    LIST = "list"
    DETAIL = "detail"
    TAXONOMY = "taxonomy"


class TTLConfig:
    """Centralized TTL configuration with validation."""

    def __init__(self, settings: Settings | None = None) -> None:
        settings = settings or get_settings()

        self.default_ttl = settings.default_cache_ttl_seconds
        self.list_ttl = settings.gem_list_cache_ttl_seconds
        self.detail_ttl = settings.gem_detail_cache_ttl_seconds
        self.taxonomy_ttl = settings.gem_taxonomy_cache_ttl_seconds

        self._validate_ttls()

    def _validate_ttls(self) -> None:
        """Validate that all TTL values are non-negative."""
        for attr_name, value in self.__dict__.items():
            if "ttl" in attr_name and isinstance(value, (int, float)) and value < 0:
                raise ValueError(f"TTL value for {attr_name} cannot be negative: {value}")

    def ttl_for(self, kind: ResourceKind) -> float:
        return {
            ResourceKind.DEFAULT: self.default_ttl,
            ResourceKind.LIST: self.list_ttl,
            ResourceKind.DETAIL: self.detail_ttl,
            ResourceKind.TAXONOMY: self.taxonomy_ttl,
        }[kind]

    def get_effective_ttl(
        self, ttl_seconds: float | None, kind: ResourceKind = ResourceKind.DEFAULT
    ) -> float:
        """Get the effective TTL, using the resource default if none provided."""
        if ttl_seconds is not None:
            return max(0.0, ttl_seconds)
        return self.ttl_for(kind)


# =============================================================================
# Keys and entries
# =============================================================================


def build_cache_key(method: str, path: str, params: Mapping[str, Any] | None = None) -> str:
    """Build a deterministic cache key from method, path and query params.

    Params are sorted so that filter order never splits the cache, and names
    and values are percent-encoded so a value containing ``&`` or ``=`` cannot
    impersonate another query. The ``?`` separator is always present, which
    makes ``"GET:/gems/123?"`` address a single resource while ``"GET:/gems"``
    covers everything below ``/gems``.
    """
    query = urlencode(sorted((params or {}).items()))
    return f"{method.upper()}:{path}?{query}"


def resource_key_prefix(path: str) -> str:
    """Invalidation prefix that matches exactly one resource path."""
    return f"GET:{path}?"


@dataclass
class CacheEntry:
    """A cached response payload."""

    key: str
    payload: Any
    stored_at: float
    ttl: float

    def is_fresh(self, now: float) -> bool:
        return now - self.stored_at < self.ttl


# =============================================================================
# Request Cache
# =============================================================================


class RequestCache:
    """
    Keyed response cache with in-flight request coalescing.

    Each pending request is an ``asyncio.Task``: the task is both the shared
    result every concurrent caller awaits and the cancellation handle used
    when a newer request for the same key supersedes it. Callers await through
    ``asyncio.shield`` so one caller giving up never cancels the request for
    the others.
    """

    def __init__(
        self,
        *,
        name: str = "api",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._name = name
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._in_flight: dict[str, asyncio.Task[Any]] = {}

    @property
    def entry_count(self) -> int:
        return len(self._entries)

    @property
    def in_flight_count(self) -> int:
        return len(self._in_flight)

    def peek(self, key: str) -> Any | None:
        """Return a fresh cached payload without touching the network."""
        entry = self._lookup(key)
        return None if entry is None else entry.payload

    async def get_or_fetch(
        self,
        key: str,
        fetch: Callable[[], Awaitable[T]],
        *,
        ttl: float,
        force_refresh: bool = False,
    ) -> T:
        """Return the cached payload for ``key`` or run ``fetch`` exactly once."""
        if force_refresh:
            record_cache_event(self._name, "refresh")
        else:
            entry = self._lookup(key)
            if entry is not None:
                record_cache_event(self._name, "hit")
                return entry.payload

            pending = self._in_flight.get(key)
            if pending is not None:
                record_cache_event(self._name, "coalesced")
                return await self._wait(key, pending)

            record_cache_event(self._name, "miss")

        task = self._start(key, fetch, ttl)
        return await self._wait(key, task)

    def invalidate(self, prefixes: str | Iterable[str]) -> int:
        """Remove every entry whose key starts with one of ``prefixes``."""
        prefix_tuple = (prefixes,) if isinstance(prefixes, str) else tuple(prefixes)
        if not prefix_tuple:
            return 0

        doomed = [key for key in self._entries if key.startswith(prefix_tuple)]
        for key in doomed:
            del self._entries[key]
            record_cache_event(self._name, "invalidated")

        if doomed:
            logger.debug("Invalidated %d cache entries for %s", len(doomed), prefix_tuple)
        return len(doomed)

    def clear(self) -> None:
        """Drop all cached entries; pending requests are left running."""
        self._entries.clear()

    def cancel_pending(self) -> int:
        """Cancel every in-flight request, e.g. when the client shuts down."""
        pending = [task for task in self._in_flight.values() if not task.done()]
        for task in pending:
            task.cancel()
        return len(pending)

    def _lookup(self, key: str) -> CacheEntry | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if not entry.is_fresh(self._clock()):
            del self._entries[key]
            record_cache_event(self._name, "expired")
            return None
        return entry

    def _start(
        self, key: str, fetch: Callable[[], Awaitable[Any]], ttl: float
    ) -> asyncio.Task[Any]:
        previous = self._in_flight.get(key)
        if previous is not None and not previous.done():
            previous.cancel()
            record_cache_event(self._name, "superseded")
            logger.info("Superseded in-flight request for %s", key)

        task = asyncio.ensure_future(self._run(key, fetch, ttl))
        self._in_flight[key] = task
        task.add_done_callback(partial(self._release, key))
        return task

    async def _run(self, key: str, fetch: Callable[[], Awaitable[Any]], ttl: float) -> Any:
        payload = await fetch()
        # A cancelled task never reaches this point, so superseded requests
        # cannot overwrite the entry of the request that replaced them.
        if ttl > 0:
            self._entries[key] = CacheEntry(key, payload, self._clock(), ttl)
            record_cache_event(self._name, "store")
        return payload

    def _release(self, key: str, task: asyncio.Task[Any]) -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]

        if task.cancelled():
            record_cache_event(self._name, "cancelled")
        elif task.exception() is not None:
            # Errors reach every awaiting caller; they are never cached.
            record_cache_event(self._name, "error")

    async def _wait(self, key: str, task: asyncio.Task[T]) -> T:
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            if task.cancelled():
                raise RequestCancelledError(key) from None
            raise


__all__ = [
    "CacheEntry",
    "RequestCache",
    "ResourceKind",
    "TTLConfig",
    "build_cache_key",
    "resource_key_prefix",
]
