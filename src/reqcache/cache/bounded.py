"""Capacity-bounded, TTL-pruning in-memory cache.

:class:`BoundedCache` is the default :class:`~reqcache.cache.base.Cache`.
Entries live in an insertion-ordered dict guarded by one coarse lock.  The
lock is held across the whole lookup-or-populate step, fetch included, so
a second caller for a key that is being fetched waits and then reuses the
first caller's result.  The price is that a slow fetch for one key stalls
lookups for every other key.

Eviction is FIFO by insertion: once the store grows past ``max_size`` the
oldest-inserted entry goes, no matter how often it has been read.  With a
positive ``ttl`` every access first sweeps out entries whose key time is
more than ``ttl`` milliseconds old.
"""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict, deque
from concurrent.futures import Future
from datetime import datetime, timedelta, timezone
from functools import partial
from typing import Any, Callable, Optional, TypeVar

from reqcache.cache.base import Cache
from reqcache.cache.key import Key
from reqcache.exceptions import ConfigError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BoundedCache(Cache):
    """In-memory cache bounded by entry count and entry age.

    Args:
        max_size: Maximum number of entries.  ``0`` evicts every entry
            right after it is stored.
        ttl: Maximum entry age in milliseconds, measured from the key's
            ``time``.  ``0`` disables expiry.
        cache_errors: When ``False``, a stored future is discarded as soon
            as it completes with an exception or is cancelled.  Finished
            values on the sync path are unaffected: a raising fetch never
            stores anything.
        clock: Zero-argument callable returning the current aware
            ``datetime``.  Defaults to UTC now.

    Example::

        cache = BoundedCache(max_size=2, ttl=60_000)
        value = cache.get(key, lambda: transport.request(req, as_json))
    """

    def __init__(
        self,
        max_size: int = 100,
        ttl: int = 0,
        cache_errors: bool = True,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        if max_size < 0:
            raise ConfigError(f"max_size must be >= 0, got {max_size}")
        if ttl < 0:
            raise ConfigError(f"ttl must be >= 0, got {ttl}")
        self._max_size = max_size
        self._ttl = ttl
        self._cache_errors = cache_errors
        self._clock = clock or _utcnow
        self._store: OrderedDict[Key, Any] = OrderedDict()
        self._lock = threading.RLock()
        # failed futures whose removal found the lock busy; drained under it
        self._failed: deque[tuple[Key, Future[Any]]] = deque()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    @property
    def max_size(self) -> int:
        return self._max_size

    @property
    def ttl(self) -> int:
        return self._ttl

    # ------------------------------------------------------------------ #
    # Cache contract
    # ------------------------------------------------------------------ #

    def get(self, key: Key, fetch: Callable[[], T]) -> T:
        with self._lock:
            self._drain_failed()
            self.clear_old()
            return self._compute_if_absent(key, fetch)

    def get_async(self, key: Key, fetch: Callable[[], Future[Any]]) -> Future[Any]:
        with self._lock:
            self._drain_failed()
            self.clear_old()
            return self._compute_if_absent(key, fetch, track_failure=not self._cache_errors)

    # ------------------------------------------------------------------ #
    # Management
    # ------------------------------------------------------------------ #

    def clear_old(self) -> int:
        """Drop every entry older than ``ttl``.  Returns the number removed."""
        if self._ttl <= 0:
            return 0
        max_age = timedelta(milliseconds=self._ttl)
        with self._lock:
            now = self._clock()
            expired = [k for k in self._store if now - k.time > max_age]
            for k in expired:
                del self._store[k]
        if expired:
            logger.debug("Expired %d cache entries older than %d ms", len(expired), self._ttl)
        return len(expired)

    def invalidate(self, key: Key) -> bool:
        """Remove the entry for *key*.  Returns whether one was present."""
        with self._lock:
            return self._store.pop(key, None) is not None

    def clear(self) -> None:
        """Remove all entries."""
        with self._lock:
            self._store.clear()

    def stats(self) -> dict[str, int]:
        """Return size, configuration and hit/miss/eviction counters."""
        with self._lock:
            self._drain_failed()
            return {
                "size": len(self._store),
                "max_size": self._max_size,
                "ttl_millis": self._ttl,
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
            }

    def __len__(self) -> int:
        with self._lock:
            self._drain_failed()
            return len(self._store)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            self._drain_failed()
            return key in self._store

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _compute_if_absent(self, key: Key, fetch: Callable[[], Any], track_failure: bool = False) -> Any:
        # Caller holds self._lock.
        if key in self._store:
            self._hits += 1
            return self._store[key]

        self._misses += 1
        logger.debug("Cache miss for %r", key)
        value = fetch()
        if value is None:
            return value

        self._store[key] = value
        if track_failure and isinstance(value, Future):
            value.add_done_callback(partial(self._discard_failed, key))
        self._evict_overflow()
        return value

    def _evict_overflow(self) -> None:
        while len(self._store) > self._max_size:
            evicted, _ = self._store.popitem(last=False)
            self._evictions += 1
            logger.debug("Evicted %r (capacity %d)", evicted, self._max_size)

    def _discard_failed(self, key: Key, future: Future[Any]) -> None:
        # Runs on whichever thread completes the future, often a transport's
        # event loop.  Never wait for the lock here: a fetch holding it may be
        # waiting on that same loop.
        if not future.cancelled() and future.exception() is None:
            return
        if not self._lock.acquire(blocking=False):
            self._failed.append((key, future))
            return
        try:
            self._remove_if_same(key, future)
        finally:
            self._lock.release()

    def _drain_failed(self) -> None:
        # Caller holds self._lock.
        while self._failed:
            key, future = self._failed.popleft()
            self._remove_if_same(key, future)

    def _remove_if_same(self, key: Key, future: Future[Any]) -> None:
        if self._store.get(key) is future:
            del self._store[key]
            logger.debug("Discarded failed future for %r", key)
