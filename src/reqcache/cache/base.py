"""Abstract cache contract used by the caching decorators."""

from __future__ import annotations

from abc import ABC, abstractmethod
from concurrent.futures import Future
from typing import Any, Callable, TypeVar

from reqcache.cache.key import Key

T = TypeVar("T")


class Cache(ABC):
    """Storage behind :class:`~reqcache.decorators.CachingTransport` and
    :class:`~reqcache.decorators.CachingAsyncTransport`.

    Implementations guarantee that *fetch* runs at most once per key while
    a valid entry for that key exists, including while the first fetch is
    still executing.  Exceptions raised by *fetch* propagate to the caller
    unchanged.
    """

    @abstractmethod
    def get(self, key: Key, fetch: Callable[[], T]) -> T:
        """Return the value cached under *key*, calling *fetch* to populate it on a miss."""

    @abstractmethod
    def get_async(self, key: Key, fetch: Callable[[], Future[Any]]) -> Future[Any]:
        """Return the future cached under *key*, calling *fetch* to obtain it on a miss.

        The future itself is stored, not its result, so concurrent callers
        receive the same instance even while it is still pending.
        """
