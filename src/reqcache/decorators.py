"""Caching decorators for sync and async transports.

:class:`CachingTransport` and :class:`CachingAsyncTransport` implement the
same contracts as the transports they wrap, so a cached transport can be
used anywhere a plain one is expected.  Every ``request`` call is routed
through a :class:`~reqcache.cache.base.Cache` under a key derived from the
request; every other call goes straight to the wrapped transport.

The delegate is set by :meth:`~reqcache.manager.CacheManager.wrap` /
:meth:`~reqcache.manager.CacheManager.wrap_async`.  Replacing it affects
every request issued afterwards, including those whose key is already
cached, so wrapping belongs in setup code that runs before the transport
is shared between threads.
"""

from __future__ import annotations

from concurrent.futures import Future
from typing import Any, Optional, TypeVar

from reqcache.cache.base import Cache
from reqcache.cache.key import KeyGenerator
from reqcache.client.contracts import AsyncTransport, Transformer, Transport
from reqcache.client.request import HttpRequest
from reqcache.exceptions import ConfigError

T = TypeVar("T")


class CachingTransport(Transport):
    """Blocking transport that answers repeated requests from a cache.

    Args:
        cache: Storage shared with the owning manager.
        key_generator: Maps ``(request, False, response_type)`` to a key.
    """

    def __init__(self, cache: Cache, key_generator: KeyGenerator) -> None:
        self._cache = cache
        self._key_generator = key_generator
        self.delegate: Optional[Transport] = None

    def _require_delegate(self) -> Transport:
        if self.delegate is None:
            raise ConfigError("No transport wrapped; call CacheManager.wrap() first")
        return self.delegate

    def request(
        self,
        request: HttpRequest,
        transformer: Transformer[T],
        response_type: type = object,
    ) -> T:
        delegate = self._require_delegate()
        key = self._key_generator(request, False, response_type)
        return self._cache.get(key, lambda: delegate.request(request, transformer, response_type))

    def get_client(self) -> Any:
        return self._require_delegate().get_client()

    def close(self) -> list[Exception]:
        return self._require_delegate().close()

    def register_shutdown_hook(self) -> None:
        self._require_delegate().register_shutdown_hook()


class CachingAsyncTransport(AsyncTransport):
    """Future-returning transport whose futures are shared through a cache.

    All callers that derive the same key receive the same future instance
    until the entry is evicted, whether that future is pending, resolved
    or failed.
    """

    def __init__(self, cache: Cache, key_generator: KeyGenerator) -> None:
        self._cache = cache
        self._key_generator = key_generator
        self.delegate: Optional[AsyncTransport] = None

    def _require_delegate(self) -> AsyncTransport:
        if self.delegate is None:
            raise ConfigError("No async transport wrapped; call CacheManager.wrap_async() first")
        return self.delegate

    def request(
        self,
        request: HttpRequest,
        transformer: Transformer[T],
        callback: Optional[Future[T]] = None,
        response_type: type = object,
    ) -> Future[T]:
        delegate = self._require_delegate()
        key = self._key_generator(request, True, response_type)
        return self._cache.get_async(
            key, lambda: delegate.request(request, transformer, callback, response_type),
        )

    def get_client(self) -> Any:
        return self._require_delegate().get_client()

    def is_running(self) -> bool:
        return self._require_delegate().is_running()

    def close(self) -> list[Exception]:
        return self._require_delegate().close()

    def register_shutdown_hook(self) -> None:
        self._require_delegate().register_shutdown_hook()
