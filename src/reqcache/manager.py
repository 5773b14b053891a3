"""Composition root tying the cache, key generator and decorators together.

Typical usage::

    manager = CacheManager(depth=500, ttl=30_000)
    transport = manager.wrap(HttpxTransport(RequestConfig(base_url=url)))
    users = transport.request(HttpRequest("GET", "/users"), as_json)
"""

from __future__ import annotations

import logging
from typing import Optional

from reqcache.cache.base import Cache
from reqcache.cache.bounded import BoundedCache
from reqcache.cache.key import KeyGenerator, default_key_generator
from reqcache.client.contracts import AsyncTransport, Transport
from reqcache.config import load_cache_config
from reqcache.decorators import CachingAsyncTransport, CachingTransport
from reqcache.models import CacheConfig

logger = logging.getLogger(__name__)


class CacheManager:
    """Owns one cache and hands out caching decorators around transports.

    The sync and async decorators share the same cache; their keys never
    collide for the same request because the async flag is part of the
    key.

    Args:
        depth: Capacity of the default :class:`BoundedCache`.
        ttl: Entry time-to-live in milliseconds (0 disables expiry).
        key_generator: Key derivation function.  ``None`` selects
            :func:`~reqcache.cache.key.default_key_generator`.
        cache: Custom cache implementation.  When given, *depth*, *ttl*
            and *cache_errors* are ignored.
        cache_errors: Forwarded to the default :class:`BoundedCache`.
    """

    def __init__(
        self,
        depth: int = 100,
        ttl: int = 0,
        key_generator: Optional[KeyGenerator] = None,
        *,
        cache: Optional[Cache] = None,
        cache_errors: bool = True,
    ) -> None:
        if cache is None:
            cache = BoundedCache(depth, ttl, cache_errors=cache_errors)
        self._cache = cache
        self._key_generator = key_generator if key_generator is not None else default_key_generator
        self._wrapper = CachingTransport(self._cache, self._key_generator)
        self._async_wrapper = CachingAsyncTransport(self._cache, self._key_generator)

    @classmethod
    def from_config(
        cls,
        config: Optional[CacheConfig] = None,
        key_generator: Optional[KeyGenerator] = None,
    ) -> CacheManager:
        """Build a manager from *config*, resolving it from the environment when omitted."""
        config = config or load_cache_config()
        return cls(
            config.depth,
            config.ttl_millis,
            key_generator,
            cache_errors=config.cache_errors,
        )

    @property
    def cache(self) -> Cache:
        return self._cache

    @property
    def key_generator(self) -> KeyGenerator:
        return self._key_generator

    def wrap(self, client: Transport) -> CachingTransport:
        """Make *client* the delegate of the sync decorator and return the decorator."""
        logger.debug("Wrapping transport %s", type(client).__name__)
        self._wrapper.delegate = client
        return self._wrapper

    def wrap_async(self, client: AsyncTransport) -> CachingAsyncTransport:
        """Make *client* the delegate of the async decorator and return the decorator."""
        logger.debug("Wrapping async transport %s", type(client).__name__)
        self._async_wrapper.delegate = client
        return self._async_wrapper
