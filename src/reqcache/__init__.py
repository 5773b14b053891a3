"""reqcache -- transparent request-deduplicating cache for HTTP transports.

Wrap a transport with :class:`CacheManager` and identical requests,
whether issued concurrently or repeatedly, reach the network at most once
while their cache entry lives::

    from reqcache import CacheManager, HttpRequest
    from reqcache.client import HttpxTransport, as_json

    transport = CacheManager(depth=100, ttl=60_000).wrap(HttpxTransport())
    transport.request(HttpRequest("GET", "https://api.example.com/users"), as_json)

Modules:
    cache: Cache contract, bounded TTL store, keys and key generation.
    client: Transport contracts, request model, httpx transports.
    decorators: Caching wrappers around sync and async transports.
    manager: :class:`CacheManager` composition root.
    config: Settings resolution from overrides, env vars and JSON file.
    exceptions: Exception hierarchy.
    log: Optional Rich logging setup.
"""

from reqcache.cache import BoundedCache, Cache, Key, KeyGenerator, default_key_generator
from reqcache.client.request import HttpRequest
from reqcache.decorators import CachingAsyncTransport, CachingTransport
from reqcache.manager import CacheManager

__version__ = "0.1.0"

__all__ = [
    "BoundedCache",
    "Cache",
    "CacheManager",
    "CachingAsyncTransport",
    "CachingTransport",
    "HttpRequest",
    "Key",
    "KeyGenerator",
    "default_key_generator",
]
