"""In-memory request caching for reqcache.

This package provides the :class:`Cache` contract, its default
implementation :class:`BoundedCache` (FIFO capacity eviction plus TTL
pruning), and the :class:`Key` / :data:`KeyGenerator` pair that maps a
request onto a cache slot.
"""

from reqcache.cache.base import Cache
from reqcache.cache.bounded import BoundedCache
from reqcache.cache.key import Key, KeyGenerator, default_key_generator

__all__ = ["Cache", "BoundedCache", "Key", "KeyGenerator", "default_key_generator"]
