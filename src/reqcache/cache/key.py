"""Cache keys and the pluggable key generator.

A :class:`Key` compares and hashes by its integer ``hash`` alone.  Two
different requests that produce the same composite hash therefore share a
cache slot; callers that need stricter separation supply their own
:data:`KeyGenerator` to :class:`~reqcache.manager.CacheManager`.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Callable

from reqcache.exceptions import ConfigError

if TYPE_CHECKING:
    from reqcache.client.request import HttpRequest


class Key:
    """Identifier of a cache slot.

    Args:
        value: Slot identity.  Equality and hashing use this value only.
        time: Timezone-aware creation instant of the originating request,
            used for TTL expiry.

    Raises:
        ConfigError: If *time* is naive.
    """

    __slots__ = ("_hash", "_time")

    def __init__(self, value: int, time: datetime) -> None:
        if time.tzinfo is None or time.utcoffset() is None:
            raise ConfigError(f"Key time must be timezone-aware, got {time!r}")
        self._hash = value
        self._time = time

    @property
    def hash(self) -> int:
        return self._hash

    @property
    def time(self) -> datetime:
        return self._time

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if not isinstance(other, Key):
            return NotImplemented
        return self._hash == other._hash

    def __hash__(self) -> int:
        return self._hash

    def __repr__(self) -> str:
        return f"Key(hash={self._hash}, time={self._time.isoformat()})"


KeyGenerator = Callable[["HttpRequest", bool, type], Key]
"""``(request, is_async, response_type) -> Key``."""


def default_key_generator(request: HttpRequest, is_async: bool, response_type: type) -> Key:
    """Combine the request's identity hash, the async flag and the response type."""
    return Key(hash((request.identity_hash(), bool(is_async), response_type)), request.created_at)
