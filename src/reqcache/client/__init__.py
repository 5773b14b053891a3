"""Transports and request types for reqcache.

Provides the transport contracts the caching decorators wrap, the
:class:`HttpRequest` value they key on, response transformers, and two
httpx-backed implementations.

Classes:
    :class:`HttpxTransport` -- blocking transport backed by :class:`httpx.Client`.
    :class:`HttpxAsyncTransport` -- future-returning transport backed by
    :class:`httpx.AsyncClient` on a private event-loop thread.
"""

from reqcache.client.async_client import HttpxAsyncTransport
from reqcache.client.contracts import AsyncTransport, Transformer, Transport
from reqcache.client.request import HttpRequest
from reqcache.client.sync_client import HttpxTransport
from reqcache.client.transformers import as_bytes, as_json, as_text, raise_for_status, raw

__all__ = [
    "AsyncTransport",
    "HttpRequest",
    "HttpxAsyncTransport",
    "HttpxTransport",
    "Transformer",
    "Transport",
    "as_bytes",
    "as_json",
    "as_text",
    "raise_for_status",
    "raw",
]
