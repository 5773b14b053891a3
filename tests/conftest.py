"""Shared test fixtures for reqcache.

Provides a controllable clock, request builders, fake transports that
count their invocations, and environment isolation for configuration
tests.  These fixtures are automatically discovered by pytest and
available to all test modules without explicit imports.
"""

from __future__ import annotations

from concurrent.futures import Future
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

import httpx
import pytest

from reqcache.client.contracts import AsyncTransport, Transport
from reqcache.client.request import HttpRequest


# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------


class FakeClock:
    """Manually advanced clock returning aware UTC datetimes."""

    def __init__(self, start: Optional[datetime] = None) -> None:
        self.now = start or datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, millis: int) -> None:
        self.now += timedelta(milliseconds=millis)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


@pytest.fixture
def make_request() -> Callable[..., HttpRequest]:
    """Factory for :class:`HttpRequest` objects with sensible defaults."""

    def _make(url: str = "https://api.example.com/users", method: str = "GET", **kwargs: Any) -> HttpRequest:
        return HttpRequest(method, url, **kwargs)

    return _make


# ---------------------------------------------------------------------------
# Fake transports
# ---------------------------------------------------------------------------


class CountingTransport(Transport):
    """Transport that records every call and returns ``transformer(response)``."""

    def __init__(self, status_code: int = 200) -> None:
        self.calls: list[HttpRequest] = []
        self.status_code = status_code
        self.closed = 0
        self.hooks = 0
        self.native = object()

    def request(self, request, transformer, response_type=object):
        self.calls.append(request)
        response = httpx.Response(
            self.status_code,
            json={"url": request.url, "n": len(self.calls)},
            request=httpx.Request(request.method, request.url),
        )
        return transformer(response)

    def get_client(self):
        return self.native

    def close(self):
        self.closed += 1
        return [RuntimeError("close failed")]

    def register_shutdown_hook(self):
        self.hooks += 1


class CountingAsyncTransport(AsyncTransport):
    """Async transport returning pending futures the test completes by hand."""

    def __init__(self) -> None:
        self.calls: list[HttpRequest] = []
        self.futures: list[Future] = []
        self.closed = 0
        self.hooks = 0
        self.running = True
        self.native = object()

    def request(self, request, transformer, callback=None, response_type=object):
        self.calls.append(request)
        future = callback if callback is not None else Future()
        self.futures.append(future)
        return future

    def get_client(self):
        return self.native

    def is_running(self):
        return self.running

    def close(self):
        self.closed += 1
        self.running = False
        return []

    def register_shutdown_hook(self):
        self.hooks += 1


@pytest.fixture
def transport() -> CountingTransport:
    return CountingTransport()


@pytest.fixture
def transport_factory() -> Callable[[], CountingTransport]:
    return CountingTransport


@pytest.fixture
def async_transport() -> CountingAsyncTransport:
    return CountingAsyncTransport()


# ---------------------------------------------------------------------------
# Environment isolation
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Clear every REQCACHE_* variable so tests never see the real environment."""
    for var in [
        "REQCACHE_CONFIG",
        "REQCACHE_DEPTH",
        "REQCACHE_TTL_MS",
        "REQCACHE_CACHE_ERRORS",
        "REQCACHE_BASE_URL",
        "REQCACHE_TIMEOUT",
        "REQCACHE_VERIFY_SSL",
        "REQCACHE_MAX_RETRIES",
    ]:
        monkeypatch.delenv(var, raising=False)
    return monkeypatch
