"""Tests for the future-returning httpx transport."""

from __future__ import annotations

import asyncio
import threading
import time
from concurrent.futures import Future
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from reqcache.client.async_client import HttpxAsyncTransport
from reqcache.client.request import HttpRequest
from reqcache.client.transformers import as_json, raise_for_status, raw
from reqcache.exceptions import ConnectionError_, NotFoundError, TransportClosedError
from reqcache.manager import CacheManager
from reqcache.models import RequestConfig


def _transport(handler, max_retries: int = 0) -> HttpxAsyncTransport:
    config = RequestConfig(base_url="https://api.example.com", max_retries=max_retries)
    client = httpx.AsyncClient(base_url=config.base_url, transport=httpx.MockTransport(handler))
    return HttpxAsyncTransport(config, client=client)


@pytest.fixture
def echo_transport():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/missing":
            return httpx.Response(404, json={"detail": "no such thing"})
        return httpx.Response(200, json={"path": request.url.path})

    transport = _transport(handler)
    yield transport
    transport.close()


class TestRequest:
    def test_returns_future_with_transformed_result(self, echo_transport) -> None:
        future = echo_transport.request(HttpRequest("GET", "/users"), as_json)
        assert isinstance(future, Future)
        assert future.result(timeout=5) == {"path": "/users"}

    def test_completes_supplied_callback(self, echo_transport) -> None:
        callback: Future = Future()
        returned = echo_transport.request(HttpRequest("GET", "/a"), as_json, callback)
        assert returned is callback
        assert callback.result(timeout=5) == {"path": "/a"}

    def test_transformer_error_fails_future(self, echo_transport) -> None:
        future = echo_transport.request(HttpRequest("GET", "/missing"), raise_for_status(as_json))
        with pytest.raises(NotFoundError, match="no such thing"):
            future.result(timeout=5)

    def test_connection_error_fails_future(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        transport = _transport(handler)
        try:
            future = transport.request(HttpRequest("GET", "/x"), raw)
            with pytest.raises(ConnectionError_):
                future.result(timeout=5)
        finally:
            transport.close()

    @patch("reqcache.client.async_client.asyncio.sleep", new_callable=AsyncMock)
    def test_retries_5xx(self, mock_sleep: AsyncMock) -> None:
        statuses = iter([500, 200])

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(next(statuses), json={})

        transport = _transport(handler, max_retries=2)
        try:
            response = transport.request(HttpRequest("GET", "/flaky"), raw).result(timeout=5)
            assert response.status_code == 200
            mock_sleep.assert_awaited_once_with(1)
        finally:
            transport.close()


    @patch("reqcache.client.async_client.asyncio.sleep", new_callable=AsyncMock)
    def test_connection_error_retried_then_succeeds(self, mock_sleep: AsyncMock) -> None:
        attempts = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(1)
            if len(attempts) == 1:
                raise httpx.ConnectError("refused", request=request)
            return httpx.Response(200, json={"ok": True})

        transport = _transport(handler, max_retries=1)
        try:
            future = transport.request(HttpRequest("GET", "/x"), as_json)
            assert future.result(timeout=5) == {"ok": True}
            assert len(attempts) == 2
            mock_sleep.assert_awaited_once_with(1)
        finally:
            transport.close()

    @patch("reqcache.client.async_client.asyncio.sleep", new_callable=AsyncMock)
    def test_returns_last_5xx_after_retries(self, mock_sleep: AsyncMock) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, json={})

        transport = _transport(handler, max_retries=2)
        try:
            response = transport.request(HttpRequest("GET", "/down"), raw).result(timeout=5)
            assert response.status_code == 503
            assert [c.args[0] for c in mock_sleep.await_args_list] == [1, 2]
        finally:
            transport.close()


class TestLifecycle:
    def test_running_until_closed(self, echo_transport) -> None:
        assert echo_transport.is_running() is True
        assert echo_transport.close() == []
        assert echo_transport.is_running() is False
        assert echo_transport.get_client() is None

    def test_close_is_idempotent(self, echo_transport) -> None:
        echo_transport.close()
        assert echo_transport.close() == []

    def test_request_after_close_raises(self, echo_transport) -> None:
        echo_transport.close()
        with pytest.raises(TransportClosedError):
            echo_transport.request(HttpRequest("GET", "/a"), raw)

    def test_native_client_is_async_client(self, echo_transport) -> None:
        assert isinstance(echo_transport.get_client(), httpx.AsyncClient)

    def test_close_fails_inflight_requests(self) -> None:
        entered = threading.Event()

        async def handler(request: httpx.Request) -> httpx.Response:
            entered.set()
            await asyncio.sleep(30)
            return httpx.Response(200, json={})

        transport = _transport(handler)
        callback: Future = Future()
        future = transport.request(HttpRequest("GET", "/slow"), raw, callback)
        assert entered.wait(5)

        started = time.monotonic()
        transport.close()

        assert time.monotonic() - started < 5
        assert future.done()
        with pytest.raises(TransportClosedError, match="in flight"):
            future.result(timeout=0)

    def test_cached_inflight_request_released_on_close(self) -> None:
        entered = threading.Event()

        async def handler(request: httpx.Request) -> httpx.Response:
            entered.set()
            await asyncio.sleep(30)
            return httpx.Response(200, json={})

        transport = _transport(handler)
        manager = CacheManager(cache_errors=False)
        cached = manager.wrap_async(transport)
        first = cached.request(HttpRequest("GET", "/slow"), raw)
        assert entered.wait(5)
        second = cached.request(HttpRequest("GET", "/slow"), raw)
        assert second is first

        cached.close()

        with pytest.raises(TransportClosedError):
            first.result(timeout=5)
        assert len(manager.cache) == 0

    @patch("reqcache.client.async_client.atexit.register")
    def test_shutdown_hook_registered_once(self, mock_register: MagicMock, echo_transport) -> None:
        echo_transport.register_shutdown_hook()
        echo_transport.register_shutdown_hook()
        mock_register.assert_called_once_with(echo_transport.close)
