"""Future-returning httpx transport -- mirrors :class:`~reqcache.client.sync_client.HttpxTransport`.

:class:`HttpxAsyncTransport` runs an asyncio event loop on a private
daemon thread and drives :class:`httpx.AsyncClient` there.  Calls to
:meth:`~HttpxAsyncTransport.request` return a
:class:`concurrent.futures.Future` straight away, from any thread; the
request, the retry loop and the transformer all execute on the loop
thread, which completes the future.

Returning a thread-safe future rather than a coroutine is what lets the
caching layer hand one in-flight request to many callers: a coroutine can
only be awaited once, a future can be waited on by everyone.  Async code
can still ``await asyncio.wrap_future(fut)``.
"""

from __future__ import annotations

import asyncio
import atexit
import logging
import threading
from concurrent.futures import Future, InvalidStateError
from typing import Any, Optional, TypeVar

import httpx

from reqcache.client.contracts import AsyncTransport, Transformer
from reqcache.client.request import HttpRequest
from reqcache.exceptions import ConnectionError_, TransportClosedError
from reqcache.models import RequestConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")

_SHUTDOWN_TIMEOUT = 10.0


def _copy_outcome(target: Future[Any], source: Future[Any]) -> None:
    """Propagate the outcome of *source* into *target*.

    *target* may already have been settled by :meth:`HttpxAsyncTransport.close`
    on another thread, so losing that race is not an error.
    """
    if target.done():
        return
    try:
        if source.cancelled():
            target.cancel()
            return
        exc = source.exception()
        if exc is not None:
            target.set_exception(exc)
        else:
            target.set_result(source.result())
    except InvalidStateError:
        pass


class HttpxAsyncTransport(AsyncTransport):
    """Asynchronous transport backed by :class:`httpx.AsyncClient`.

    Provides the same retry policy as
    :class:`~reqcache.client.sync_client.HttpxTransport` but waits with
    :func:`asyncio.sleep` on the transport's own event loop.

    Args:
        config: Base URL, timeout, SSL verification and retry settings.
        client: Pre-built :class:`httpx.AsyncClient` to use instead of
            creating one from *config*.  The transport takes ownership.

    Example::

        transport = HttpxAsyncTransport(RequestConfig(base_url="https://api.example.com"))
        future = transport.request(HttpRequest("GET", "/users"), as_json)
        users = future.result(timeout=5)
        transport.close()
    """

    def __init__(
        self,
        config: Optional[RequestConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._config = config or RequestConfig()
        self._client: Optional[httpx.AsyncClient] = client if client is not None else httpx.AsyncClient(
            base_url=self._config.base_url or "",
            timeout=self._config.timeout,
            verify=self._config.verify_ssl,
            follow_redirects=True,
        )
        self._hook_registered = False
        self._closed = False
        # loop-side future -> caller future, for requests not yet completed
        self._inflight: dict[Future[Any], Future[Any]] = {}
        self._inflight_lock = threading.Lock()

        self._loop = asyncio.new_event_loop()
        started = threading.Event()
        self._thread = threading.Thread(
            target=self._run_loop, args=(started,), name="reqcache-async", daemon=True,
        )
        self._thread.start()
        started.wait()

    def _run_loop(self, started: threading.Event) -> None:
        asyncio.set_event_loop(self._loop)
        self._loop.call_soon(started.set)
        self._loop.run_forever()

    # ------------------------------------------------------------------ #
    # AsyncTransport contract
    # ------------------------------------------------------------------ #

    def request(
        self,
        request: HttpRequest,
        transformer: Transformer[T],
        callback: Optional[Future[T]] = None,
        response_type: type = object,
    ) -> Future[T]:
        """Schedule *request* on the loop thread.

        Returns:
            *callback* if supplied, else a new future, completed with
            ``transformer(response)`` or with the raised exception.

        Raises:
            TransportClosedError: If the transport is not running.
        """
        if not self.is_running():
            raise TransportClosedError("Async transport is not running")

        future: Future[T] = callback if callback is not None else Future()
        inner = asyncio.run_coroutine_threadsafe(self._fetch(request, transformer), self._loop)
        with self._inflight_lock:
            if self._closed:
                inner.cancel()
                raise TransportClosedError("Async transport is not running")
            self._inflight[inner] = future
        inner.add_done_callback(self._settle)
        return future

    def get_client(self) -> Optional[httpx.AsyncClient]:
        return self._client

    def is_running(self) -> bool:
        return not self._closed and self._thread.is_alive() and self._loop.is_running()

    def close(self) -> list[Exception]:
        """Close the client, stop the loop and join its thread.  Idempotent.

        Requests still in flight are cancelled on the loop and their futures
        fail with :class:`~reqcache.exceptions.TransportClosedError`, so no
        caller is left waiting on a future nothing will complete.
        """
        errors: list[Exception] = []
        with self._inflight_lock:
            if self._closed:
                return errors
            self._closed = True

        self._abandon_inflight()

        client, self._client = self._client, None
        if client is not None:
            try:
                asyncio.run_coroutine_threadsafe(client.aclose(), self._loop).result(_SHUTDOWN_TIMEOUT)
            except Exception as exc:
                logger.warning("Error closing async HTTP client: %s", exc)
                errors.append(exc)

        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(_SHUTDOWN_TIMEOUT)
        try:
            self._loop.close()
        except RuntimeError as exc:
            logger.warning("Error closing event loop: %s", exc)
            errors.append(exc)
        return errors

    def register_shutdown_hook(self) -> None:
        if not self._hook_registered:
            atexit.register(self.close)
            self._hook_registered = True

    # ------------------------------------------------------------------ #
    # In-flight bookkeeping
    # ------------------------------------------------------------------ #

    def _settle(self, inner: Future[Any]) -> None:
        with self._inflight_lock:
            target = self._inflight.pop(inner, None)
        if target is not None:
            _copy_outcome(target, inner)

    def _abandon_inflight(self) -> None:
        with self._inflight_lock:
            pending = list(self._inflight.items())
            self._inflight.clear()
        if pending:
            logger.debug("Abandoning %d in-flight request(s) on close", len(pending))
        for inner, target in pending:
            if not target.done():
                try:
                    target.set_exception(
                        TransportClosedError("Async transport closed with request in flight")
                    )
                except InvalidStateError:
                    pass
            inner.cancel()

    # ------------------------------------------------------------------ #
    # Private helpers (run on the loop thread)
    # ------------------------------------------------------------------ #

    async def _fetch(self, request: HttpRequest, transformer: Transformer[T]) -> T:
        response = await self._execute_with_retry(request)
        return transformer(response)

    async def _execute_with_retry(self, request: HttpRequest) -> httpx.Response:
        """Async version of :meth:`HttpxTransport._execute_with_retry`."""
        if self._client is None:
            raise TransportClosedError("Async transport is closed")

        max_retries = self._config.max_retries
        kwargs = request.to_httpx_kwargs()
        attempt = 0

        while True:
            try:
                response = await self._client.request(**kwargs)
            except (httpx.ConnectError, httpx.TimeoutException, httpx.NetworkError) as exc:
                if attempt >= max_retries:
                    raise ConnectionError_(
                        f"Connection failed after {max_retries + 1} attempts: {exc}"
                    ) from exc
                delay = 2 ** attempt
                logger.debug(
                    "Connection error: %s, retrying in %ds (attempt %d/%d)",
                    exc, delay, attempt + 1, max_retries,
                )
                await asyncio.sleep(delay)
                attempt += 1
                continue

            if response.status_code < 500 or attempt >= max_retries:
                return response
            delay = 2 ** attempt
            logger.debug(
                "Server error %d, retrying in %ds (attempt %d/%d)",
                response.status_code, delay, attempt + 1, max_retries,
            )
            await asyncio.sleep(delay)
            attempt += 1
