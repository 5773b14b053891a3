"""Blocking httpx transport with retry.

This module provides :class:`HttpxTransport`, the bundled implementation
of :class:`~reqcache.client.contracts.Transport`.  It wraps
:class:`httpx.Client` and layers on:

- **Retry with backoff** -- retries on 5xx and network errors with
  exponential delay (1 s, 2 s, 4 s, ...).
- **Lifecycle** -- idempotent :meth:`~HttpxTransport.close` that reports
  failures instead of raising, and an ``atexit`` shutdown hook.

See Also:
    :class:`~reqcache.client.async_client.HttpxAsyncTransport` for the
    future-returning implementation.
"""

from __future__ import annotations

import atexit
import logging
import time
from typing import Optional, TypeVar

import httpx

from reqcache.client.contracts import Transformer, Transport
from reqcache.client.request import HttpRequest
from reqcache.exceptions import ConnectionError_, TransportClosedError
from reqcache.models import RequestConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")


class HttpxTransport(Transport):
    """Synchronous transport backed by :class:`httpx.Client`.

    Args:
        config: Base URL, timeout, SSL verification and retry settings.
            Defaults to :class:`~reqcache.models.RequestConfig` defaults.
        client: Pre-built :class:`httpx.Client` to use instead of creating
            one from *config* (useful with :class:`httpx.MockTransport`).
            The transport takes ownership and closes it.

    Example::

        with HttpxTransport(RequestConfig(base_url="https://api.example.com")) as transport:
            users = transport.request(HttpRequest("GET", "/users"), as_json)
    """

    def __init__(
        self,
        config: Optional[RequestConfig] = None,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self._config = config or RequestConfig()
        self._client: Optional[httpx.Client] = client if client is not None else httpx.Client(
            base_url=self._config.base_url or "",
            timeout=self._config.timeout,
            verify=self._config.verify_ssl,
            follow_redirects=True,
        )
        self._hook_registered = False

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> HttpxTransport:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    # ------------------------------------------------------------------ #
    # Transport contract
    # ------------------------------------------------------------------ #

    def request(
        self,
        request: HttpRequest,
        transformer: Transformer[T],
        response_type: type = object,
    ) -> T:
        """Execute *request* with retry and apply *transformer* to the response.

        Raises:
            TransportClosedError: If the transport has been closed.
            ConnectionError_: On network / timeout errors after all retries.
        """
        response = self._execute_with_retry(request)
        return transformer(response)

    def get_client(self) -> Optional[httpx.Client]:
        return self._client

    def close(self) -> list[Exception]:
        """Close the underlying client.  Safe to call more than once."""
        errors: list[Exception] = []
        if self._client is None:
            return errors
        client, self._client = self._client, None
        try:
            client.close()
        except Exception as exc:
            logger.warning("Error closing HTTP client: %s", exc)
            errors.append(exc)
        return errors

    def register_shutdown_hook(self) -> None:
        if not self._hook_registered:
            atexit.register(self.close)
            self._hook_registered = True

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _execute_with_retry(self, request: HttpRequest) -> httpx.Response:
        """Execute the HTTP request with exponential-backoff retry.

        Retries on 5xx status codes and connection / timeout errors up to
        ``max_retries`` times. The delay doubles each attempt: 1 s, 2 s, 4 s, ...
        """
        if self._client is None:
            raise TransportClosedError("Transport is closed")

        max_retries = self._config.max_retries
        kwargs = request.to_httpx_kwargs()
        attempt = 0

        while True:
            try:
                response = self._client.request(**kwargs)
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
                time.sleep(delay)
                attempt += 1
                continue

            # Only retry on 5xx (server errors)
            if response.status_code < 500 or attempt >= max_retries:
                return response
            delay = 2 ** attempt  # 1, 2, 4, ...
            logger.debug(
                "Server error %d, retrying in %ds (attempt %d/%d)",
                response.status_code, delay, attempt + 1, max_retries,
            )
            time.sleep(delay)
            attempt += 1
