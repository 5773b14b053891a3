"""Transport contracts wrapped by the caching decorators.

A transport executes :class:`~reqcache.client.request.HttpRequest` objects
and turns the raw :class:`httpx.Response` into a caller-chosen shape via a
*transformer*.  The ``response_type`` argument does not change how the
request is executed; it labels the shape the transformer produces so that
the same request decoded two different ways occupies two cache slots.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from concurrent.futures import Future
from typing import Any, Callable, Optional, TypeVar

import httpx

from reqcache.client.request import HttpRequest

T = TypeVar("T")

Transformer = Callable[[httpx.Response], T]


class Transport(ABC):
    """Blocking request execution."""

    @abstractmethod
    def request(
        self,
        request: HttpRequest,
        transformer: Transformer[T],
        response_type: type = object,
    ) -> T:
        """Execute *request* and return ``transformer(response)``."""

    @abstractmethod
    def get_client(self) -> Any:
        """Return the native client handle (for example an :class:`httpx.Client`)."""

    @abstractmethod
    def close(self) -> list[Exception]:
        """Release resources and return any exceptions raised while doing so."""

    @abstractmethod
    def register_shutdown_hook(self) -> None:
        """Arrange for :meth:`close` to run at interpreter exit."""


class AsyncTransport(ABC):
    """Future-returning request execution."""

    @abstractmethod
    def request(
        self,
        request: HttpRequest,
        transformer: Transformer[T],
        callback: Optional[Future[T]] = None,
        response_type: type = object,
    ) -> Future[T]:
        """Start *request* and return a future for ``transformer(response)``.

        When *callback* is given it is the future completed and returned.
        """

    @abstractmethod
    def get_client(self) -> Any:
        """Return the native async client handle."""

    @abstractmethod
    def is_running(self) -> bool:
        """Return whether the transport can still accept requests."""

    @abstractmethod
    def close(self) -> list[Exception]:
        """Release resources and return any exceptions raised while doing so."""

    @abstractmethod
    def register_shutdown_hook(self) -> None:
        """Arrange for :meth:`close` to run at interpreter exit."""
