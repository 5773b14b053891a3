"""Response transformers.

A transformer turns the raw :class:`httpx.Response` into the value a
transport returns (and the cache stores).  :func:`raise_for_status`
wraps another transformer and maps HTTP error statuses onto the
:mod:`reqcache.exceptions` hierarchy first.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, TypeVar

import httpx

from reqcache.exceptions import AuthError, NotFoundError, ServerError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def raw(response: httpx.Response) -> httpx.Response:
    return response


def as_json(response: httpx.Response) -> Any:
    return response.json()


def as_text(response: httpx.Response) -> str:
    return response.text


def as_bytes(response: httpx.Response) -> bytes:
    return response.content


def _error_message(response: httpx.Response) -> str:
    """Build ``HTTP <status>: <detail>`` from the response body."""
    try:
        detail = response.json()
        if isinstance(detail, dict):
            msg = detail.get("message") or detail.get("error") or detail.get("detail") or ""
        else:
            msg = str(detail)
    except Exception:
        msg = response.text[:200] if response.text else ""

    prefix = f"HTTP {response.status_code}"
    return f"{prefix}: {msg}" if msg else prefix


def raise_for_status(transformer: Callable[[httpx.Response], T]) -> Callable[[httpx.Response], T]:
    """Wrap *transformer* so error statuses raise typed exceptions.

    Raises (from the returned callable):
        AuthError: On 401 / 403.
        NotFoundError: On 404.
        ServerError: On any other 4xx or 5xx.
    """

    def checked(response: httpx.Response) -> T:
        status = response.status_code
        if status < 400:
            return transformer(response)

        full_msg = _error_message(response)
        logger.debug("Mapping error response: %s", full_msg)
        if status in (401, 403):
            raise AuthError(full_msg, status_code=status)
        if status == 404:
            raise NotFoundError(full_msg, status_code=status)
        # Other 4xx -- raise as generic server error with the status info.
        raise ServerError(full_msg, status_code=status)

    return checked
