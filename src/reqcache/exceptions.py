"""Exception hierarchy for reqcache.

All exceptions inherit from :class:`ReqcacheError` so callers can catch
everything raised by this package with a single ``except`` clause.  The
caching layer itself never raises on the request path: whatever the
wrapped transport raises reaches the caller unchanged.  The types below
come from configuration handling and from the bundled httpx transports.

Subclass hierarchy::

    ReqcacheError
    +-- ConfigError           (invalid settings, missing delegate)
    +-- TransportClosedError  (request issued after close())
    +-- AuthError             (HTTP 401 / 403)
    +-- NotFoundError         (HTTP 404)
    +-- ServerError           (other HTTP 4xx / 5xx)
    +-- ConnectionError_      (network failure after all retries)
"""

from __future__ import annotations


class ReqcacheError(Exception):
    """Base exception for all reqcache errors.

    Args:
        message: Human-readable error description.
        status_code: HTTP status that triggered the error, when there is one.
    """

    status_code: int | None = None

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code


class ConfigError(ReqcacheError):
    """Raised for configuration problems (negative sizes, unparsable env values, bad config file)."""


class TransportClosedError(ReqcacheError):
    """Raised when a request is issued on a transport that has been closed."""


class AuthError(ReqcacheError):
    """Raised when the server rejects the credentials (HTTP 401 / 403)."""


class NotFoundError(ReqcacheError):
    """Raised when the server returns HTTP 404."""


class ServerError(ReqcacheError):
    """Raised for HTTP 5xx responses and 4xx statuses without a dedicated type."""


class ConnectionError_(ReqcacheError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """
