"""The request value handed to transports and key generators.

:class:`HttpRequest` describes one outgoing call.  It carries two things
the cache relies on:

- a stable identity hash over method, URL, params, headers and body, so
  that logically identical requests land in the same cache slot;
- ``created_at``, the instant the request was built.  Cache keys inherit
  this timestamp, so TTL expiry is measured from request construction
  rather than from the moment a response was stored.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from reqcache.exceptions import ConfigError


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(eq=False)
class HttpRequest:
    """A single HTTP request.

    Args:
        method: HTTP method.  Case-insensitive for identity purposes.
        url: Absolute URL, or a path relative to the transport's ``base_url``.
        params: Query parameters.
        headers: Request headers.
        json_body: JSON-serialisable body.
        body: Raw string or bytes body.
        data: Form-encoded body.
        created_at: Timezone-aware creation instant; defaults to now (UTC).

    Raises:
        ConfigError: If *created_at* is naive.

    Example::

        req = HttpRequest("GET", "/users", params={"page": 2})
    """

    method: str
    url: str
    params: dict[str, Any] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)
    json_body: Optional[Any] = None
    body: Optional[str | bytes] = None
    data: Optional[dict[str, Any]] = None
    created_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        if self.created_at.tzinfo is None or self.created_at.utcoffset() is None:
            raise ConfigError(
                f"HttpRequest.created_at must be timezone-aware, got {self.created_at!r}"
            )

    def _identity(self) -> str:
        parts = [self.method.upper(), self.url]
        parts.append(json.dumps(self.params, sort_keys=True, default=str))
        parts.append(json.dumps(self.headers, sort_keys=True, default=str))
        if self.data is not None:
            parts.append("data=" + json.dumps(self.data, sort_keys=True, default=str))
        elif self.json_body is not None:
            parts.append("json=" + json.dumps(self.json_body, sort_keys=True, default=str))
        elif self.body is not None:
            raw = self.body.decode("utf-8", "replace") if isinstance(self.body, bytes) else self.body
            parts.append("body=" + raw)
        return "|".join(parts)

    def identity_hash(self) -> int:
        """Return a hash that is stable for requests with equal content.

        ``created_at`` does not take part: two requests built at different
        times but otherwise identical hash the same.
        """
        digest = hashlib.sha256(self._identity().encode()).digest()
        return int.from_bytes(digest[:8], "big", signed=True)

    def __hash__(self) -> int:
        return self.identity_hash()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HttpRequest):
            return NotImplemented
        return self._identity() == other._identity()

    def to_httpx_kwargs(self) -> dict[str, Any]:
        """Build the keyword arguments for ``httpx.Client.request``."""
        kwargs: dict[str, Any] = {
            "method": self.method,
            "url": self.url,
            "headers": self.headers,
            "params": self.params,
        }
        if self.data is not None:
            kwargs["data"] = self.data
        elif self.json_body is not None:
            kwargs["json"] = self.json_body
        elif self.body is not None:
            kwargs["content"] = self.body
        return kwargs
