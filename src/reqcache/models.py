"""Pydantic configuration models shared across reqcache.

:class:`CacheConfig` sizes the default in-memory store used by
:class:`~reqcache.manager.CacheManager`; :class:`RequestConfig` configures
the bundled httpx transports.  Both are resolved from keyword overrides,
environment variables and an optional JSON file by
:mod:`reqcache.config`.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class CacheConfig(BaseModel):
    """Settings for the default :class:`~reqcache.cache.BoundedCache`."""

    depth: int = Field(default=100, ge=0, description="Maximum number of cached entries")
    ttl_millis: int = Field(
        default=0, ge=0, description="Entry time-to-live in milliseconds, 0 disables expiry"
    )
    cache_errors: bool = Field(
        default=True,
        description="Keep failed or cancelled futures cached until they are evicted",
    )


class RequestConfig(BaseModel):
    """Default HTTP request settings applied by the httpx transports."""

    base_url: Optional[str] = Field(default=None, description="Prefix for relative request URLs")
    timeout: float = Field(default=30, gt=0, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    max_retries: int = Field(default=3, ge=0, description="Max retry attempts")
