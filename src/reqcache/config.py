"""Configuration loading with precedence resolution.

Settings for :class:`~reqcache.models.CacheConfig` and
:class:`~reqcache.models.RequestConfig` are merged from several sources.
Precedence (high to low):

    1. Keyword overrides passed to :func:`load_cache_config` /
       :func:`load_request_config`
    2. Environment variables (``REQCACHE_DEPTH``, ``REQCACHE_TTL_MS``, ...)
    3. The JSON file named by ``REQCACHE_CONFIG``, with ``"cache"`` and
       ``"request"`` sections
    4. Model defaults

Any value that cannot be parsed or validated raises
:class:`~reqcache.exceptions.ConfigError`.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from reqcache.exceptions import ConfigError
from reqcache.models import CacheConfig, RequestConfig

CONFIG_ENV_VAR = "REQCACHE_CONFIG"

_CACHE_ENV = {
    "depth": "REQCACHE_DEPTH",
    "ttl_millis": "REQCACHE_TTL_MS",
    "cache_errors": "REQCACHE_CACHE_ERRORS",
}

_REQUEST_ENV = {
    "base_url": "REQCACHE_BASE_URL",
    "timeout": "REQCACHE_TIMEOUT",
    "verify_ssl": "REQCACHE_VERIFY_SSL",
    "max_retries": "REQCACHE_MAX_RETRIES",
}


# --- File config ---


def load_config_file(path: Optional[str | Path] = None) -> dict[str, Any]:
    """Load the JSON config file.

    Args:
        path: Explicit file path.  When ``None`` the ``REQCACHE_CONFIG``
            environment variable is consulted.

    Returns:
        The parsed document, or an empty dict when no file is configured.

    Raises:
        ConfigError: If the file is missing, unreadable, or not a JSON object.
    """
    if path is None:
        env_path = os.environ.get(CONFIG_ENV_VAR)
        if not env_path:
            return {}
        path = env_path

    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ConfigError(f"Config file not found: {path}") from exc
    except (OSError, json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid config file at {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"Invalid config file at {path}: expected a JSON object")
    return data


# --- Environment ---


def _env_values(mapping: dict[str, str]) -> dict[str, str]:
    """Collect the set environment variables in *mapping*, keyed by field name."""
    values: dict[str, str] = {}
    for field_name, env_var in mapping.items():
        raw = os.environ.get(env_var)
        if raw is not None and raw != "":
            values[field_name] = raw
    return values


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    section = data.get(name, {})
    if not isinstance(section, dict):
        raise ConfigError(f"Config section '{name}' must be a JSON object")
    return section


# --- Precedence resolution ---


def _resolve(model: type, section: str, env: dict[str, str], overrides: dict[str, Any]):
    merged: dict[str, Any] = {}
    merged.update(_section(load_config_file(), section))
    merged.update(_env_values(env))
    merged.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return model.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid {section} configuration: {exc}") from exc


def load_cache_config(**overrides: Any) -> CacheConfig:
    """Resolve a :class:`CacheConfig`.

    Keyword arguments whose value is ``None`` are ignored so callers can
    forward optional parameters unchanged.

    Example::

        config = load_cache_config(depth=500)
    """
    return _resolve(CacheConfig, "cache", _CACHE_ENV, overrides)


def load_request_config(**overrides: Any) -> RequestConfig:
    """Resolve a :class:`RequestConfig` (same precedence as :func:`load_cache_config`)."""
    return _resolve(RequestConfig, "request", _REQUEST_ENV, overrides)
