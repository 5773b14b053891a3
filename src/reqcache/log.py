"""Diagnostic logging setup.

Every module in the package logs through ``logging.getLogger(__name__)``
and never configures handlers itself.  Applications that want to see
cache activity call :func:`configure_logging` once, which attaches a Rich
handler writing to stderr.  Colour is disabled when ``NO_COLOR`` is set
or ``TERM=dumb``, following `clig.dev <https://clig.dev/>`_.
"""

from __future__ import annotations

import logging
import os

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "reqcache"

_handler: RichHandler | None = None


def _should_disable_color() -> bool:
    """Return True when NO_COLOR is set (any value) or TERM=dumb."""
    if os.environ.get("NO_COLOR") is not None:
        return True
    if os.environ.get("TERM") == "dumb":
        return True
    return False


def configure_logging(verbose: bool = False, no_color: bool = False) -> logging.Logger:
    """Install a Rich stderr handler on the ``reqcache`` logger.

    Calling this again replaces the previously installed handler instead
    of stacking a second one.

    Args:
        verbose: Log at DEBUG level (cache hits, misses, evictions,
            retries).  Otherwise only warnings and errors are shown.
        no_color: Disable colour and markup.

    Returns:
        The configured ``reqcache`` logger.
    """
    global _handler

    logger = logging.getLogger(LOGGER_NAME)
    if _handler is not None:
        logger.removeHandler(_handler)

    console = Console(stderr=True, no_color=no_color or _should_disable_color())
    _handler = RichHandler(console=console, show_path=False, markup=False)
    logger.addHandler(_handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    return logger
