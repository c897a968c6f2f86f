"""Logging for ``statement_tracker``.

Entry points (the Typer CLI callback and ``web.create_app``) call
:func:`configure_logging` once. Service modules only ask for a named child
logger through :func:`get_logger` and never attach handlers themselves, so
embedding the package in another application leaves its logging alone.

The level comes from the ``level`` argument, else ``STATEMENT_TRACKER_LOG_LEVEL``
(a name such as ``DEBUG`` or a number), else ``INFO``.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

ROOT_LOGGER = "statement_tracker"
LEVEL_ENV = "STATEMENT_TRACKER_LOG_LEVEL"
DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"

_configured = False


def resolve_level(level: int | str | None = None) -> int:
    """Turn ``level`` (or the environment override) into a numeric level.

    Unknown names fall back to ``INFO``.
    """

    raw: int | str | None = level if level is not None else os.getenv(LEVEL_ENV)
    if isinstance(raw, int):
        return raw
    if raw:
        name = raw.strip().upper()
        if name.isdigit():
            return int(name)
        numeric = logging.getLevelName(name)
        if isinstance(numeric, int):
            return numeric
    return logging.INFO


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str = DEFAULT_FORMAT,
    stream: IO[str] = sys.stderr,
) -> None:
    """Attach one ``StreamHandler`` (stderr by default) to the package logger.

    Later calls are no-ops.
    """

    global _configured
    if _configured:
        return

    logger = logging.getLogger(ROOT_LOGGER)
    for handler in [h for h in logger.handlers if isinstance(h, logging.NullHandler)]:
        logger.removeHandler(handler)

    resolved = resolve_level(level)
    handler = logging.StreamHandler(stream)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(fmt))
    logger.setLevel(resolved)
    logger.addHandler(handler)
    # Records stop here; the host's root logger does not print them again.
    logger.propagate = False
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Return ``logging.getLogger(name)``, silencing the package until configured."""

    root = logging.getLogger(ROOT_LOGGER)
    if not _configured and not root.handlers:
        root.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger", "resolve_level"]
