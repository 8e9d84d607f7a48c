"""Logging configuration helpers for the market monitor."""
from __future__ import annotations

import logging
import os

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# The clock and countdown jobs fire every second; APScheduler logs each run at INFO.
SCHEDULER_LOGGERS = ("apscheduler.executors.default", "apscheduler.scheduler")


def _resolve_level(level: str | int | None) -> int:
    """Numeric level for ``level``, or the env default, falling back to INFO."""

    if level is None:
        level = os.getenv("AR_MARKET_MONITOR_LOG_LEVEL", "INFO")
    if isinstance(level, int):
        return level
    return logging.getLevelNamesMapping().get(level.strip().upper(), logging.INFO)


def configure_logging(level: str | int | None = None, *, force: bool = False) -> int:
    """Configure console logging and return the level applied to the root logger.

    Per-run scheduler chatter is kept at WARNING unless DEBUG is requested.
    An already configured root logger only has its level changed, unless
    ``force`` is set.
    """

    resolved = _resolve_level(level)
    root_logger = logging.getLogger()
    if root_logger.handlers and not force:
        root_logger.setLevel(resolved)
    else:
        logging.basicConfig(level=resolved, format=LOG_FORMAT, force=force)

    scheduler_level = logging.DEBUG if resolved <= logging.DEBUG else logging.WARNING
    for name in SCHEDULER_LOGGERS:
        logging.getLogger(name).setLevel(scheduler_level)
    return resolved


__all__ = ["configure_logging", "LOG_FORMAT"]
