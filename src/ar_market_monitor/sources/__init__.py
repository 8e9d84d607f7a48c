"""Source factory for quote feeds."""
from __future__ import annotations

import logging

import requests

from ..config import Settings
from ..models import InstrumentClass
from .base import FeedError, FeedSource
from .data912 import Data912Source

LOGGER = logging.getLogger(__name__)


def create_source(
    instrument_class: InstrumentClass,
    settings: Settings,
    session: requests.Session | None = None,
) -> FeedSource:
    """Instantiate the feed source for ``instrument_class``."""

    url = settings.feed_url(instrument_class)
    LOGGER.debug("Selected Data912Source for %s at %s", instrument_class.value, url)
    return Data912Source(
        instrument_class,
        url,
        session=session,
        timeout=settings.request_timeout_seconds,
    )


def create_sources(settings: Settings) -> dict[InstrumentClass, FeedSource]:
    """Build one source per instrument class."""

    return {instrument_class: create_source(instrument_class, settings) for instrument_class in InstrumentClass}


__all__ = ["create_source", "create_sources", "FeedSource", "FeedError", "Data912Source"]
