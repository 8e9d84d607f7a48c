"""Base classes for quote feeds."""
from __future__ import annotations

from abc import ABC, abstractmethod

from ..models import AnyQuote, InstrumentClass


class FeedError(RuntimeError):
    """Raised when a feed cannot be fetched or decoded."""


class FeedSource(ABC):
    """Abstract source that loads the latest quotes for one instrument class."""

    def __init__(self, instrument_class: InstrumentClass, url: str) -> None:
        self.instrument_class = instrument_class
        self.url = url

    @abstractmethod
    def fetch_quotes(self) -> list[AnyQuote]:
        """Return every quote currently published by the feed."""


__all__ = ["FeedSource", "FeedError"]
