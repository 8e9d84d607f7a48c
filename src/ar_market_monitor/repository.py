"""In-memory store of the latest quote snapshot."""
from __future__ import annotations

import logging
from datetime import datetime
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from .models import AnyQuote, InstrumentClass, QuoteSnapshot

LOGGER = logging.getLogger(__name__)


class QuoteRepository:
    """Holds the current :class:`QuoteSnapshot`.

    Every update builds a new snapshot and swaps the reference, so readers
    always see a fully formed snapshot. A class missing from an update keeps
    its previous segment untouched.
    """

    def __init__(self, snapshot: QuoteSnapshot | None = None) -> None:
        self._snapshot = snapshot or QuoteSnapshot()

    @property
    def snapshot(self) -> QuoteSnapshot:
        return self._snapshot

    def replace_segments(
        self,
        updates: Mapping[InstrumentClass, Iterable[AnyQuote]],
        *,
        last_updated: Optional[datetime] = None,
    ) -> QuoteSnapshot:
        """Replace whole class segments and optionally stamp the snapshot."""

        segments = dict(self._snapshot.segments)
        for instrument_class, quotes in updates.items():
            segment: dict[str, AnyQuote] = {}
            for quote in quotes:
                if quote.instrument_class is not instrument_class:
                    raise ValueError(
                        f"{quote.identifier} is tagged {quote.instrument_class.value}, "
                        f"not {instrument_class.value}"
                    )
                segment[quote.identifier] = quote
            segments[instrument_class] = MappingProxyType(segment)
            LOGGER.debug("Replaced %s segment with %d quotes", instrument_class.value, len(segment))

        self._snapshot = QuoteSnapshot(
            segments=MappingProxyType(segments),
            last_updated=last_updated if last_updated is not None else self._snapshot.last_updated,
        )
        return self._snapshot

    def get(self, instrument_class: InstrumentClass, identifier: str) -> Optional[AnyQuote]:
        return self._snapshot.get(instrument_class, identifier)

    def find(self, identifier: str) -> Optional[AnyQuote]:
        return self._snapshot.find(identifier)


__all__ = ["QuoteRepository"]
