"""Ad-hoc portfolio valuation in ARS and USD."""
from __future__ import annotations

import logging
from typing import Any, Optional

from .models import (
    AnyQuote,
    InstrumentClass,
    MepQuote,
    PortfolioLine,
    PortfolioTotals,
    QuoteSnapshot,
)
from .sources.utils import parse_quantity

LOGGER = logging.getLogger(__name__)

USD_SUFFIX = "D"

# Classes searched for the USD-settled sibling of an instrument.
SIBLING_CLASSES = (
    InstrumentClass.SOVEREIGN_BOND,
    InstrumentClass.CORPORATE_NOTE,
    InstrumentClass.EQUITY,
)


def _first_known(*values: Optional[float]) -> float:
    for value in values:
        if value is not None:
            return value
    return 0.0


def ars_unit_price(quote: AnyQuote) -> float:
    """Last trade, else ask, else bid, else zero."""

    if isinstance(quote, MepQuote):
        return _first_known(quote.ask, quote.bid)
    return _first_known(quote.last, quote.ask, quote.bid)


def usd_unit_price(quote: AnyQuote, snapshot: QuoteSnapshot) -> float:
    """Last trade of the first ``D``-suffixed sibling that has one, or zero."""

    if quote.instrument_class is InstrumentClass.FX_MEP or quote.identifier.endswith(USD_SUFFIX):
        return 0.0
    sibling_id = quote.identifier + USD_SUFFIX
    for instrument_class in SIBLING_CLASSES:
        sibling = snapshot.get(instrument_class, sibling_id)
        last = getattr(sibling, "last", None)
        if last is not None:
            return last
    return 0.0


class Portfolio:
    """User-entered lines priced against the snapshot at the moment they are added."""

    def __init__(self) -> None:
        self._lines: list[PortfolioLine] = []

    @property
    def lines(self) -> list[PortfolioLine]:
        return list(self._lines)

    def add(self, snapshot: QuoteSnapshot, identifier: str, quantity: Any) -> Optional[PortfolioLine]:
        """Add a line, or do nothing for unknown identifiers and non-positive quantities."""

        parsed_quantity = parse_quantity(quantity)
        if parsed_quantity is None:
            LOGGER.debug("Ignoring portfolio add for %s with quantity %r", identifier, quantity)
            return None
        quote = snapshot.find(identifier)
        if quote is None:
            LOGGER.debug("Ignoring portfolio add for unknown identifier %s", identifier)
            return None

        price_ars = ars_unit_price(quote)
        price_usd = usd_unit_price(quote, snapshot)
        if quote.instrument_class.is_face_value:
            price_ars /= 100
            price_usd /= 100

        line = PortfolioLine(
            identifier=identifier,
            quantity=parsed_quantity,
            instrument_class=quote.instrument_class,
            unit_price_ars=price_ars,
            unit_price_usd=price_usd,
            last_price=getattr(quote, "last", None),
        )
        self._lines = [*self._lines, line]
        return line

    def remove(self, identifier: str) -> int:
        """Drop every line for ``identifier``; return how many were removed."""

        kept = [line for line in self._lines if line.identifier != identifier]
        removed = len(self._lines) - len(kept)
        self._lines = kept
        return removed

    def valuate(self) -> PortfolioTotals:
        total_ars = 0.0
        total_usd = 0.0
        for line in self._lines:
            total_ars += line.quantity * line.unit_price_ars
            total_usd += line.quantity * line.unit_price_usd
        return PortfolioTotals(ars=total_ars, usd=total_usd)

    def __len__(self) -> int:
        return len(self._lines)


__all__ = ["Portfolio", "ars_unit_price", "usd_unit_price"]
