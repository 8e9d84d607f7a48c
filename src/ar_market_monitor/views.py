"""Read-only listings derived from the quote snapshot."""
from __future__ import annotations

from typing import Iterable, Sequence

from .models import AnyQuote, Favorite, InstrumentClass, MepQuote, Quote, QuoteSnapshot

SORT_FIELDS = ("symbol", "bid", "ask", "last", "pct_change")

# USD ("D") and cable ("C") settled variants are priced through their base symbol.
SETTLEMENT_SUFFIXES = ("D", "C")


def _matches(identifier: str, search: str) -> bool:
    return search.lower() in identifier.lower()


def filter_and_sort(
    quotes: Iterable[Quote],
    search: str = "",
    sort_by: str = "symbol",
    order: str = "asc",
) -> list[Quote]:
    """Filter by identifier substring and sort, keeping missing values last."""

    if sort_by not in SORT_FIELDS:
        raise ValueError(f"Unsupported sort field: {sort_by}")
    if order not in ("asc", "desc"):
        raise ValueError(f"Unsupported sort order: {order}")

    filtered = [quote for quote in quotes if _matches(quote.symbol, search)]
    present = [quote for quote in filtered if getattr(quote, sort_by) is not None]
    missing = [quote for quote in filtered if getattr(quote, sort_by) is None]
    present.sort(key=lambda quote: getattr(quote, sort_by), reverse=order == "desc")
    return present + missing


def mep_panel(quotes: Iterable[MepQuote], search: str = "", panel: str = "bonds") -> list[MepQuote]:
    rows = [quote for quote in quotes if quote.panel == panel and _matches(quote.ticker, search)]
    return sorted(rows, key=lambda quote: quote.ticker)


def spread(quote: Quote) -> tuple[float, float]:
    """Return the bid/ask spread and that spread as a percentage of the mid price."""

    ask = quote.ask or 0.0
    bid = quote.bid or 0.0
    value = ask - bid
    mid = (ask + bid) / 2
    return value, (value / mid * 100) if mid else 0.0


def favorite_quotes(snapshot: QuoteSnapshot, favorites: Iterable[Favorite]) -> list[AnyQuote]:
    resolved = []
    for favorite in favorites:
        quote = snapshot.get(favorite.instrument_class, favorite.identifier)
        if quote is not None:
            resolved.append(quote)
    return resolved


def portfolio_candidates(snapshot: QuoteSnapshot, search: str = "") -> list[str]:
    """Distinct identifiers a user can add to the portfolio, in class order."""

    candidates: list[str] = []
    for instrument_class in InstrumentClass:
        for identifier in snapshot.segment(instrument_class):
            if identifier in candidates or not _matches(identifier, search):
                continue
            if instrument_class is not InstrumentClass.FX_MEP and identifier.endswith(
                SETTLEMENT_SUFFIXES
            ):
                continue
            candidates.append(identifier)
    return candidates


def quote_to_dict(quote: AnyQuote) -> dict[str, object]:
    data: dict[str, object] = {
        "identifier": quote.identifier,
        "instrument_class": quote.instrument_class.value,
    }
    if isinstance(quote, Quote):
        spread_value, spread_pct = spread(quote)
        data.update(
            bid=quote.bid,
            ask=quote.ask,
            last=quote.last,
            pct_change=quote.pct_change,
            bid_size=quote.bid_size,
            ask_size=quote.ask_size,
            trades=quote.trades,
            volume=quote.volume,
            spread=spread_value,
            spread_pct=spread_pct,
        )
    else:
        data.update(
            bid=quote.bid,
            ask=quote.ask,
            close=quote.close,
            ars_bid=quote.ars_bid,
            ars_ask=quote.ars_ask,
            usd_bid=quote.usd_bid,
            usd_ask=quote.usd_ask,
            ars_volume=quote.ars_volume,
            usd_volume=quote.usd_volume,
            panel=quote.panel,
        )
    return data


def quotes_to_dicts(quotes: Sequence[AnyQuote]) -> list[dict[str, object]]:
    return [quote_to_dict(quote) for quote in quotes]


__all__ = [
    "filter_and_sort",
    "mep_panel",
    "spread",
    "favorite_quotes",
    "portfolio_candidates",
    "quote_to_dict",
    "quotes_to_dicts",
    "SORT_FIELDS",
]
