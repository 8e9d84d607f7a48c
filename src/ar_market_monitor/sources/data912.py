"""data912 live feed implementation."""
from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

import requests

from ..models import AnyQuote, InstrumentClass, MepQuote, Quote
from .base import FeedError, FeedSource
from .utils import parse_number

LOGGER = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "accept": "application/json",
    "user-agent": "ar-market-monitor/0.1 (+https://data912.com)",
}


def _identifier(record: Mapping[str, Any], field: str) -> Optional[str]:
    value = record.get(field)
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_quote(record: Mapping[str, Any], instrument_class: InstrumentClass) -> Optional[Quote]:
    """Build a :class:`Quote` from a raw equity/bond/note record."""

    symbol = _identifier(record, "symbol")
    if symbol is None:
        return None
    return Quote(
        symbol=symbol,
        instrument_class=instrument_class,
        bid=parse_number(record.get("px_bid")),
        ask=parse_number(record.get("px_ask")),
        last=parse_number(record.get("c")),
        pct_change=parse_number(record.get("pct_change")),
        bid_size=parse_number(record.get("q_bid")),
        ask_size=parse_number(record.get("q_ask")),
        trades=parse_number(record.get("q_op")),
        volume=parse_number(record.get("v")),
    )


def parse_mep_quote(record: Mapping[str, Any]) -> Optional[MepQuote]:
    """Build a :class:`MepQuote` from a raw MEP record."""

    ticker = _identifier(record, "ticker")
    if ticker is None:
        return None
    panel = record.get("panel")
    return MepQuote(
        ticker=ticker,
        bid=parse_number(record.get("bid")),
        ask=parse_number(record.get("ask")),
        close=parse_number(record.get("close")),
        ars_bid=parse_number(record.get("ars_bid")),
        ars_ask=parse_number(record.get("ars_ask")),
        usd_bid=parse_number(record.get("usd_bid")),
        usd_ask=parse_number(record.get("usd_ask")),
        ars_volume=parse_number(record.get("v_ars")),
        usd_volume=parse_number(record.get("v_usd")),
        ars_trades=parse_number(record.get("q_ars")),
        usd_trades=parse_number(record.get("q_usd")),
        panel=str(panel) if panel is not None else None,
    )


class Data912Source(FeedSource):
    """Pulls one instrument class from the data912 live endpoints.

    Overlapping poll cycles may fetch the same class from different worker
    threads, so each fetch opens its own session unless one is supplied.
    """

    def __init__(
        self,
        instrument_class: InstrumentClass,
        url: str,
        session: requests.Session | None = None,
        timeout: float = 30,
    ) -> None:
        super().__init__(instrument_class, url)
        self.timeout = timeout
        self.session = session
        if session is not None:
            session.headers.update(DEFAULT_HEADERS)

    def _open_session(self) -> requests.Session:
        session = requests.Session()
        session.headers.update(DEFAULT_HEADERS)
        return session

    def _get_records(self) -> list[Any]:
        LOGGER.debug("Requesting %s feed from %s", self.instrument_class.value, self.url)
        session = self.session or self._open_session()
        try:
            response = session.get(self.url, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as exc:
            raise FeedError(f"Failed to fetch {self.instrument_class.value}: {exc}") from exc
        except ValueError as exc:
            raise FeedError(f"Invalid JSON in {self.instrument_class.value} feed: {exc}") from exc
        finally:
            if session is not self.session:
                session.close()
        if not isinstance(payload, list):
            raise FeedError(
                f"Expected a list of records for {self.instrument_class.value}, "
                f"got {type(payload).__name__}"
            )
        return payload

    def fetch_quotes(self) -> list[AnyQuote]:
        records = self._get_records()
        quotes: list[AnyQuote] = []
        skipped = 0
        for record in records:
            if not isinstance(record, Mapping):
                skipped += 1
                continue
            if self.instrument_class is InstrumentClass.FX_MEP:
                quote: Optional[AnyQuote] = parse_mep_quote(record)
            else:
                quote = parse_quote(record, self.instrument_class)
            if quote is None:
                skipped += 1
                continue
            quotes.append(quote)
        if skipped:
            LOGGER.debug(
                "Skipped %d malformed %s records", skipped, self.instrument_class.value
            )
        return quotes


__all__ = ["Data912Source", "parse_quote", "parse_mep_quote"]
