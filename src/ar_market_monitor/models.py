"""Domain models for quotes, history, favorites and portfolio lines."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Union


class InstrumentClass(str, Enum):
    """The four feeds tracked by the monitor."""

    EQUITY = "equity"
    SOVEREIGN_BOND = "sovereign_bond"
    CORPORATE_NOTE = "corporate_note"
    FX_MEP = "fx_mep"

    @property
    def is_face_value(self) -> bool:
        """Bonds and notes are quoted per 100 of face value."""

        return self in (InstrumentClass.SOVEREIGN_BOND, InstrumentClass.CORPORATE_NOTE)


@dataclass(frozen=True, slots=True)
class Quote:
    """Latest quote for an equity, sovereign bond or corporate note."""

    symbol: str
    instrument_class: InstrumentClass
    bid: Optional[float] = None
    ask: Optional[float] = None
    last: Optional[float] = None
    pct_change: Optional[float] = None
    bid_size: Optional[float] = None
    ask_size: Optional[float] = None
    trades: Optional[float] = None
    volume: Optional[float] = None

    @property
    def identifier(self) -> str:
        return self.symbol


@dataclass(frozen=True, slots=True)
class MepQuote:
    """Implied USD rate for a bond pair, keyed by ticker."""

    ticker: str
    bid: Optional[float] = None
    ask: Optional[float] = None
    close: Optional[float] = None
    ars_bid: Optional[float] = None
    ars_ask: Optional[float] = None
    usd_bid: Optional[float] = None
    usd_ask: Optional[float] = None
    ars_volume: Optional[float] = None
    usd_volume: Optional[float] = None
    ars_trades: Optional[float] = None
    usd_trades: Optional[float] = None
    panel: Optional[str] = None
    instrument_class: InstrumentClass = field(default=InstrumentClass.FX_MEP, init=False)

    @property
    def identifier(self) -> str:
        return self.ticker


AnyQuote = Union[Quote, MepQuote]

_EMPTY: Mapping[str, AnyQuote] = MappingProxyType({})


@dataclass(frozen=True)
class QuoteSnapshot:
    """Immutable view of the latest quotes, one mapping per instrument class."""

    segments: Mapping[InstrumentClass, Mapping[str, AnyQuote]] = field(default_factory=dict)
    last_updated: Optional[datetime] = None

    def segment(self, instrument_class: InstrumentClass) -> Mapping[str, AnyQuote]:
        return self.segments.get(instrument_class, _EMPTY)

    def get(self, instrument_class: InstrumentClass, identifier: str) -> Optional[AnyQuote]:
        return self.segment(instrument_class).get(identifier)

    def find(self, identifier: str) -> Optional[AnyQuote]:
        """Search every class, in declaration order, for ``identifier``."""

        for instrument_class in InstrumentClass:
            quote = self.get(instrument_class, identifier)
            if quote is not None:
                return quote
        return None

    def quotes(self, instrument_class: InstrumentClass) -> list[AnyQuote]:
        return list(self.segment(instrument_class).values())


@dataclass(frozen=True, slots=True)
class HistoryPoint:
    timestamp: datetime
    price: float


@dataclass(frozen=True, slots=True)
class Favorite:
    identifier: str
    instrument_class: InstrumentClass


@dataclass(frozen=True, slots=True)
class PortfolioLine:
    """A user-entered holding with unit prices frozen at add time.

    For bonds and notes the stored unit prices are already divided by 100.
    """

    identifier: str
    quantity: float
    instrument_class: InstrumentClass
    unit_price_ars: float
    unit_price_usd: float
    last_price: Optional[float] = None


@dataclass(frozen=True, slots=True)
class PortfolioTotals:
    ars: float = 0.0
    usd: float = 0.0


@dataclass(frozen=True, slots=True)
class MepCalculatorState:
    notional_text: str = ""
    nominals: int = 0
    usd_amount: float = 0.0
    estimated_rate: float = 0.0
    bond_ratio_rate: float = 0.0


__all__ = [
    "InstrumentClass",
    "Quote",
    "MepQuote",
    "AnyQuote",
    "QuoteSnapshot",
    "HistoryPoint",
    "Favorite",
    "PortfolioLine",
    "PortfolioTotals",
    "MepCalculatorState",
]
