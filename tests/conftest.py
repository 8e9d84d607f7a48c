"""Shared fixtures: fake feeds, a controllable clock and an in-memory blob store."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

from ar_market_monitor.config import Settings
from ar_market_monitor.models import AnyQuote, InstrumentClass, MepQuote, Quote
from ar_market_monitor.sources import FeedError, FeedSource

# 12:00 and 20:00 in Buenos Aires (UTC-3).
OPEN_TIME = datetime(2024, 5, 15, 15, 0, tzinfo=timezone.utc)
CLOSED_TIME = datetime(2024, 5, 15, 23, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class FakeSource(FeedSource):
    def __init__(self, instrument_class: InstrumentClass, quotes: list[AnyQuote] | None = None) -> None:
        super().__init__(instrument_class, f"memory://{instrument_class.value}")
        self.quotes = list(quotes or [])
        self.error: Optional[Exception] = None
        self.calls = 0

    def fetch_quotes(self) -> list[AnyQuote]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.quotes)


class MemoryStore:
    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.data = dict(initial or {})
        self.writes = 0

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def put(self, key: str, value: str) -> None:
        self.writes += 1
        self.data[key] = value


def equity(symbol: str, **fields) -> Quote:
    return Quote(symbol=symbol, instrument_class=InstrumentClass.EQUITY, **fields)


def bond(symbol: str, **fields) -> Quote:
    return Quote(symbol=symbol, instrument_class=InstrumentClass.SOVEREIGN_BOND, **fields)


def note(symbol: str, **fields) -> Quote:
    return Quote(symbol=symbol, instrument_class=InstrumentClass.CORPORATE_NOTE, **fields)


def mep(ticker: str, **fields) -> MepQuote:
    return MepQuote(ticker=ticker, **fields)


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def open_clock() -> FakeClock:
    return FakeClock(OPEN_TIME)


@pytest.fixture
def closed_clock() -> FakeClock:
    return FakeClock(CLOSED_TIME)


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def sources() -> dict[InstrumentClass, FakeSource]:
    return {
        InstrumentClass.EQUITY: FakeSource(
            InstrumentClass.EQUITY,
            [equity("GGAL", bid=4000.0, ask=4010.0, last=4005.0, pct_change=1.5), equity("YPFD", last=30000.0)],
        ),
        InstrumentClass.SOVEREIGN_BOND: FakeSource(
            InstrumentClass.SOVEREIGN_BOND,
            [bond("AL30", ask=50.0, last=5000.0), bond("AL30D", ask=48.0, last=60.0)],
        ),
        InstrumentClass.CORPORATE_NOTE: FakeSource(
            InstrumentClass.CORPORATE_NOTE,
            [note("YCA6O", bid=100.0, ask=101.0)],
        ),
        InstrumentClass.FX_MEP: FakeSource(
            InstrumentClass.FX_MEP,
            [mep("AL30", bid=1190.0, ask=1200.0, panel="bonds"), mep("GD30", ask=1210.0, panel="bonds")],
        ),
    }


__all__ = [
    "FakeClock",
    "FakeSource",
    "MemoryStore",
    "FeedError",
    "OPEN_TIME",
    "CLOSED_TIME",
    "equity",
    "bond",
    "note",
    "mep",
]
