"""Wiring of the repository, poller, history, MEP calculator, favorites and portfolio."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Mapping, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from .clock import Countdown, format_clock, is_market_open, utc_now
from .config import Settings
from .db import BlobStore
from .favorites import BlobStoreLike, FavoritesSet
from .history import PriceHistoryTracker
from .mep import MepCalculator
from .models import InstrumentClass, MepCalculatorState, Quote, QuoteSnapshot
from .poller import Poller, PollResult
from .portfolio import Portfolio
from .repository import QuoteRepository
from .sources import FeedSource, create_sources

LOGGER = logging.getLogger(__name__)

POLL_JOB_ID = "poll"
CLOCK_JOB_ID = "clock"
COUNTDOWN_JOB_ID = "countdown"

# Overlapping poll cycles are tolerated up to this many in flight. Each cycle
# gives up on its fetches after one poll interval, so the cap is never reached
# by stalled feeds.
MAX_CONCURRENT_POLLS = 3


class MarketMonitor:
    """Single owner of the monitor's mutable state.

    Poll results flow from the :class:`Poller` into the history tracker and
    MEP calculator through subscriptions; user intents arrive through the
    methods below.
    """

    def __init__(
        self,
        settings: Settings,
        sources: Mapping[InstrumentClass, FeedSource] | None = None,
        store: BlobStoreLike | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.settings = settings
        self._clock = clock
        self.repository = QuoteRepository()
        self.poller = Poller(
            self.repository,
            sources if sources is not None else create_sources(settings),
            clock=clock,
            fetch_deadline=settings.poll_interval_seconds,
        )
        self.history = PriceHistoryTracker(settings.history_size, clock=clock)
        self.mep = MepCalculator(settings.mep_bond, settings.mep_bond_usd)
        self.favorites = FavoritesSet(
            store if store is not None else BlobStore.from_url(settings.database_url)
        )
        self.portfolio = Portfolio()
        self.countdown = Countdown(settings.poll_interval_seconds)
        self.clock_display = format_clock(clock(), settings.tzinfo)

        self.poller.subscribe(self._record_history)
        self.poller.subscribe(self._refresh_mep)

    @property
    def snapshot(self) -> QuoteSnapshot:
        return self.repository.snapshot

    def market_open(self, now: Optional[datetime] = None) -> bool:
        return is_market_open(
            now or self._clock(),
            self.settings.tzinfo,
            self.settings.market_open,
            self.settings.market_close,
        )

    def _record_history(self, result: PollResult) -> None:
        market_open = self.market_open(result.completed_at)
        recorded = 0
        for instrument_class in result.succeeded:
            if instrument_class is InstrumentClass.FX_MEP:
                continue
            for quote in result.snapshot.quotes(instrument_class):
                if isinstance(quote, Quote) and quote.last is not None:
                    self.history.record(quote.symbol, quote.last, market_open)
                    recorded += 1
        LOGGER.debug("Recorded %d history prices (market open: %s)", recorded, market_open)

    def _refresh_mep(self, result: PollResult) -> None:
        self.mep.on_snapshot(result.snapshot)

    async def poll(self) -> PollResult:
        return await self.poller.poll_once()

    def tick_clock(self) -> str:
        self.clock_display = format_clock(self._clock(), self.settings.tzinfo)
        return self.clock_display

    def tick_countdown(self) -> int:
        return self.countdown.tick()

    def last_updated_display(self) -> Optional[str]:
        last_updated = self.snapshot.last_updated
        if last_updated is None:
            return None
        return format_clock(last_updated, self.settings.tzinfo)

    def set_mep_notional(self, text: str) -> MepCalculatorState:
        return self.mep.set_notional(text)

    def toggle_favorite(self, identifier: str, instrument_class: InstrumentClass) -> bool:
        return self.favorites.toggle(identifier, instrument_class)

    def add_to_portfolio(self, identifier: str, quantity):
        return self.portfolio.add(self.snapshot, identifier, quantity)

    def remove_from_portfolio(self, identifier: str) -> int:
        return self.portfolio.remove(identifier)

    def configure_jobs(self, scheduler: AsyncIOScheduler) -> None:
        """Register the poll, clock and countdown jobs as independent timers."""

        scheduler.add_job(
            self.poll,
            trigger=IntervalTrigger(seconds=self.settings.poll_interval_seconds),
            id=POLL_JOB_ID,
            next_run_time=self._clock(),
            max_instances=MAX_CONCURRENT_POLLS,
            coalesce=False,
            replace_existing=True,
        )
        scheduler.add_job(
            self.tick_clock,
            trigger=IntervalTrigger(seconds=1),
            id=CLOCK_JOB_ID,
            replace_existing=True,
        )
        scheduler.add_job(
            self.tick_countdown,
            trigger=IntervalTrigger(seconds=1),
            id=COUNTDOWN_JOB_ID,
            replace_existing=True,
        )
        LOGGER.info(
            "Scheduled polling every %ds with 1s clock and countdown",
            self.settings.poll_interval_seconds,
        )


__all__ = ["MarketMonitor", "POLL_JOB_ID", "CLOCK_JOB_ID", "COUNTDOWN_JOB_ID"]
