"""Tests for the concurrent poll cycle."""
import asyncio
import threading

from ar_market_monitor.models import InstrumentClass
from ar_market_monitor.poller import Poller, PollResult
from ar_market_monitor.repository import QuoteRepository
from ar_market_monitor.sources import FeedError, FeedSource

from conftest import OPEN_TIME, FakeClock, FakeSource, equity


def _poller(sources, clock=None) -> Poller:
    return Poller(QuoteRepository(), sources, clock=clock or FakeClock(OPEN_TIME))


def test_successful_cycle_holds_union_of_all_feeds(sources) -> None:
    poller = _poller(sources)

    result = asyncio.run(poller.poll_once())

    assert result.complete
    assert result.snapshot.last_updated == OPEN_TIME
    for instrument_class, source in sources.items():
        segment = result.snapshot.segment(instrument_class)
        assert list(segment.values()) == source.quotes
        assert all(quote.instrument_class is instrument_class for quote in segment.values())
    assert result.succeeded[InstrumentClass.EQUITY] == 2


def test_failed_class_keeps_previous_segment(sources) -> None:
    clock = FakeClock(OPEN_TIME)
    poller = _poller(sources, clock)
    asyncio.run(poller.poll_once())
    previous_bonds = poller.repository.snapshot.segment(InstrumentClass.SOVEREIGN_BOND)

    sources[InstrumentClass.SOVEREIGN_BOND].error = FeedError("bonds down")
    sources[InstrumentClass.EQUITY].quotes = [equity("BMA", last=9000.0)]
    clock.advance(20)
    result = asyncio.run(poller.poll_once())

    assert not result.complete
    assert result.failed == {InstrumentClass.SOVEREIGN_BOND: "bonds down"}
    snapshot = poller.repository.snapshot
    assert snapshot.segment(InstrumentClass.SOVEREIGN_BOND) == previous_bonds
    assert set(snapshot.segment(InstrumentClass.EQUITY)) == {"BMA"}
    # Partial failure does not advance the global timestamp.
    assert snapshot.last_updated == OPEN_TIME


def test_failure_on_first_cycle_leaves_class_empty(sources) -> None:
    sources[InstrumentClass.FX_MEP].error = RuntimeError("timeout")
    poller = _poller(sources)

    result = asyncio.run(poller.poll_once())

    assert result.snapshot.segment(InstrumentClass.FX_MEP) == {}
    assert result.snapshot.last_updated is None
    assert InstrumentClass.EQUITY in result.succeeded


def test_fetches_run_concurrently() -> None:
    barrier = threading.Barrier(4, timeout=5)

    class BarrierSource(FakeSource):
        def fetch_quotes(self):
            # Only returns once all four fetches are in flight together.
            barrier.wait()
            return super().fetch_quotes()

    poller = _poller({cls: BarrierSource(cls) for cls in InstrumentClass})

    result = asyncio.run(poller.poll_once())

    assert result.complete


def test_subscribers_receive_result_after_merge(sources) -> None:
    poller = _poller(sources)
    seen: list[PollResult] = []

    def subscriber(result: PollResult) -> None:
        assert poller.repository.snapshot is result.snapshot
        seen.append(result)

    poller.subscribe(subscriber)
    asyncio.run(poller.poll_once())

    assert len(seen) == 1


class GatedSource(FeedSource):
    """Blocks its first call until released, then serves batches in call order."""

    def __init__(self, batches) -> None:
        super().__init__(InstrumentClass.EQUITY, "memory://gated")
        self.batches = list(batches)
        self.calls = 0
        self.lock = threading.Lock()
        self.first_call_started = threading.Event()
        self.release = threading.Event()

    def fetch_quotes(self):
        with self.lock:
            index = self.calls
            self.calls += 1
        if index == 0:
            self.first_call_started.set()
            self.release.wait(timeout=5)
        return list(self.batches[index])


def test_overlapping_cycles_last_completion_wins(sources) -> None:
    gated = GatedSource([[equity("OLD", last=1.0)], [equity("NEW", last=2.0)]])
    sources[InstrumentClass.EQUITY] = gated
    poller = _poller(sources)

    async def scenario():
        slow_cycle = asyncio.create_task(poller.poll_once())
        await asyncio.to_thread(gated.first_call_started.wait, 5)

        await poller.poll_once()
        assert set(poller.repository.snapshot.segment(InstrumentClass.EQUITY)) == {"NEW"}
        assert poller.repository.snapshot.segment(InstrumentClass.SOVEREIGN_BOND)

        gated.release.set()
        await slow_cycle

    asyncio.run(scenario())

    assert set(poller.repository.snapshot.segment(InstrumentClass.EQUITY)) == {"OLD"}


def test_stalled_fetch_fails_after_deadline(sources) -> None:
    stalled = GatedSource([[equity("LATE", last=1.0)]])
    sources[InstrumentClass.EQUITY] = stalled
    poller = Poller(QuoteRepository(), sources, clock=FakeClock(OPEN_TIME), fetch_deadline=0.05)

    async def scenario():
        try:
            return await poller.poll_once()
        finally:
            stalled.release.set()

    result = asyncio.run(scenario())

    assert InstrumentClass.EQUITY in result.failed
    assert not result.complete
    assert result.snapshot.last_updated is None
    assert result.succeeded[InstrumentClass.SOVEREIGN_BOND] == 2
    assert not result.snapshot.segment(InstrumentClass.EQUITY)


def test_result_to_dict_reports_classes(sources) -> None:
    sources[InstrumentClass.CORPORATE_NOTE].error = FeedError("503")
    result = asyncio.run(_poller(sources).poll_once())

    data = result.to_dict()

    assert data["complete"] is False
    assert data["failed"] == {"corporate_note": "503"}
    assert data["succeeded"]["equity"] == 2
