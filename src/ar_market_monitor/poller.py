"""Concurrent fetch-and-merge cycle over the four feeds."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Mapping, Optional

from .clock import utc_now
from .models import AnyQuote, InstrumentClass, QuoteSnapshot
from .repository import QuoteRepository
from .sources import FeedSource

LOGGER = logging.getLogger(__name__)


@dataclass
class PollResult:
    """Outcome of one poll cycle."""

    snapshot: QuoteSnapshot
    completed_at: datetime
    succeeded: Dict[InstrumentClass, int] = field(default_factory=dict)
    failed: Dict[InstrumentClass, str] = field(default_factory=dict)

    @property
    def complete(self) -> bool:
        """True when every feed in the cycle succeeded."""
        return not self.failed

    def to_dict(self) -> dict[str, object]:
        return {
            "completed_at": self.completed_at.isoformat(),
            "complete": self.complete,
            "succeeded": {cls.value: count for cls, count in self.succeeded.items()},
            "failed": {cls.value: reason for cls, reason in self.failed.items()},
        }


Subscriber = Callable[[PollResult], None]


class Poller:
    """Fetches every source concurrently and merges the results.

    Sources run in worker threads; the merge and subscriber notifications run
    on the event loop thread once all fetches of the cycle have resolved.
    Overlapping cycles are allowed and the last one to finish wins per class.

    With ``fetch_deadline`` set, a fetch still running after that many seconds
    counts as a failure for the cycle. Its worker thread is left to finish on
    its own and the result is discarded.
    """

    def __init__(
        self,
        repository: QuoteRepository,
        sources: Mapping[InstrumentClass, FeedSource],
        clock: Callable[[], datetime] = utc_now,
        fetch_deadline: Optional[float] = None,
    ) -> None:
        self.repository = repository
        self.sources = dict(sources)
        self.fetch_deadline = fetch_deadline
        self._clock = clock
        self._subscribers: List[Subscriber] = []

    def subscribe(self, callback: Subscriber) -> None:
        self._subscribers.append(callback)

    async def _fetch(self, source: FeedSource) -> list[AnyQuote]:
        fetch = asyncio.to_thread(source.fetch_quotes)
        if self.fetch_deadline is None:
            return await fetch
        return await asyncio.wait_for(fetch, self.fetch_deadline)

    async def poll_once(self) -> PollResult:
        classes = list(self.sources)
        outcomes = await asyncio.gather(
            *(self._fetch(self.sources[cls]) for cls in classes),
            return_exceptions=True,
        )

        updates: Dict[InstrumentClass, list[AnyQuote]] = {}
        failed: Dict[InstrumentClass, str] = {}
        for instrument_class, outcome in zip(classes, outcomes):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                LOGGER.warning(
                    "Failed to fetch %s feed: %s", instrument_class.value, outcome
                )
                failed[instrument_class] = str(outcome) or type(outcome).__name__
                continue
            updates[instrument_class] = outcome

        completed_at = self._clock()
        snapshot = self.repository.replace_segments(
            updates,
            last_updated=completed_at if not failed else None,
        )
        result = PollResult(
            snapshot=snapshot,
            completed_at=completed_at,
            succeeded={cls: len(quotes) for cls, quotes in updates.items()},
            failed=failed,
        )
        LOGGER.info(
            "Poll cycle finished: %d/%d feeds updated",
            len(updates),
            len(classes),
        )

        for callback in self._subscribers:
            callback(result)
        return result


__all__ = ["Poller", "PollResult", "Subscriber"]
