"""Bounded per-instrument price history."""
from __future__ import annotations

import logging
from collections import deque
from datetime import datetime, timedelta
from typing import Callable, Deque, Dict

from .clock import utc_now
from .models import HistoryPoint

LOGGER = logging.getLogger(__name__)

DEFAULT_MAX_POINTS = 30
BACKFILL_STEP = timedelta(minutes=1)


class PriceHistoryTracker:
    """Keeps the most recent prices for each identifier.

    While the market is open a point is appended whenever the price moves.
    While it is closed an existing series is frozen, and a missing one is
    backfilled with a flat line of ``max_points`` points, one minute apart,
    ending now.
    """

    def __init__(
        self,
        max_points: int = DEFAULT_MAX_POINTS,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        if max_points <= 0:
            raise ValueError("max_points must be positive")
        self.max_points = max_points
        self._clock = clock
        self._series: Dict[str, Deque[HistoryPoint]] = {}

    def record(self, identifier: str, price: float, market_open: bool) -> None:
        now = self._clock()
        series = self._series.get(identifier)

        if not market_open:
            if series:
                return
            self._series[identifier] = deque(
                (
                    HistoryPoint(now - BACKFILL_STEP * (self.max_points - 1 - offset), price)
                    for offset in range(self.max_points)
                ),
                maxlen=self.max_points,
            )
            LOGGER.debug("Backfilled flat history for %s at %s", identifier, price)
            return

        if series is None:
            series = deque(maxlen=self.max_points)
            self._series[identifier] = series
        if series and series[-1].price == price:
            return
        if series and now <= series[-1].timestamp:
            # Keep timestamps strictly increasing even if the clock stalls.
            now = series[-1].timestamp + timedelta(microseconds=1)
        series.append(HistoryPoint(now, price))

    def series(self, identifier: str) -> list[HistoryPoint]:
        return list(self._series.get(identifier, ()))

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._series

    def __len__(self) -> int:
        return len(self._series)


__all__ = ["PriceHistoryTracker", "DEFAULT_MAX_POINTS"]
