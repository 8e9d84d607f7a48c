"""Market-hours and countdown helpers."""
from __future__ import annotations

from datetime import datetime, time, timezone, tzinfo


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def is_market_open(now: datetime, tz: tzinfo, open_at: time, close_at: time) -> bool:
    """Return whether ``now`` falls inside the daily trading window.

    Both bounds are inclusive. No holiday or weekend calendar is consulted.
    """

    local = now.astimezone(tz).time().replace(tzinfo=None)
    return open_at <= local <= close_at


def format_clock(moment: datetime, tz: tzinfo) -> str:
    return moment.astimezone(tz).strftime("%H:%M")


class Countdown:
    """Seconds left until the next scheduled refresh."""

    def __init__(self, interval: int) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.interval = interval
        self.remaining = interval

    def tick(self) -> int:
        if self.remaining <= 1:
            self.remaining = self.interval
        else:
            self.remaining -= 1
        return self.remaining

    def reset(self) -> None:
        self.remaining = self.interval


__all__ = ["utc_now", "is_market_open", "format_clock", "Countdown"]
