"""Tests for market hours and countdown helpers."""
from datetime import datetime, time, timezone
from zoneinfo import ZoneInfo

import pytest

from ar_market_monitor.clock import Countdown, format_clock, is_market_open

BUENOS_AIRES = ZoneInfo("America/Argentina/Buenos_Aires")


@pytest.mark.parametrize(
    "utc_hour, utc_minute, expected",
    [
        (13, 59, False),
        (14, 0, True),
        (17, 30, True),
        (20, 0, True),
        (20, 1, False),
        (2, 0, False),
    ],
)
def test_market_window_is_inclusive(utc_hour, utc_minute, expected) -> None:
    now = datetime(2024, 5, 15, utc_hour, utc_minute, tzinfo=timezone.utc)
    assert is_market_open(now, BUENOS_AIRES, time(11, 0), time(17, 0)) is expected


def test_format_clock_uses_exchange_timezone() -> None:
    moment = datetime(2024, 5, 15, 15, 7, tzinfo=timezone.utc)
    assert format_clock(moment, BUENOS_AIRES) == "12:07"


def test_countdown_wraps_to_interval() -> None:
    countdown = Countdown(3)

    assert [countdown.tick() for _ in range(5)] == [2, 1, 3, 2, 1]


def test_countdown_reset() -> None:
    countdown = Countdown(20)
    countdown.tick()
    countdown.reset()
    assert countdown.remaining == 20


def test_countdown_requires_positive_interval() -> None:
    with pytest.raises(ValueError):
        Countdown(0)
