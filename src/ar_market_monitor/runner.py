"""Command line entry point for the market monitor."""
from __future__ import annotations

import argparse
import asyncio
import logging
from typing import Iterable

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from .config import Settings
from .logging_utils import configure_logging
from .monitor import MarketMonitor
from .poller import PollResult

LOGGER = logging.getLogger(__name__)


def summarize(monitor: MarketMonitor, result: PollResult) -> None:
    """Log per-class counts and the MEP bond ratio after a cycle."""

    for instrument_class, count in result.succeeded.items():
        LOGGER.info("%s: %d quotes", instrument_class.value, count)
    for instrument_class, reason in result.failed.items():
        LOGGER.warning("%s: unavailable (%s)", instrument_class.value, reason)
    LOGGER.info(
        "MEP %s/%s bond ratio: %.2f",
        monitor.mep.bond,
        monitor.mep.bond_usd,
        monitor.mep.state.bond_ratio_rate,
    )


async def run_once(settings: Settings) -> PollResult:
    monitor = MarketMonitor(settings)
    result = await monitor.poll()
    summarize(monitor, result)
    return result


async def run_forever(settings: Settings) -> None:
    monitor = MarketMonitor(settings)
    scheduler = AsyncIOScheduler()
    monitor.configure_jobs(scheduler)
    scheduler.start()
    try:
        await asyncio.Event().wait()
    finally:
        scheduler.shutdown(wait=False)


def parse_args(args: Iterable[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging output",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single poll cycle and exit",
    )
    return parser.parse_args(args=args)


def main(argv: Iterable[str] | None = None) -> None:
    options = parse_args(argv)
    settings = Settings.load()
    configure_logging(logging.DEBUG if options.verbose else settings.log_level)
    try:
        asyncio.run(run_once(settings) if options.once else run_forever(settings))
    except KeyboardInterrupt:
        LOGGER.info("Interrupted, shutting down")


if __name__ == "__main__":  # pragma: no cover
    main()
