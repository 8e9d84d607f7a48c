"""FastAPI application exposing quote views and user intents."""
from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any, Optional, Union

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI, HTTPException, Request, status
from pydantic import BaseModel

from .config import Settings
from .logging_utils import configure_logging
from .models import InstrumentClass, MepQuote, Quote
from .monitor import MarketMonitor
from .views import (
    favorite_quotes,
    filter_and_sort,
    mep_panel,
    portfolio_candidates,
    quotes_to_dicts,
)

LOGGER = logging.getLogger(__name__)


class NotionalIn(BaseModel):
    notional: str


class FavoriteIn(BaseModel):
    identifier: str
    instrument_class: InstrumentClass


class PortfolioLineIn(BaseModel):
    identifier: str
    quantity: Union[float, str]


def _parse_class(value: str) -> InstrumentClass:
    try:
        return InstrumentClass(value)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown instrument class: {value}") from None


def _monitor(request: Request) -> MarketMonitor:
    return request.app.state.monitor


def _portfolio_payload(monitor: MarketMonitor) -> dict[str, Any]:
    totals = monitor.portfolio.valuate()
    return {
        "lines": [
            {**asdict(line), "instrument_class": line.instrument_class.value}
            for line in monitor.portfolio.lines
        ],
        "totals": asdict(totals),
    }


def create_app(monitor: Optional[MarketMonitor] = None, *, start_scheduler: bool = True) -> FastAPI:
    """Build the application; the monitor is created on startup when not supplied."""

    app = FastAPI(title="Argentine Market Monitor")
    app.state.monitor = monitor
    scheduler = AsyncIOScheduler()

    @app.on_event("startup")
    async def startup_event() -> None:
        LOGGER.info("Starting FastAPI application")
        if app.state.monitor is None:
            settings = Settings.load()
            configure_logging(settings.log_level)
            app.state.monitor = MarketMonitor(settings)
        if start_scheduler and not scheduler.running:
            app.state.monitor.configure_jobs(scheduler)
            scheduler.start()
            LOGGER.info("Scheduler started")

    @app.on_event("shutdown")
    async def shutdown_event() -> None:
        if scheduler.running:
            scheduler.shutdown()
            LOGGER.info("Scheduler shut down")

    @app.get("/status")
    async def show_status(request: Request) -> dict[str, Any]:
        monitor = _monitor(request)
        last_updated = monitor.snapshot.last_updated
        return {
            "last_updated": last_updated.isoformat() if last_updated else None,
            "last_updated_display": monitor.last_updated_display(),
            "countdown": monitor.countdown.remaining,
            "clock": monitor.clock_display,
            "market_open": monitor.market_open(),
        }

    @app.get("/quotes/{instrument_class}")
    async def list_quotes(
        request: Request,
        instrument_class: str,
        search: str = "",
        sort_by: str = "symbol",
        order: str = "asc",
    ) -> list[dict[str, Any]]:
        cls = _parse_class(instrument_class)
        quotes = _monitor(request).snapshot.quotes(cls)
        if cls is InstrumentClass.FX_MEP:
            rows = sorted(
                (q for q in quotes if isinstance(q, MepQuote) and search.lower() in q.ticker.lower()),
                key=lambda q: q.ticker,
            )
            return quotes_to_dicts(rows)
        try:
            rows = filter_and_sort([q for q in quotes if isinstance(q, Quote)], search, sort_by, order)
        except ValueError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
        return quotes_to_dicts(rows)

    @app.get("/mep/panel")
    async def show_mep_panel(request: Request, search: str = "") -> list[dict[str, Any]]:
        quotes = _monitor(request).snapshot.quotes(InstrumentClass.FX_MEP)
        return quotes_to_dicts(mep_panel([q for q in quotes if isinstance(q, MepQuote)], search))

    @app.get("/history/{identifier}")
    async def show_history(request: Request, identifier: str) -> list[dict[str, Any]]:
        monitor = _monitor(request)
        if identifier not in monitor.history:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"No history for {identifier}")
        return [
            {"timestamp": point.timestamp.isoformat(), "price": point.price}
            for point in monitor.history.series(identifier)
        ]

    @app.get("/mep")
    async def show_mep(request: Request) -> dict[str, Any]:
        return asdict(_monitor(request).mep.state)

    @app.post("/mep")
    async def update_mep(request: Request, payload: NotionalIn) -> dict[str, Any]:
        state = _monitor(request).set_mep_notional(payload.notional)
        LOGGER.debug("MEP notional set to %r", payload.notional)
        return asdict(state)

    @app.get("/favorites")
    async def list_favorites(request: Request) -> dict[str, Any]:
        monitor = _monitor(request)
        return {
            "favorites": [
                {"identifier": fav.identifier, "instrument_class": fav.instrument_class.value}
                for fav in monitor.favorites
            ],
            "quotes": quotes_to_dicts(favorite_quotes(monitor.snapshot, monitor.favorites)),
        }

    @app.post("/favorites/toggle")
    async def toggle_favorite(request: Request, payload: FavoriteIn) -> dict[str, Any]:
        present = _monitor(request).toggle_favorite(payload.identifier, payload.instrument_class)
        LOGGER.info(
            "Favorite %s (%s) %s",
            payload.identifier,
            payload.instrument_class.value,
            "added" if present else "removed",
        )
        return {"identifier": payload.identifier, "favorite": present}

    @app.get("/portfolio")
    async def show_portfolio(request: Request) -> dict[str, Any]:
        return _portfolio_payload(_monitor(request))

    @app.get("/portfolio/candidates")
    async def list_candidates(request: Request, search: str = "") -> list[str]:
        return portfolio_candidates(_monitor(request).snapshot, search)

    @app.post("/portfolio")
    async def add_portfolio_line(request: Request, payload: PortfolioLineIn) -> dict[str, Any]:
        monitor = _monitor(request)
        monitor.add_to_portfolio(payload.identifier, payload.quantity)
        return _portfolio_payload(monitor)

    @app.delete("/portfolio/{identifier}")
    async def remove_portfolio_line(request: Request, identifier: str) -> dict[str, Any]:
        monitor = _monitor(request)
        monitor.remove_from_portfolio(identifier)
        return _portfolio_payload(monitor)

    return app


app = create_app()


__all__ = ["app", "create_app"]
