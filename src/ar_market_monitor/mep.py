"""MEP (bond-implied USD rate) calculator."""
from __future__ import annotations

import logging
import math
import re

from .models import InstrumentClass, MepCalculatorState, QuoteSnapshot
from .sources.utils import parse_amount

LOGGER = logging.getLogger(__name__)


def parse_notional(text: str | None) -> float:
    """Parse the entered ARS amount; anything unparseable counts as zero."""

    return parse_amount(text)


def format_notional_input(raw: str) -> str:
    """Normalise free text into an es-AR currency string such as ``$ 100.000``."""

    digits = re.sub(r"\D", "", raw or "")
    if not digits:
        return ""
    grouped = f"{int(digits):,}".replace(",", ".")
    return f"$ {grouped}"


def compute_mep(notional_text: str, bond_ask: float, bond_usd_ask: float) -> MepCalculatorState:
    """Compute the full calculator state from the notional and both ask prices.

    Both bonds are quoted per 100 of face value.
    """

    notional = max(parse_notional(notional_text), 0.0)
    nominals = math.floor(notional / (bond_ask / 100)) if bond_ask > 0 else 0
    usd_amount = nominals * (bond_usd_ask / 100)
    estimated_rate = notional / usd_amount if usd_amount > 0 else 0.0
    bond_ratio_rate = bond_ask / bond_usd_ask if bond_usd_ask > 0 else 0.0
    return MepCalculatorState(
        notional_text=notional_text,
        nominals=nominals,
        usd_amount=usd_amount,
        estimated_rate=estimated_rate,
        bond_ratio_rate=bond_ratio_rate,
    )


class MepCalculator:
    """Keeps the calculator state in sync with the notional and bond prices."""

    def __init__(self, bond: str = "AL30", bond_usd: str | None = None) -> None:
        self.bond = bond
        self.bond_usd = bond_usd or f"{bond}D"
        self.bond_ask = 0.0
        self.bond_usd_ask = 0.0
        self.state = MepCalculatorState()

    def _recompute(self) -> MepCalculatorState:
        self.state = compute_mep(self.state.notional_text, self.bond_ask, self.bond_usd_ask)
        LOGGER.debug(
            "Recomputed MEP: nominals=%d usd=%.2f estimated=%.4f ratio=%.4f",
            self.state.nominals,
            self.state.usd_amount,
            self.state.estimated_rate,
            self.state.bond_ratio_rate,
        )
        return self.state

    def set_notional(self, text: str) -> MepCalculatorState:
        """Store the entered amount as ``$ 100.000``-style text and recompute."""

        self.state = MepCalculatorState(notional_text=format_notional_input(text))
        return self._recompute()

    def update_prices(self, bond_ask: float, bond_usd_ask: float) -> MepCalculatorState:
        self.bond_ask = bond_ask
        self.bond_usd_ask = bond_usd_ask
        return self._recompute()

    def on_snapshot(self, snapshot: QuoteSnapshot) -> MepCalculatorState:
        """Read the bond pair's ask prices, treating missing quotes as zero."""

        bond = snapshot.get(InstrumentClass.SOVEREIGN_BOND, self.bond)
        bond_usd = snapshot.get(InstrumentClass.SOVEREIGN_BOND, self.bond_usd)
        bond_ask = (bond.ask if bond is not None else None) or 0.0
        bond_usd_ask = (bond_usd.ask if bond_usd is not None else None) or 0.0
        if (bond_ask, bond_usd_ask) == (self.bond_ask, self.bond_usd_ask):
            return self.state
        return self.update_prices(bond_ask, bond_usd_ask)


__all__ = ["MepCalculator", "compute_mep", "parse_notional", "format_notional_input"]
