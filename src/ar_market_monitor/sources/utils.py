"""Utility helpers for parsing feed values and user input."""
from __future__ import annotations

import math
import re
from typing import Any, Optional


NON_NUMERIC = re.compile(r"[^0-9.\-]")


def parse_float(value: str | None) -> Optional[float]:
    """Parse a human readable float value, ignoring stray symbols."""

    if not value:
        return None
    cleaned = value.strip().replace("%", "")
    try:
        result = float(cleaned)
    except ValueError:
        cleaned = NON_NUMERIC.sub("", cleaned)
        try:
            result = float(cleaned)
        except ValueError:
            return None
    return result if math.isfinite(result) else None


def parse_number(value: Any) -> Optional[float]:
    """Coerce a raw feed field into a float, or ``None`` when unknown."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        result = float(value)
        return result if math.isfinite(result) else None
    if isinstance(value, str):
        return parse_float(value)
    return None


def parse_amount(text: str | None) -> float:
    """Parse an es-AR currency amount such as ``"$ 1.234,50"``.

    Dots are thousands separators and the comma is the decimal mark. Anything
    that does not parse yields zero.
    """

    if not text:
        return 0.0
    cleaned = re.sub(r"[^0-9,\-]", "", text).replace(",", ".")
    try:
        result = float(cleaned)
    except ValueError:
        return 0.0
    return result if math.isfinite(result) else 0.0


def parse_quantity(value: Any) -> Optional[float]:
    """Parse a user-entered quantity, returning ``None`` unless it is positive."""

    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        text = value.strip().replace(",", ".")
        if not text:
            return None
        try:
            quantity = float(text)
        except ValueError:
            return None
    elif isinstance(value, (int, float)):
        quantity = float(value)
    else:
        return None
    if not math.isfinite(quantity) or quantity <= 0:
        return None
    return quantity


__all__ = ["parse_float", "parse_number", "parse_amount", "parse_quantity"]
