from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_FLOOR, ROUND_HALF_UP
from typing import Any, Optional

ZERO = Decimal("0")
CENT = Decimal("0.01")


def to_decimal(value: Any) -> Optional[Decimal]:
    """
    Coerce a number or numeric string to Decimal.

    Returns None for None, blank strings, booleans and anything non-numeric,
    including NaN and infinities.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        d = value
    elif isinstance(value, int):
        d = Decimal(value)
    elif isinstance(value, float):
        d = Decimal(repr(value))
    elif isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        try:
            d = Decimal(s)
        except InvalidOperation:
            return None
    else:
        return None
    if not d.is_finite():
        return None
    return d


def floor_units(value: Decimal) -> Decimal:
    """floor(abs(value)) to whole currency units."""
    return abs(value).to_integral_value(rounding=ROUND_FLOOR)


def floor_cents(value: Decimal) -> Decimal:
    """floor(abs(value)) to the smallest currency unit (two decimals)."""
    return abs(value).quantize(CENT, rounding=ROUND_FLOOR)


def quantize_money(value: Decimal) -> Decimal:
    """Round half-up to two decimals for storage and display."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def to_json_number(value: Optional[Decimal]) -> Optional[float]:
    """Serialize a stored amount or rate for JSON responses."""
    if value is None:
        return None
    return float(value)
