"""
Insights Core v1.0.0 — Token Value Normalizer

Converts a token leg's raw integer amount into USD.

Formula (frozen):
    usd = (amount / 10^decimal) * price

The backend price is authoritative and never recomputed. Malformed numeric
input coerces to 0 so one poisoned leg cannot corrupt a whole aggregate.
A leg is never worth less than 0: a negative amount or price is malformed.
"""

import math
from decimal import Decimal
from typing import Any, Optional

from .models import TokenLeg


def parse_decimal(value: Any) -> float:
    """
    Parse a decimal string (or number) to float.

    Empty, non-numeric, NaN and infinite inputs all return 0.0.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float, Decimal)):
        out = float(value)
    else:
        text = str(value).strip()
        if not text:
            return 0.0
        try:
            out = float(text)
        except ValueError:
            return 0.0
    if math.isnan(out) or math.isinf(out):
        return 0.0
    return out


def parse_int(value: Any) -> int:
    """Parse an integer amount or decimals count; malformed input → 0."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return int(parse_decimal(value))


def usd_value(leg: Optional[TokenLeg]) -> float:
    """USD value of one leg. Missing or negative-valued leg → 0.0."""
    if leg is None:
        return 0.0
    decimals = max(0, parse_int(leg.decimal))
    # Decimal scaling keeps very large amounts / decimals from overflowing float
    units = float(Decimal(parse_int(leg.amount)).scaleb(-decimals))
    price = parse_decimal(leg.price)
    if units <= 0 or price <= 0:
        return 0.0
    out = units * price
    if not math.isfinite(out):
        return 0.0
    return out
