from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP

CENT = Decimal("0.01")


def to_decimal(value) -> Decimal:
    """Exact decimal for a stored number (floats go through repr, not binary)."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_money(value) -> float:
    """Round half-up to two decimals and hand back a JSON-friendly float."""
    return float(to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP))
