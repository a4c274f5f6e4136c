"""
Fixed-point money helpers.

Storage is integer cents and integer basis points; computation is
``Decimal`` quantized to two places with ROUND_HALF_UP.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

TWO_PLACES = Decimal("0.01")
HUNDRED = Decimal(100)

# Largest amount accepted from a request (9,999,999.99)
MAX_MONEY_CENTS = 999_999_999
MAX_MONEY = Decimal(MAX_MONEY_CENTS) / HUNDRED


def to_decimal(value) -> Decimal:
    """
    Coerce a JSON/CLI value into a finite Decimal.

    Floats go through ``str`` so 0.1 stays 0.1 instead of its binary expansion.
    Raises ValueError for booleans, non-numeric strings, NaN and infinities.
    """
    if isinstance(value, bool) or value is None:
        raise ValueError("value must be a number")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float)):
        result = Decimal(str(value))
    elif isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation:
            raise ValueError(f"{value!r} is not a number")
    else:
        raise ValueError("value must be a number")
    if not result.is_finite():
        raise ValueError("value must be finite")
    return result


def round2(value: Decimal) -> Decimal:
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def cents_to_decimal(cents: int | None) -> Decimal | None:
    if cents is None:
        return None
    return round2(Decimal(cents) / HUNDRED)


def decimal_to_cents(value: Decimal) -> int:
    return int(round2(value) * HUNDRED)


# Basis points: 1800 bps == 18.00%
bps_to_percent = cents_to_decimal
percent_to_bps = decimal_to_cents


def format_money(value: Decimal | None) -> str | None:
    """Render a two-place decimal string for JSON payloads."""
    if value is None:
        return None
    return str(round2(value))
