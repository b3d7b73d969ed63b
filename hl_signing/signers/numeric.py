"""
Numeric canonicalizers for hashed Hyperliquid payloads.

Prices and sizes travel as decimal strings, USD amounts and some legacy
quantities as scaled integers. Both forms go into the action hash, so the
conversion has to be exact: anything that would round beyond the venue's
tolerance is rejected instead of silently truncated.
"""

from __future__ import annotations

import math
from decimal import Decimal

from hl_signing.signers.exceptions import EncodingError

WIRE_DECIMALS = 8
HASHING_POWER = 8
USD_POWER = 6

# Max distance between the input and its 8-decimal rendering
_WIRE_TOLERANCE = 1e-12
# Max distance (in units of the scaled integer) from the nearest integer
_INT_TOLERANCE = 1e-3


def float_to_wire(x: float) -> str:
    """
    Render a float as the shortest plain decimal string the venue accepts.

    The value is rounded to 8 decimal places (correctly rounded from the
    binary value, ties to even), checked against the original, and stripped
    of trailing zeros and the decimal point when nothing follows it.

    Args:
        x: The price or size to render.

    Returns:
        Decimal string without exponent, e.g. ``"1670.1"`` or ``"1000"``.

    Raises:
        EncodingError: If more than 8 decimals are needed to represent ``x``.

    Example:
        >>> float_to_wire(0.0147)
        '0.0147'
    """
    if isinstance(x, bool) or not isinstance(x, (int, float)):
        raise EncodingError(f"float_to_wire expects a number, got {type(x).__name__}")
    if not math.isfinite(x):
        raise EncodingError(f"float_to_wire expects a finite number, got {x!r}")

    rounded = f"{x:.{WIRE_DECIMALS}f}"
    if abs(float(rounded) - x) >= _WIRE_TOLERANCE:
        raise EncodingError(f"float_to_wire causes rounding: {x!r}")

    normalized = Decimal(rounded).normalize()
    if normalized.is_zero():
        return "0"
    return f"{normalized:f}"


def float_to_int(x: float, power: int) -> int:
    """
    Scale ``x`` by ``10**power`` and round to the nearest integer.

    Raises:
        EncodingError: If the scaled value is not within 1e-3 of an integer.
    """
    if isinstance(x, bool) or not isinstance(x, (int, float)):
        raise EncodingError(f"float_to_int expects a number, got {type(x).__name__}")
    if not math.isfinite(x):
        raise EncodingError(f"float_to_int expects a finite number, got {x!r}")

    with_decimals = x * 10**power
    if not math.isfinite(with_decimals):
        raise EncodingError(f"float_to_int overflows: {x!r} at 1e{power}")
    res = round(with_decimals)
    if abs(res - with_decimals) >= _INT_TOLERANCE:
        raise EncodingError(f"float_to_int causes rounding: {x!r} at 1e{power}")
    return int(res)


def float_to_int_for_hashing(x: float) -> int:
    """Scale by 1e8 for integer quantities embedded in hashed actions."""
    return float_to_int(x, HASHING_POWER)


def float_to_usd_int(x: float) -> int:
    """Scale by 1e6 for USD-denominated integer fields."""
    return float_to_int(x, USD_POWER)
