"""
Coercion -- Safe conversion of raw form input to Decimal.

Responsibility:
    Turns whatever a form field or a repository record holds (strings,
    numbers, empty values, None, tax labels such as "GST 12%") into finite
    Decimals the calculators can use.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Imported by the engines and by record normalization in services.

Invariants enforced:
    - Never raises. Unparseable, missing or non-finite input degrades to
      the caller-supplied default (0 unless stated otherwise).
    - Results are always finite Decimals (never float).
    - round2 rounds half away from zero (ROUND_HALF_UP), never banker's
      rounding.

Failure modes:
    None by contract. The worst observable outcome is a 0-valued number.
"""

from __future__ import annotations

import math
import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from typing import Any

ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENT = Decimal("0.01")

# First contiguous integer or decimal run, sign not included.
_PERCENT_RE = re.compile(r"(\d+(?:\.\d+)?)")


def _in_range(result: Decimal) -> Decimal | None:
    # Form input is bounded by double precision; anything wider counts as missing.
    return result if math.isfinite(float(result)) else None


def _finite_decimal(value: Any) -> Decimal | None:
    """Convert to a finite Decimal within float range, or None."""
    if isinstance(value, bool):
        return Decimal(int(value))
    if isinstance(value, Decimal):
        return _in_range(value) if value.is_finite() else None
    if isinstance(value, int):
        return _in_range(Decimal(value))
    if isinstance(value, float):
        result = Decimal(repr(value))
        return result if result.is_finite() else None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            result = Decimal(text)
        except (InvalidOperation, ValueError):
            return None
        return _in_range(result) if result.is_finite() else None
    return None


def to_number(value: Any, default: Decimal | int = ZERO) -> Decimal:
    """
    Convert arbitrary input to a finite Decimal.

    Returns ``default`` for None, empty or whitespace-only strings, and
    anything that does not convert to a finite number ("abc", "NaN",
    "Infinity", lists, ...).  Magnitudes beyond double precision ("1e400")
    count as not finite.

    >>> to_number("42")
    Decimal('42')
    >>> to_number("", 7)
    Decimal('7')
    """
    fallback = default if isinstance(default, Decimal) else Decimal(default)
    if value is None:
        return fallback
    result = _finite_decimal(value)
    return fallback if result is None else result


def parse_percentage_label(value: Any) -> Decimal:
    """
    Reduce a tax selection to a plain percentage.

    Numbers are returned unchanged. Labels such as "GST 12%" or "IGST 5%"
    yield the first numeric run in the text. Empty input, or text without
    digits, yields 0.
    """
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, (int, float, Decimal)):
        result = _finite_decimal(value)
        return ZERO if result is None else result
    text = str(value)
    if not text:
        return ZERO
    match = _PERCENT_RE.search(text)
    if match is None:
        return ZERO
    result = _finite_decimal(match.group(1))
    return ZERO if result is None else result


def to_percent(value: Any) -> Decimal:
    """
    Coerce a percentage that may be a number, a numeric string or a label.

    Plain numbers and numeric strings keep their sign ("-5" stays -5);
    anything else goes through parse_percentage_label.
    """
    if value is None or isinstance(value, bool):
        return ZERO
    result = _finite_decimal(value)
    if result is not None:
        return result
    return parse_percentage_label(value)


def round2(value: Decimal) -> Decimal:
    """Round to cents, half away from zero."""
    with localcontext() as ctx:
        # quantize needs room for every integer digit plus two decimals
        ctx.prec = max(ctx.prec, value.adjusted() + 4)
        return value.quantize(CENT, rounding=ROUND_HALF_UP)
