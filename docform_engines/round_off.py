"""
Round-off Engine - Signed rounding adjustment for a pre-rounding total.

Returns the delta to ADD to the total, not the rounded total itself:

    NO_ROUNDING -> 0
    NEAREST     -> round(total) - total   (half away from zero)
    FLOOR       -> floor(total) - total
    CEIL        -> ceil(total) - total

All deltas are rounded to cents.
"""

from __future__ import annotations

from decimal import ROUND_CEILING, ROUND_FLOOR, ROUND_HALF_UP, Decimal, localcontext
from typing import Any

from docform_engines.tracer import traced_engine
from docform_kernel.domain.coercion import ZERO, round2, to_number
from docform_kernel.domain.values import RoundingMode

_WHOLE = Decimal("1")

_DECIMAL_ROUNDING = {
    RoundingMode.NEAREST: ROUND_HALF_UP,
    RoundingMode.FLOOR: ROUND_FLOOR,
    RoundingMode.CEIL: ROUND_CEILING,
}


@traced_engine("round_off", "1.0", fingerprint_fields=("pre_round_total", "mode"))
def round_off(
    pre_round_total: Any,
    mode: RoundingMode | str = RoundingMode.NO_ROUNDING,
) -> Decimal:
    """Signed cents delta that moves ``pre_round_total`` to a whole figure under ``mode``."""
    rounding_mode = RoundingMode.coerce(mode)
    if rounding_mode is RoundingMode.NO_ROUNDING:
        return ZERO

    total = to_number(pre_round_total)
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, total.adjusted() + 2)
        rounded = total.quantize(_WHOLE, rounding=_DECIMAL_ROUNDING[rounding_mode])
    return round2(rounded - total)
