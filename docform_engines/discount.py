"""
Discount Engine - Document-level discount amount.

Used by document types that discount the whole subtotal from the header
rather than per line (bills, vendor credits, purchase orders, recurring
bills).
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from docform_engines.tracer import traced_engine
from docform_kernel.domain.coercion import HUNDRED, round2, to_number


@traced_engine("discount", "1.0", fingerprint_fields=("base", "percent"))
def discount_amount(base: Any, percent: Any) -> Decimal:
    """round2(base * percent / 100). Non-numeric input counts as 0."""
    return round2(to_number(base) * to_number(percent) / HUNDRED)
