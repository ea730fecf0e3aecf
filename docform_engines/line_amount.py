"""
Line Amount Engine - Monetary amount of a single document line.

Order of operations is fixed: discount first, then tax on the discounted
base. Reversing the order is a different (incompatible) invoicing policy.

    base          = quantity * rate
    discount      = base * discount_percent / 100
    after_discount = base - discount
    line_tax      = after_discount * tax_percent / 100
    amount        = round2(after_discount + line_tax)

Negative quantities, rates and percentages are not clamped; the result
simply propagates the sign.

Usage:
    from decimal import Decimal
    from docform_kernel.domain.values import LineItem
    from docform_engines.line_amount import line_amount

    item = LineItem(quantity=2, rate=100, discount_percent=10, tax_percent=18)
    line_amount(item)  # Decimal("212.40")
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from docform_engines.tracer import traced_engine
from docform_kernel.domain.coercion import HUNDRED, ZERO, round2
from docform_kernel.domain.values import LineItem


@traced_engine("line_amount", "1.0", fingerprint_fields=("item",))
def line_amount(item: LineItem) -> Decimal:
    """Amount for one line, rounded to cents half away from zero."""
    base = item.quantity * item.rate
    discount = base * item.discount_percent / HUNDRED
    after_discount = base - discount
    line_tax = after_discount * item.tax_percent / HUNDRED
    return round2(after_discount + line_tax)


@traced_engine("subtotal", "1.0")
def subtotal(items: Iterable[LineItem]) -> Decimal:
    """Sum of line amounts, recomputed from the items (cached amounts are ignored)."""
    total = ZERO
    for item in items:
        total += line_amount(item)
    return round2(total)
