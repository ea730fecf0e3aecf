"""
Totals Engine - Grand total and the full document totals pipeline.

Pure functions with no I/O.  Every figure is recomputed from the line
items and the header; cached line amounts are never trusted.

Pipeline (compute_document_totals):
    subtotal        = sum of line amounts
    discount_amount = header discount on subtotal (header-discount documents only)
    taxable_amount  = subtotal - discount_amount
    tax_amount      = signed tax on taxable_amount
    pre_round_total = taxable_amount + tax_amount + adjustment
    round_off       = rounding delta (rounding documents only)
    grand_total     = round2(taxable_amount + tax_amount + adjustment + round_off)

Usage:
    from docform_kernel.domain.values import DocumentHeader, LineItem
    from docform_engines.totals import compute_document_totals

    totals = compute_document_totals(
        [LineItem(quantity=2, rate=100, discount_percent=10, tax_percent=18)],
        DocumentHeader(tax_rate=5, tax_treatment="TDS", rounding_mode="nearest"),
    )
    totals.grand_total  # Decimal("202.00")
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal
from typing import Any

from docform_engines.discount import discount_amount
from docform_engines.line_amount import line_amount
from docform_engines.round_off import round_off
from docform_engines.tax import tax_amount
from docform_engines.tracer import traced_engine
from docform_kernel.domain.coercion import ZERO, round2, to_number
from docform_kernel.domain.values import DocumentHeader, DocumentTotals, LineItem
from docform_kernel.logging_config import get_logger

logger = get_logger("engines.totals")


@traced_engine(
    "grand_total",
    "1.0",
    fingerprint_fields=("subtotal", "tax", "adjustment", "rounding_delta"),
)
def grand_total(
    subtotal: Any,
    tax: Any,
    adjustment: Any = ZERO,
    rounding_delta: Any = ZERO,
) -> Decimal:
    """
    round2(subtotal + tax + adjustment + rounding_delta).

    ``tax`` is already signed by the tax engine.  No clamping: a total may
    go negative (e.g. large TDS or a negative adjustment).
    """
    return round2(
        to_number(subtotal)
        + to_number(tax)
        + to_number(adjustment)
        + to_number(rounding_delta)
    )


def compute_document_totals(
    items: Iterable[LineItem],
    header: DocumentHeader,
    *,
    header_discount: bool = True,
    allow_rounding: bool = True,
) -> DocumentTotals:
    """
    Run the whole totals pipeline for one document.

    Args:
        items: Canonical line items.
        header: Document-level parameters.
        header_discount: Apply header.discount_percent to the subtotal.
            Document types that only discount per line pass False.
        allow_rounding: Apply header.rounding_mode.  Document types
            without a round-off control pass False.

    Returns:
        DocumentTotals snapshot.
    """
    amounts = tuple(line_amount(item) for item in items)
    sub = round2(sum(amounts, ZERO))

    discount = (
        discount_amount(sub, header.discount_percent) if header_discount else ZERO
    )
    taxable = sub - discount
    tax = tax_amount(taxable, header.tax_rate, header.tax_treatment)
    pre_round = taxable + tax + header.adjustment
    delta = round_off(pre_round, header.rounding_mode) if allow_rounding else ZERO
    total = grand_total(taxable, tax, header.adjustment, delta)

    logger.debug("document_totals_computed", extra={
        "line_count": len(amounts),
        "subtotal": str(sub),
        "discount_amount": str(discount),
        "tax_amount": str(tax),
        "tax_treatment": header.tax_treatment.value,
        "round_off": str(delta),
        "grand_total": str(total),
    })

    return DocumentTotals(
        subtotal=sub,
        discount_amount=discount,
        taxable_amount=taxable,
        tax_amount=tax,
        adjustment=header.adjustment,
        pre_round_total=pre_round,
        round_off=delta,
        grand_total=total,
        line_amounts=amounts,
    )
