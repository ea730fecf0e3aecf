"""
Submission snapshot for the external document-repository client.

build_submission() recomputes every line amount and every total from the
current inputs.  Cached amounts on the session are ignored, so the payload
is correct even if a debounced pass has not fired yet.  Keys follow the
repository's camelCase record shape; numbers stay Decimal for the client
to serialize.
"""

from __future__ import annotations

from typing import Any

from docform_engines.line_amount import line_amount
from docform_engines.totals import compute_document_totals
from docform_kernel.logging_config import LogContext, get_logger
from docform_services.document import DocumentSession

logger = get_logger("services.submission")


def build_submission(session: DocumentSession) -> dict[str, Any]:
    """Plain-dict snapshot of lines, header parameters and totals."""
    items = []
    line_items = session.line_items()
    for record, item in zip(session.lines, line_items):
        items.append({
            "itemDetails": record.item_details,
            "account": record.account,
            "quantity": item.quantity,
            "rate": item.rate,
            "discount": item.discount_percent,
            "tax": item.tax_percent,
            "amount": line_amount(item),
        })

    header = session.header
    totals = compute_document_totals(
        line_items,
        header,
        header_discount=session.profile.header_discount,
        allow_rounding=session.profile.allow_rounding,
    )

    payload: dict[str, Any] = {
        "documentType": session.document_type,
        "items": items,
        "taxType": header.tax_treatment.value,
        "taxSelect": header.tax_rate,
        **totals.as_dict(),
    }
    if session.profile.header_discount:
        payload["discountPercent"] = header.discount_percent
    if session.profile.allow_rounding:
        payload["roundOff"] = header.rounding_mode.value

    with LogContext.bind(
        document_id=session.document_id, document_type=session.document_type
    ):
        logger.info("submission_built", extra={
            "item_count": len(items),
            "subtotal": str(totals.subtotal),
            "tax_amount": str(totals.tax_amount),
            "grand_total": str(totals.grand_total),
        })
    return payload
