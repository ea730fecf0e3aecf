"""
Module: docform_engines
Responsibility:
    Package entrypoint that re-exports the pure calculation engines for
    document totals.  This is the canonical import surface for the
    services layer and for any form layer that only needs the numbers.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import docform_kernel (and sibling engine modules).
    MUST NOT import docform_services or docform_config.

Invariants enforced:
    - Decimal-only arithmetic; floats are coerced at the boundary.
    - Determinism: identical inputs always produce identical outputs.
    - Discount is applied before tax, per line and per document.
    - Tax amounts come back signed (TDS negative, TCS positive).
    - No engine raises on malformed numeric input; it counts as 0.

Audit relevance:
    Every engine call is traced via ``@traced_engine`` (see
    ``docform_engines.tracer``), emitting DOCFORM_ENGINE_TRACE debug
    records with engine name, version, input fingerprint and duration.
"""

from docform_engines.discount import discount_amount
from docform_engines.line_amount import line_amount, subtotal
from docform_engines.round_off import round_off
from docform_engines.tax import tax_amount
from docform_engines.totals import compute_document_totals, grand_total

__all__ = [
    "compute_document_totals",
    "discount_amount",
    "grand_total",
    "line_amount",
    "round_off",
    "subtotal",
    "tax_amount",
]
