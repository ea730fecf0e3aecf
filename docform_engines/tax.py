"""
Tax Engine - Signed document-level tax amount.

The sign convention is the engine's central rule:

    TDS (tax deducted at source)  -> negative, reduces the total
    TCS (tax collected at source) -> positive, increases the total

Callers add the returned value into the grand total as-is. Nothing
downstream may re-apply a sign based on the treatment.

Usage:
    from decimal import Decimal
    from docform_kernel.domain.values import TaxTreatment
    from docform_engines.tax import tax_amount

    tax_amount(Decimal("212.40"), Decimal("5"), TaxTreatment.TDS)  # Decimal("-10.62")
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from docform_engines.tracer import traced_engine
from docform_kernel.domain.coercion import HUNDRED, round2, to_number, to_percent
from docform_kernel.domain.values import TaxTreatment


@traced_engine(
    "tax", "1.0", fingerprint_fields=("taxable_base", "rate_percent", "treatment")
)
def tax_amount(
    taxable_base: Any,
    rate_percent: Any,
    treatment: TaxTreatment | str = TaxTreatment.TDS,
) -> Decimal:
    """
    Tax on ``taxable_base`` at ``rate_percent``, signed for ``treatment``.

    The magnitude is rounded to cents before the sign is applied, so TDS
    and TCS results are exact negatives of each other.
    """
    raw = round2(to_number(taxable_base) * to_percent(rate_percent) / HUNDRED)
    if raw and TaxTreatment.coerce(treatment) is TaxTreatment.TDS:
        return -raw
    return raw
