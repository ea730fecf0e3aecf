"""
Values -- Domain value objects for document lines, headers and totals.

Responsibility:
    Defines the canonical shapes the calculators operate on (LineItem,
    DocumentHeader), the derived aggregate they produce (DocumentTotals),
    the mutable row a document session owns (LineRecord), and the two
    enumerations that select policy (TaxTreatment, RoundingMode).

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Imported by engines and services. Depends only on coercion.

Invariants enforced:
    - LineItem and DocumentHeader coerce every numeric field to a finite
      Decimal at construction; calculators never see raw input.
    - DocumentTotals is a snapshot. It is recomputed from lines and header,
      never edited in place.
    - LineRecord.amount is a cache of the derived line amount, not a source
      of truth.

Failure modes:
    None. Unknown enum labels fall back to the documented defaults.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any

from docform_kernel.domain.coercion import ZERO, to_number, to_percent

ONE = Decimal("1")


class TaxTreatment(str, Enum):
    """Document-level tax regime; selects the sign of the tax amount."""

    TDS = "TDS"  # Tax deducted at source, reduces the total
    TCS = "TCS"  # Tax collected at source, increases the total

    @classmethod
    def coerce(
        cls, value: Any, default: TaxTreatment | None = None
    ) -> TaxTreatment:
        """Parse a member or a case-insensitive label; missing or unknown gives default."""
        fallback = default or cls.TDS
        if isinstance(value, cls):
            return value
        if value is None:
            return fallback
        text = str(value).strip().upper()
        for member in cls:
            if member.value == text:
                return member
        return fallback


class RoundingMode(str, Enum):
    """How the pre-rounding grand total is nudged to a whole figure."""

    NO_ROUNDING = "No Rounding"
    NEAREST = "nearest"
    FLOOR = "floor"
    CEIL = "ceil"

    @classmethod
    def coerce(cls, value: Any) -> RoundingMode:
        """Parse a member, value or name, case-insensitively; unknown gives NO_ROUNDING."""
        if isinstance(value, cls):
            return value
        if value is None:
            return cls.NO_ROUNDING
        text = str(value).strip().lower()
        for member in cls:
            if text in (member.value.lower(), member.name.lower()):
                return member
        return cls.NO_ROUNDING


@dataclass(frozen=True)
class LineItem:
    """
    Canonical line item as seen by the calculators.

    Numeric fields are coerced on construction: quantity falls back to 1,
    everything else to 0. tax_percent also accepts labels ("GST 12%").
    Negative values are kept as given.
    """

    quantity: Decimal = ONE
    rate: Decimal = ZERO
    discount_percent: Decimal = ZERO
    tax_percent: Decimal = ZERO

    def __post_init__(self) -> None:
        object.__setattr__(self, "quantity", to_number(self.quantity, ONE))
        object.__setattr__(self, "rate", to_number(self.rate))
        object.__setattr__(
            self, "discount_percent", to_number(self.discount_percent)
        )
        object.__setattr__(self, "tax_percent", to_percent(self.tax_percent))


# Line fields whose edits make the cached amount stale.
AMOUNT_INPUT_FIELDS: frozenset[str] = frozenset(
    {"quantity", "rate", "discount_percent", "tax_percent"}
)

# Every field an edit may target on a LineRecord.
EDITABLE_LINE_FIELDS: frozenset[str] = AMOUNT_INPUT_FIELDS | {
    "item_details",
    "account",
    "amount",
}


@dataclass
class LineRecord:
    """
    One editable row of a document.

    Holds the values exactly as the form layer supplied them; coercion
    happens in as_line_item(). ``amount`` is the cached derived amount.
    """

    quantity: Any = ONE
    rate: Any = ZERO
    discount_percent: Any = ZERO
    tax_percent: Any = ZERO
    amount: Decimal = ZERO
    item_details: str = ""
    account: str = ""
    stale: bool = False

    def as_line_item(self) -> LineItem:
        return LineItem(
            quantity=self.quantity,
            rate=self.rate,
            discount_percent=self.discount_percent,
            tax_percent=self.tax_percent,
        )


@dataclass(frozen=True)
class DocumentHeader:
    """Document-level parameters feeding the totals pipeline."""

    discount_percent: Decimal = ZERO
    tax_rate: Decimal = ZERO
    tax_treatment: TaxTreatment = TaxTreatment.TDS
    adjustment: Decimal = ZERO
    rounding_mode: RoundingMode = RoundingMode.NO_ROUNDING

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "discount_percent", to_number(self.discount_percent)
        )
        object.__setattr__(self, "tax_rate", to_percent(self.tax_rate))
        object.__setattr__(
            self, "tax_treatment", TaxTreatment.coerce(self.tax_treatment)
        )
        object.__setattr__(self, "adjustment", to_number(self.adjustment))
        object.__setattr__(
            self, "rounding_mode", RoundingMode.coerce(self.rounding_mode)
        )


@dataclass(frozen=True)
class DocumentTotals:
    """
    Derived aggregate over a document.

    tax_amount is already signed for the tax treatment; add it, never
    re-sign it.
    """

    subtotal: Decimal = ZERO
    discount_amount: Decimal = ZERO
    taxable_amount: Decimal = ZERO
    tax_amount: Decimal = ZERO
    adjustment: Decimal = ZERO
    pre_round_total: Decimal = ZERO
    round_off: Decimal = ZERO
    grand_total: Decimal = ZERO
    line_amounts: tuple[Decimal, ...] = field(default=())

    @property
    def display_tax_amount(self) -> Decimal:
        """Tax magnitude as shown on the form."""
        return abs(self.tax_amount)

    def as_dict(self) -> dict[str, Decimal]:
        return {
            "subTotal": self.subtotal,
            "discountAmount": self.discount_amount,
            "taxableAmount": self.taxable_amount,
            "taxAmount": self.tax_amount,
            "adjustment": self.adjustment,
            "roundOffAmount": self.round_off,
            "totalAmount": self.grand_total,
        }
