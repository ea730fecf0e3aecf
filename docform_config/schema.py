"""
Docform configuration schema.

Frozen dataclasses the YAML configuration is parsed into.  The loader
builds them; the services layer reads them.  Nothing here performs I/O.

Key pieces:
  EngineSettings    = numeric policy (write-back tolerance, defaults)
  LineFieldAliases  = raw record keys that map onto canonical line fields
  HeaderFieldAliases = raw record keys that map onto header parameters
  DocumentProfile   = per-document-type behaviour (discount level,
                      rounding, debounce, catalog price field,
                      pinned tax treatment)
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from docform_kernel.domain.values import RoundingMode, TaxTreatment
from docform_kernel.exceptions import UnknownDocumentTypeError

# ---------------------------------------------------------------------------
# Engine settings
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EngineSettings:
    """Numeric policy shared by every document type."""

    write_tolerance: Decimal = Decimal("0.01")
    default_tax_treatment: TaxTreatment = TaxTreatment.TDS
    default_rounding_mode: RoundingMode = RoundingMode.NO_ROUNDING


# ---------------------------------------------------------------------------
# Field aliases (checked in order, first present value wins)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LineFieldAliases:
    quantity: tuple[str, ...] = ("quantity", "qty")
    rate: tuple[str, ...] = ("rate", "price", "sellingPrice", "costPrice")
    discount_percent: tuple[str, ...] = ("discountPercent", "discount")
    tax_percent: tuple[str, ...] = ("taxPercent", "tax", "taxSelect", "taxRate")
    amount: tuple[str, ...] = ("amount", "total", "itemSubtotal")
    item_details: tuple[str, ...] = ("itemDetails", "name", "description")
    account: tuple[str, ...] = ("account",)


@dataclass(frozen=True)
class HeaderFieldAliases:
    discount_percent: tuple[str, ...] = ("discountPercent",)
    tax_rate: tuple[str, ...] = ("taxSelect", "taxRate")
    tax_treatment: tuple[str, ...] = ("taxType",)
    adjustment: tuple[str, ...] = ("adjustment",)
    rounding_mode: tuple[str, ...] = ("roundOff",)


# ---------------------------------------------------------------------------
# Document profiles
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DocumentProfile:
    """How one document type drives the totals engine."""

    document_type: str
    catalog_rate_field: str = "sellingPrice"
    header_discount: bool = False
    allow_rounding: bool = False
    debounce_ms: int = 0
    # Pinned treatment; header edits and loads cannot change it.
    fixed_tax_treatment: TaxTreatment | None = None

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DocformConfig:
    """Parsed, validated configuration."""

    version: str
    settings: EngineSettings
    line_aliases: LineFieldAliases
    header_aliases: HeaderFieldAliases
    profiles: tuple[DocumentProfile, ...]
    checksum: str = ""

    @property
    def document_types(self) -> list[str]:
        return [p.document_type for p in self.profiles]

    def profile(self, document_type: str) -> DocumentProfile:
        """Profile for ``document_type``; raises UnknownDocumentTypeError."""
        for p in self.profiles:
            if p.document_type == document_type:
                return p
        raise UnknownDocumentTypeError(document_type, self.document_types)
