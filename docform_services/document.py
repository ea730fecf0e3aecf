"""
DocumentSession -- explicit per-document aggregate.

Responsibility:
    Owns the editable line records and header parameters of ONE open
    document and announces every mutation on ``changes``.  Totals are
    never stored: ``totals`` recomputes them from the current lines and
    header every time it is read.

Architecture position:
    Services.  Consumed by the form layer (which calls the mutators) and
    by LineSyncController (which subscribes to ``changes`` and writes
    derived line amounts back through ``write_amount``).

Invariants enforced:
    - No shared or global state; sessions are independent.
    - ``dirty`` is set by user edits only.  Write-backs from the sync
      controller and loads from the repository never set it.
    - Line indexes are validated; bad indexes raise LineNotFoundError and
      unknown field names raise UnknownFieldError before anything changes.
    - A profile with ``fixed_tax_treatment`` keeps that treatment through
      construction, header edits and loads.

Failure modes:
    - UnknownDocumentTypeError from the constructor.
    - LineNotFoundError, UnknownFieldError from the mutators.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import fields, replace
from decimal import Decimal
from typing import Any
from uuid import uuid4

from docform_config import DocformConfig, get_active_config
from docform_engines.totals import compute_document_totals
from docform_kernel.domain.values import (
    EDITABLE_LINE_FIELDS,
    DocumentHeader,
    DocumentTotals,
    LineItem,
    LineRecord,
)
from docform_kernel.exceptions import LineNotFoundError, UnknownFieldError
from docform_kernel.logging_config import LogContext, get_logger
from docform_services.events import (
    ChangeOrigin,
    DocumentEvent,
    DocumentLoaded,
    HeaderChanged,
    LineAdded,
    LineChanged,
    LineRemoved,
)
from docform_services.normalization import (
    catalog_rate,
    extract_records,
    normalize_header,
    normalize_line,
    pick,
)
from docform_services.observable import Observable

logger = get_logger("services.document")

HEADER_FIELDS: frozenset[str] = frozenset(f.name for f in fields(DocumentHeader))


class DocumentSession:
    """One open accounting document: its lines, header and change feed."""

    def __init__(
        self,
        document_type: str,
        config: DocformConfig | None = None,
        document_id: str | None = None,
    ):
        self.config = config or get_active_config()
        self.profile = self.config.profile(document_type)
        self.document_type = document_type
        self.document_id = document_id or str(uuid4())
        self.changes: Observable[DocumentEvent] = Observable(
            f"document.{self.document_id}.changes"
        )
        self.dirty = False

        settings = self.config.settings
        self._header = DocumentHeader(
            tax_treatment=self.profile.fixed_tax_treatment
            or settings.default_tax_treatment,
            rounding_mode=settings.default_rounding_mode,
        )
        self._lines: list[LineRecord] = [LineRecord()]

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def lines(self) -> tuple[LineRecord, ...]:
        return tuple(self._lines)

    @property
    def header(self) -> DocumentHeader:
        return self._header

    def line(self, index: int) -> LineRecord:
        self._check_index(index)
        return self._lines[index]

    def line_items(self) -> list[LineItem]:
        return [record.as_line_item() for record in self._lines]

    @property
    def totals(self) -> DocumentTotals:
        """Freshly computed totals for the current lines and header."""
        return compute_document_totals(
            self.line_items(),
            self._header,
            header_discount=self.profile.header_discount,
            allow_rounding=self.profile.allow_rounding,
        )

    # ------------------------------------------------------------------
    # Line mutations
    # ------------------------------------------------------------------

    def add_line(self, **values: Any) -> int:
        """Append a row with default values, then apply ``values``. Returns its index."""
        self._check_line_fields(values)
        record = LineRecord()
        for name, value in values.items():
            setattr(record, name, value)
        self._lines.append(record)
        index = len(self._lines) - 1
        self.dirty = True
        self._log("line_added", index=index)
        self.changes.notify(LineAdded(index))
        return index

    def remove_line(self, index: int) -> LineRecord:
        self._check_index(index)
        record = self._lines.pop(index)
        self.dirty = True
        self._log("line_removed", index=index)
        self.changes.notify(LineRemoved(index))
        return record

    def update_line(self, index: int, **values: Any) -> None:
        """Apply user edits to one line, announcing each field separately."""
        self._check_index(index)
        self._check_line_fields(values)
        record = self._lines[index]
        for name, value in values.items():
            setattr(record, name, value)
            self.dirty = True
            self.changes.notify(LineChanged(index, name, value, ChangeOrigin.USER))

    def write_amount(self, index: int, amount: Decimal) -> None:
        """Store a derived amount. Used by the sync controller; does not mark the document dirty."""
        self._check_index(index)
        self._lines[index].amount = amount
        self.changes.notify(LineChanged(index, "amount", amount, ChangeOrigin.SYNC))

    def apply_catalog_item(self, index: int, item: Mapping[str, Any]) -> None:
        """Fill a line from a picked catalog item using the profile's price field."""
        values: dict[str, Any] = {}
        name = pick(item, ("name", "itemDetails")) if isinstance(item, Mapping) else None
        if name is not None:
            values["item_details"] = str(name)
        rate = catalog_rate(item, self.profile.catalog_rate_field)
        values["rate"] = rate if rate is not None else Decimal("0")
        self.update_line(index, **values)

    # ------------------------------------------------------------------
    # Header mutations
    # ------------------------------------------------------------------

    def update_header(self, **values: Any) -> None:
        unknown = sorted(set(values) - HEADER_FIELDS)
        if unknown:
            raise UnknownFieldError(unknown[0], "header")
        fixed = self.profile.fixed_tax_treatment
        if fixed is not None and "tax_treatment" in values:
            values["tax_treatment"] = fixed
        self._header = replace(self._header, **values)
        self.dirty = True
        for name in values:
            self.changes.notify(HeaderChanged(name, getattr(self._header, name)))

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self, raw_document: Mapping[str, Any]) -> None:
        """
        Replace lines and header with a stored document.

        Stored line amounts are kept only as the initial cache; every line is
        marked stale so the controller re-derives it.
        """
        raw = raw_document if isinstance(raw_document, Mapping) else {}
        self._header = normalize_header(
            raw,
            self.config.header_aliases,
            self.config.settings,
            fixed_treatment=self.profile.fixed_tax_treatment,
        )
        records = extract_records(raw.get("items"))
        self._lines = [
            normalize_line(r, self.config.line_aliases) for r in records
        ] or [LineRecord()]
        self.dirty = False
        self._log("document_loaded", line_count=len(self._lines))
        self.changes.notify(DocumentLoaded(len(self._lines)))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._lines):
            raise LineNotFoundError(index, len(self._lines))

    def _check_line_fields(self, values: Mapping[str, Any]) -> None:
        for name in values:
            if name not in EDITABLE_LINE_FIELDS:
                raise UnknownFieldError(name, "line")

    def _log(self, message: str, **extra: Any) -> None:
        with LogContext.bind(
            document_id=self.document_id, document_type=self.document_type
        ):
            logger.debug(message, extra=extra)
