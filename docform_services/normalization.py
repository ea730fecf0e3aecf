"""
Record normalization: raw repository/form records -> canonical shapes.

Different document types name the same field differently (``rate`` vs
``sellingPrice`` vs ``costPrice``, ``tax`` vs ``taxSelect`` ...).  The
mapping happens here, once, when a record enters the engine; calculators
only ever see LineItem / DocumentHeader.  Alias lists come from
``docform_config``.

ZERO I/O.  Nothing in this module raises on malformed values: numbers
go through docform_kernel.domain.coercion.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from docform_config.schema import EngineSettings, HeaderFieldAliases, LineFieldAliases
from docform_kernel.domain.coercion import to_number, to_percent
from docform_kernel.domain.values import (
    ONE,
    DocumentHeader,
    LineRecord,
    RoundingMode,
    TaxTreatment,
)

_ENVELOPE_KEYS = ("items", "data", "results", "rows", "list", "records", "content")
_NESTED_KEYS = ("items", "results", "rows", "list", "records", "content")


# -----------------------------------------------------------------------------
# Envelope unwrapping
# -----------------------------------------------------------------------------


def extract_records(raw: Any) -> list[Any]:
    """
    Pull the record list out of a repository response.

    Accepts a bare list, a mapping whose ``items``/``data``/``results``/
    ``rows``/``list``/``records``/``content`` key holds a list, the same
    keys nested under one or two ``data`` levels, or a single non-empty
    mapping (returned as a one-element list).  Anything else yields [].
    """
    if not raw:
        return []
    if isinstance(raw, list):
        return raw
    if not isinstance(raw, Mapping):
        return []

    for key in _ENVELOPE_KEYS:
        if isinstance(raw.get(key), list):
            return raw[key]

    level = raw.get("data")
    for _ in range(2):
        if not isinstance(level, Mapping):
            break
        for key in _NESTED_KEYS:
            if isinstance(level.get(key), list):
                return level[key]
        level = level.get("data")

    return [raw]


# -----------------------------------------------------------------------------
# Field picking
# -----------------------------------------------------------------------------


def pick(raw: Mapping[str, Any], aliases: Sequence[str], default: Any = None) -> Any:
    """First alias whose value is not None, else ``default``."""
    for key in aliases:
        value = raw.get(key)
        if value is not None:
            return value
    return default


def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()


# -----------------------------------------------------------------------------
# Lines and header
# -----------------------------------------------------------------------------


def normalize_line(raw: Mapping[str, Any], aliases: LineFieldAliases) -> LineRecord:
    """
    Canonical LineRecord from a raw line record.

    Missing quantity counts as 1; other missing numbers count as 0.  Tax
    labels ("GST 12%") are reduced to their percentage.  The record is
    marked stale so the stored amount is re-derived, never trusted.
    """
    if not isinstance(raw, Mapping):
        raw = {}
    return LineRecord(
        quantity=to_number(pick(raw, aliases.quantity), ONE),
        rate=to_number(pick(raw, aliases.rate)),
        discount_percent=to_number(pick(raw, aliases.discount_percent)),
        tax_percent=to_percent(pick(raw, aliases.tax_percent)),
        amount=to_number(pick(raw, aliases.amount)),
        item_details=_text(pick(raw, aliases.item_details)),
        account=_text(pick(raw, aliases.account)),
        stale=True,
    )


def normalize_header(
    raw: Mapping[str, Any],
    aliases: HeaderFieldAliases,
    settings: EngineSettings,
    fixed_treatment: TaxTreatment | None = None,
) -> DocumentHeader:
    """
    Canonical DocumentHeader; absent treatment/rounding take the configured defaults.

    A ``fixed_treatment`` replaces whatever treatment the record carries.
    """
    if not isinstance(raw, Mapping):
        raw = {}
    treatment = fixed_treatment or TaxTreatment.coerce(
        pick(raw, aliases.tax_treatment), settings.default_tax_treatment
    )
    return DocumentHeader(
        discount_percent=to_number(pick(raw, aliases.discount_percent)),
        tax_rate=to_percent(pick(raw, aliases.tax_rate)),
        tax_treatment=treatment,
        adjustment=to_number(pick(raw, aliases.adjustment)),
        rounding_mode=RoundingMode.coerce(
            pick(raw, aliases.rounding_mode, settings.default_rounding_mode)
        ),
    )


def catalog_rate(record: Mapping[str, Any], rate_field: str) -> Any:
    """Price of a catalog item: explicit ``rate`` first, then the profile's price field."""
    if not isinstance(record, Mapping):
        return None
    return pick(record, ("rate", rate_field))
