"""
Configuration Loader (``docform_config.loader``).

Responsibility
--------------
Loads a YAML configuration file and parses it into the typed, frozen
``docform_config.schema`` dataclasses.  Runtime code does not call this
directly; the single public entry point is
``docform_config.get_active_config()``.

Invariants enforced
-------------------
* Every parse error raises ``InvalidConfigError`` naming the offending key;
  there are no silent defaults for values that are present but malformed.
* Keys that are absent fall back to the schema defaults.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the raw
  document for identity and change detection.

Failure modes
-------------
* Missing file  -> ``ConfigNotFoundError``.
* Malformed YAML  -> ``InvalidConfigError`` (chained to ``yaml.YAMLError``).
* Bad values  -> ``InvalidConfigError``.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import fields
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from docform_config.schema import (
    DocformConfig,
    DocumentProfile,
    EngineSettings,
    HeaderFieldAliases,
    LineFieldAliases,
)
from docform_kernel.domain.values import RoundingMode, TaxTreatment
from docform_kernel.exceptions import ConfigNotFoundError, InvalidConfigError


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        ConfigNotFoundError: if the file does not exist.
        InvalidConfigError: if the file is not valid YAML or not a mapping.
    """
    if not path.is_file():
        raise ConfigNotFoundError(str(path))
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise InvalidConfigError(str(path), f"malformed YAML: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidConfigError(str(path), "top level must be a mapping")
    return data


def compute_checksum(data: dict[str, Any]) -> str:
    """Deterministic SHA-256 over the raw configuration mapping."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key) or {}
    if not isinstance(value, dict):
        raise InvalidConfigError(key, "must be a mapping")
    return value


def _parse_tolerance(value: Any) -> Decimal:
    try:
        tolerance = Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise InvalidConfigError("settings.write_tolerance", f"not a number: {value!r}") from exc
    if not tolerance.is_finite() or tolerance < 0:
        raise InvalidConfigError(
            "settings.write_tolerance", "must be a finite, non-negative number"
        )
    return tolerance


def _parse_treatment(
    value: Any, key: str = "settings.default_tax_treatment"
) -> TaxTreatment:
    text = str(value).strip().upper()
    try:
        return TaxTreatment(text)
    except ValueError as exc:
        raise InvalidConfigError(key, f"unknown tax treatment {value!r}") from exc


def _parse_rounding(value: Any) -> RoundingMode:
    text = str(value).strip().lower()
    for member in RoundingMode:
        if text in (member.value.lower(), member.name.lower()):
            return member
    raise InvalidConfigError(
        "settings.default_rounding_mode", f"unknown rounding mode {value!r}"
    )


def parse_settings(data: dict[str, Any]) -> EngineSettings:
    defaults = EngineSettings()
    return EngineSettings(
        write_tolerance=_parse_tolerance(
            data.get("write_tolerance", defaults.write_tolerance)
        ),
        default_tax_treatment=_parse_treatment(
            data.get("default_tax_treatment", defaults.default_tax_treatment.value)
        ),
        default_rounding_mode=_parse_rounding(
            data.get("default_rounding_mode", defaults.default_rounding_mode.value)
        ),
    )


def _parse_alias_list(key: str, value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        value = [value]
    if (
        not isinstance(value, list)
        or not value
        or not all(isinstance(v, str) and v for v in value)
    ):
        raise InvalidConfigError(key, "must be a non-empty list of field names")
    return tuple(value)


def _parse_aliases(section: str, data: dict[str, Any], cls: type) -> Any:
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise InvalidConfigError(section, f"unknown fields: {', '.join(unknown)}")
    kwargs = {
        name: _parse_alias_list(f"{section}.{name}", value)
        for name, value in data.items()
    }
    return cls(**kwargs)


def parse_line_aliases(data: dict[str, Any]) -> LineFieldAliases:
    return _parse_aliases("line_aliases", data, LineFieldAliases)


def parse_header_aliases(data: dict[str, Any]) -> HeaderFieldAliases:
    return _parse_aliases("header_aliases", data, HeaderFieldAliases)


def parse_profile(document_type: str, data: dict[str, Any] | None) -> DocumentProfile:
    """Parse one document profile; absent keys take the schema defaults."""
    data = data or {}
    key = f"profiles.{document_type}"
    if not isinstance(data, dict):
        raise InvalidConfigError(key, "must be a mapping")

    debounce_ms = data.get("debounce_ms", 0)
    if isinstance(debounce_ms, bool) or not isinstance(debounce_ms, int) or debounce_ms < 0:
        raise InvalidConfigError(f"{key}.debounce_ms", "must be a non-negative integer")

    for flag in ("header_discount", "allow_rounding"):
        if flag in data and not isinstance(data[flag], bool):
            raise InvalidConfigError(f"{key}.{flag}", "must be true or false")

    catalog_rate_field = data.get("catalog_rate_field", "sellingPrice")
    if not isinstance(catalog_rate_field, str) or not catalog_rate_field:
        raise InvalidConfigError(f"{key}.catalog_rate_field", "must be a field name")

    fixed_tax_treatment = None
    if data.get("fixed_tax_treatment") is not None:
        fixed_tax_treatment = _parse_treatment(
            data["fixed_tax_treatment"], f"{key}.fixed_tax_treatment"
        )

    return DocumentProfile(
        document_type=document_type,
        catalog_rate_field=catalog_rate_field,
        header_discount=data.get("header_discount", False),
        allow_rounding=data.get("allow_rounding", False),
        debounce_ms=debounce_ms,
        fixed_tax_treatment=fixed_tax_treatment,
    )


def parse_config(data: dict[str, Any]) -> DocformConfig:
    """Parse a raw configuration mapping into a DocformConfig."""
    profiles_data = _section(data, "profiles")
    if not profiles_data:
        raise InvalidConfigError("profiles", "at least one document profile is required")

    return DocformConfig(
        version=str(data.get("version", "1.0")),
        settings=parse_settings(_section(data, "settings")),
        line_aliases=parse_line_aliases(_section(data, "line_aliases")),
        header_aliases=parse_header_aliases(_section(data, "header_aliases")),
        profiles=tuple(
            parse_profile(str(name), value)
            for name, value in profiles_data.items()
        ),
        checksum=compute_checksum(data),
    )
