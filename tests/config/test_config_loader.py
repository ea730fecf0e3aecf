"""
Tests for configuration loading (docform_config).

Covers:
- The bundled defaults and their document profiles
- Path resolution: argument, DOCFORM_CONFIG, bundled file
- Validation errors naming the offending key
- Checksum determinism and the DOCFORM_CONFIG_TRACE record
"""

from decimal import Decimal

import pytest

from docform_config import CONFIG_ENV_VAR, get_active_config
from docform_config.loader import (
    compute_checksum,
    load_yaml_file,
    parse_config,
    parse_profile,
    parse_settings,
)
from docform_config.schema import HeaderFieldAliases, LineFieldAliases
from docform_kernel.domain.values import RoundingMode, TaxTreatment
from docform_kernel.exceptions import (
    ConfigNotFoundError,
    InvalidConfigError,
    UnknownDocumentTypeError,
)

MINIMAL_YAML = """
version: "2.5"
settings:
  write_tolerance: "0.05"
  default_tax_treatment: tcs
  default_rounding_mode: nearest
profiles:
  invoice: {}
"""


@pytest.fixture(autouse=True)
def _no_env_override(monkeypatch):
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)


def _write(tmp_path, text, name="docform.yaml"):
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


class TestBundledDefaults:
    def test_settings(self):
        config = get_active_config()
        assert config.settings.write_tolerance == Decimal("0.01")
        assert config.settings.default_tax_treatment is TaxTreatment.TDS
        assert config.settings.default_rounding_mode is RoundingMode.NO_ROUNDING

    def test_document_types(self):
        config = get_active_config()
        assert set(config.document_types) == {
            "invoice",
            "quote",
            "sales_order",
            "delivery_challan",
            "credit_note",
            "recurring_invoice",
            "bill",
            "vendor_credit",
            "recurring_bill",
            "purchase_order",
        }

    def test_sales_profiles_price_at_selling_price(self):
        config = get_active_config()
        invoice = config.profile("invoice")
        assert invoice.catalog_rate_field == "sellingPrice"
        assert invoice.header_discount is False
        assert invoice.allow_rounding is False
        assert invoice.debounce_seconds == 0

    def test_recurring_invoice_allows_rounding(self):
        assert get_active_config().profile("recurring_invoice").allow_rounding is True

    def test_recurring_bill_withholds(self):
        profile = get_active_config().profile("recurring_bill")
        assert profile.fixed_tax_treatment is TaxTreatment.TDS
        assert get_active_config().profile("bill").fixed_tax_treatment is None

    def test_purchase_order_profile(self):
        profile = get_active_config().profile("purchase_order")
        assert profile.catalog_rate_field == "costPrice"
        assert profile.header_discount is True
        assert profile.debounce_ms == 120
        assert profile.debounce_seconds == pytest.approx(0.12)

    def test_aliases_match_schema_defaults(self):
        config = get_active_config()
        assert config.line_aliases == LineFieldAliases()
        assert config.header_aliases == HeaderFieldAliases()

    def test_unknown_document_type(self):
        with pytest.raises(UnknownDocumentTypeError) as exc_info:
            get_active_config().profile("timesheet")
        assert exc_info.value.document_type == "timesheet"
        assert "invoice" in exc_info.value.known_types
        assert exc_info.value.code == "UNKNOWN_DOCUMENT_TYPE"


class TestPathResolution:
    def test_explicit_path(self, tmp_path):
        config = get_active_config(_write(tmp_path, MINIMAL_YAML))
        assert config.version == "2.5"
        assert config.settings.write_tolerance == Decimal("0.05")
        assert config.settings.default_tax_treatment is TaxTreatment.TCS
        assert config.settings.default_rounding_mode is RoundingMode.NEAREST
        assert config.document_types == ["invoice"]

    def test_string_path(self, tmp_path):
        config = get_active_config(str(_write(tmp_path, MINIMAL_YAML)))
        assert config.version == "2.5"

    def test_environment_variable(self, tmp_path, monkeypatch):
        monkeypatch.setenv(CONFIG_ENV_VAR, str(_write(tmp_path, MINIMAL_YAML)))
        assert get_active_config().version == "2.5"

    def test_argument_beats_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv(CONFIG_ENV_VAR, str(tmp_path / "missing.yaml"))
        config = get_active_config(_write(tmp_path, MINIMAL_YAML))
        assert config.version == "2.5"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigNotFoundError) as exc_info:
            get_active_config(tmp_path / "nope.yaml")
        assert exc_info.value.path.endswith("nope.yaml")

    def test_trace_logged(self, tmp_path, captured_logs):
        get_active_config(_write(tmp_path, MINIMAL_YAML))

        traces = [r for r in captured_logs() if r["message"] == "DOCFORM_CONFIG_TRACE"]
        assert len(traces) == 1
        assert traces[0]["config_version"] == "2.5"
        assert traces[0]["profile_count"] == 1
        assert traces[0]["write_tolerance"] == "0.05"
        assert len(traces[0]["checksum"]) == 64


class TestLoadYamlFile:
    def test_malformed_yaml(self, tmp_path):
        path = _write(tmp_path, "settings: [unclosed")
        with pytest.raises(InvalidConfigError, match="malformed YAML"):
            load_yaml_file(path)

    def test_empty_file(self, tmp_path):
        assert load_yaml_file(_write(tmp_path, "")) == {}

    def test_top_level_list(self, tmp_path):
        with pytest.raises(InvalidConfigError, match="mapping"):
            load_yaml_file(_write(tmp_path, "- a\n- b\n"))


class TestParseSettings:
    def test_defaults(self):
        settings = parse_settings({})
        assert settings.write_tolerance == Decimal("0.01")
        assert settings.default_tax_treatment is TaxTreatment.TDS

    @pytest.mark.parametrize("value", ["abc", "-0.01", "NaN", "Infinity"])
    def test_bad_tolerance(self, value):
        with pytest.raises(InvalidConfigError) as exc_info:
            parse_settings({"write_tolerance": value})
        assert exc_info.value.key == "settings.write_tolerance"

    def test_unknown_treatment_is_strict(self):
        with pytest.raises(InvalidConfigError) as exc_info:
            parse_settings({"default_tax_treatment": "VAT"})
        assert exc_info.value.key == "settings.default_tax_treatment"

    def test_unknown_rounding_is_strict(self):
        with pytest.raises(InvalidConfigError) as exc_info:
            parse_settings({"default_rounding_mode": "banker"})
        assert exc_info.value.key == "settings.default_rounding_mode"

    def test_rounding_by_name(self):
        settings = parse_settings({"default_rounding_mode": "CEIL"})
        assert settings.default_rounding_mode is RoundingMode.CEIL


class TestParseProfile:
    def test_empty_profile_takes_defaults(self):
        profile = parse_profile("quote", None)
        assert profile.document_type == "quote"
        assert profile.catalog_rate_field == "sellingPrice"
        assert profile.debounce_ms == 0

    @pytest.mark.parametrize("value", [-1, "120", 1.5, True])
    def test_bad_debounce(self, value):
        with pytest.raises(InvalidConfigError) as exc_info:
            parse_profile("bill", {"debounce_ms": value})
        assert exc_info.value.key == "profiles.bill.debounce_ms"

    def test_flag_must_be_bool(self):
        with pytest.raises(InvalidConfigError) as exc_info:
            parse_profile("bill", {"header_discount": "yes"})
        assert exc_info.value.key == "profiles.bill.header_discount"

    def test_rate_field_must_be_text(self):
        with pytest.raises(InvalidConfigError):
            parse_profile("bill", {"catalog_rate_field": ""})

    def test_profile_must_be_mapping(self):
        with pytest.raises(InvalidConfigError):
            parse_profile("bill", ["costPrice"])

    def test_fixed_treatment(self):
        profile = parse_profile("bill", {"fixed_tax_treatment": "tcs"})
        assert profile.fixed_tax_treatment is TaxTreatment.TCS

    def test_fixed_treatment_is_strict(self):
        with pytest.raises(InvalidConfigError) as exc_info:
            parse_profile("bill", {"fixed_tax_treatment": "VAT"})
        assert exc_info.value.key == "profiles.bill.fixed_tax_treatment"


class TestParseConfig:
    def test_profiles_required(self):
        with pytest.raises(InvalidConfigError) as exc_info:
            parse_config({"version": "1.0"})
        assert exc_info.value.key == "profiles"

    def test_alias_string_becomes_list(self):
        config = parse_config({
            "line_aliases": {"rate": "unitPrice"},
            "profiles": {"invoice": {}},
        })
        assert config.line_aliases.rate == ("unitPrice",)
        assert config.line_aliases.quantity == LineFieldAliases().quantity

    def test_empty_alias_list(self):
        with pytest.raises(InvalidConfigError) as exc_info:
            parse_config({
                "line_aliases": {"rate": []},
                "profiles": {"invoice": {}},
            })
        assert exc_info.value.key == "line_aliases.rate"

    def test_unknown_alias_field(self):
        with pytest.raises(InvalidConfigError) as exc_info:
            parse_config({
                "header_aliases": {"currency": ["currencyCode"]},
                "profiles": {"invoice": {}},
            })
        assert exc_info.value.key == "header_aliases"

    def test_section_must_be_mapping(self):
        with pytest.raises(InvalidConfigError) as exc_info:
            parse_config({"settings": ["x"], "profiles": {"invoice": {}}})
        assert exc_info.value.key == "settings"


class TestChecksum:
    def test_key_order_does_not_matter(self):
        assert compute_checksum({"a": 1, "b": 2}) == compute_checksum({"b": 2, "a": 1})

    def test_content_changes_checksum(self):
        assert compute_checksum({"a": 1}) != compute_checksum({"a": 2})

    def test_config_carries_checksum(self, tmp_path):
        first = get_active_config(_write(tmp_path, MINIMAL_YAML, "a.yaml"))
        second = get_active_config(_write(tmp_path, MINIMAL_YAML, "b.yaml"))
        assert first.checksum == second.checksum
