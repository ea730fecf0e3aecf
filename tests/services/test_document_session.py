"""
Tests for DocumentSession.

Covers:
- Construction from a document profile
- Line and header mutations and the events they announce
- Dirty tracking (user edits only)
- Catalog item selection per profile
- Loading stored documents
"""

from decimal import Decimal

import pytest

from docform_kernel.domain.values import RoundingMode, TaxTreatment
from docform_kernel.exceptions import (
    LineNotFoundError,
    UnknownDocumentTypeError,
    UnknownFieldError,
)
from docform_services.document import DocumentSession
from docform_services.events import (
    ChangeOrigin,
    DocumentLoaded,
    HeaderChanged,
    LineAdded,
    LineChanged,
    LineRemoved,
)


def _record_events(session):
    events = []
    session.changes.subscribe(events.append)
    return events


class TestConstruction:
    def test_defaults(self, make_session):
        session = make_session()
        assert len(session.lines) == 1
        assert session.header.tax_treatment is TaxTreatment.TDS
        assert session.header.rounding_mode is RoundingMode.NO_ROUNDING
        assert session.dirty is False
        assert session.profile.document_type == "invoice"

    def test_unknown_document_type(self, config):
        with pytest.raises(UnknownDocumentTypeError):
            DocumentSession("timesheet", config=config)

    def test_document_id(self, make_session):
        assert make_session(document_id="INV-1").document_id == "INV-1"
        assert make_session().document_id != make_session().document_id

    def test_sessions_are_independent(self, make_session):
        first = make_session()
        second = make_session()
        first.update_line(0, rate=10)
        assert second.line(0).rate == Decimal("0")


class TestLineMutations:
    def test_update_line_announces_each_field(self, make_session):
        session = make_session()
        events = _record_events(session)

        session.update_line(0, quantity=2, rate="100")

        assert events == [
            LineChanged(0, "quantity", 2, ChangeOrigin.USER),
            LineChanged(0, "rate", "100", ChangeOrigin.USER),
        ]
        assert session.dirty is True
        assert session.line(0).rate == "100"

    def test_update_line_bad_index(self, make_session):
        session = make_session()
        with pytest.raises(LineNotFoundError) as exc_info:
            session.update_line(3, rate=1)
        assert exc_info.value.index == 3
        assert exc_info.value.line_count == 1

    def test_update_line_unknown_field_changes_nothing(self, make_session):
        session = make_session()
        with pytest.raises(UnknownFieldError) as exc_info:
            session.update_line(0, rate=5, colour="red")
        assert exc_info.value.field_name == "colour"
        assert exc_info.value.scope == "line"
        assert session.line(0).rate == Decimal("0")
        assert session.dirty is False

    def test_stale_is_not_editable(self, make_session):
        with pytest.raises(UnknownFieldError):
            make_session().update_line(0, stale=False)

    def test_add_and_remove(self, make_session):
        session = make_session()
        events = _record_events(session)

        index = session.add_line(quantity=3, rate=10)
        assert index == 1
        assert session.line(1).quantity == 3

        removed = session.remove_line(0)
        assert removed.rate == Decimal("0")
        assert len(session.lines) == 1
        assert events == [LineAdded(1), LineRemoved(0)]

    def test_remove_bad_index(self, make_session):
        with pytest.raises(LineNotFoundError):
            make_session().remove_line(-1)

    def test_write_amount_is_not_a_user_edit(self, make_session):
        session = make_session()
        events = _record_events(session)

        session.write_amount(0, Decimal("12.50"))

        assert session.line(0).amount == Decimal("12.50")
        assert session.dirty is False
        assert events == [LineChanged(0, "amount", Decimal("12.50"), ChangeOrigin.SYNC)]

    def test_lines_is_a_snapshot(self, make_session):
        session = make_session()
        lines = session.lines
        session.add_line()
        assert len(lines) == 1


class TestCatalogItems:
    ITEM = {"name": "Widget", "sellingPrice": 12, "costPrice": 8}

    def test_sales_document_uses_selling_price(self, make_session):
        session = make_session("invoice")
        session.apply_catalog_item(0, self.ITEM)
        assert session.line(0).item_details == "Widget"
        assert session.line(0).rate == 12

    def test_purchase_document_uses_cost_price(self, make_session):
        session = make_session("bill")
        session.apply_catalog_item(0, self.ITEM)
        assert session.line(0).rate == 8

    def test_missing_price_is_zero(self, make_session):
        session = make_session("invoice")
        session.update_line(0, rate=99)
        session.apply_catalog_item(0, {"name": "Service"})
        assert session.line(0).rate == Decimal("0")


class TestHeaderMutations:
    def test_update_header_coerces(self, make_session):
        session = make_session()
        events = _record_events(session)

        session.update_header(tax_rate="GST 5%", tax_treatment="tcs")

        assert session.header.tax_rate == Decimal("5")
        assert session.header.tax_treatment is TaxTreatment.TCS
        assert session.dirty is True
        assert events == [
            HeaderChanged("tax_rate", Decimal("5")),
            HeaderChanged("tax_treatment", TaxTreatment.TCS),
        ]

    def test_unknown_header_field(self, make_session):
        session = make_session()
        with pytest.raises(UnknownFieldError) as exc_info:
            session.update_header(currency="INR")
        assert exc_info.value.scope == "header"


class TestTotals:
    def test_invoice_ignores_header_discount(self, make_session):
        session = make_session("invoice")
        session.update_line(0, quantity=2, rate=100)
        session.update_header(discount_percent=10)
        assert session.totals.discount_amount == Decimal("0")
        assert session.totals.grand_total == Decimal("200.00")

    def test_bill_applies_header_discount(self, make_session):
        session = make_session("bill")
        session.update_line(0, quantity=2, rate=100)
        session.update_header(discount_percent=10)
        assert session.totals.discount_amount == Decimal("20.00")
        assert session.totals.grand_total == Decimal("180.00")

    def test_totals_ignore_cached_amounts(self, make_session):
        session = make_session()
        session.update_line(0, rate=10)
        session.write_amount(0, Decimal("999"))
        assert session.totals.subtotal == Decimal("10.00")


class TestLoad:
    RAW = {
        "taxType": "TCS",
        "taxSelect": "5",
        "adjustment": "2",
        "items": [
            {"itemDetails": "Widget", "quantity": 3, "sellingPrice": 10, "tax": "GST 12%"},
        ],
    }

    def test_load_replaces_lines_and_header(self, make_session):
        session = make_session()
        session.update_line(0, rate=50)
        events = _record_events(session)

        session.load(self.RAW)

        assert session.dirty is False
        assert len(session.lines) == 1
        assert session.line(0).item_details == "Widget"
        assert session.header.tax_treatment is TaxTreatment.TCS
        assert session.totals.subtotal == Decimal("33.60")
        assert session.totals.tax_amount == Decimal("1.68")
        assert session.totals.grand_total == Decimal("37.28")
        assert events == [DocumentLoaded(1)]

    def test_load_without_items_keeps_one_line(self, make_session):
        session = make_session()
        session.load({"taxType": "TDS"})
        assert len(session.lines) == 1
        assert session.line(0).rate == Decimal("0")

    def test_load_enveloped_items(self, make_session):
        session = make_session()
        session.load({"items": {"data": {"items": [{"rate": 1}, {"rate": 2}]}}})
        assert len(session.lines) == 2

    def test_load_unknown_treatment_uses_default(self, make_session):
        session = make_session()
        session.load({"taxType": "VAT", "items": []})
        assert session.header.tax_treatment is TaxTreatment.TDS


class TestFixedTaxTreatment:
    def test_starts_with_fixed_treatment(self, make_session):
        assert make_session("recurring_bill").header.tax_treatment is TaxTreatment.TDS

    def test_header_edit_cannot_change_it(self, make_session):
        session = make_session("recurring_bill")
        events = _record_events(session)

        session.update_header(tax_treatment="TCS", tax_rate=10)

        assert session.header.tax_treatment is TaxTreatment.TDS
        assert session.header.tax_rate == Decimal("10")
        assert HeaderChanged("tax_treatment", TaxTreatment.TDS) in events

    def test_load_cannot_change_it(self, make_session):
        session = make_session("recurring_bill")
        session.load({"taxType": "TCS", "taxSelect": "10", "items": [{"rate": 100}]})

        assert session.header.tax_treatment is TaxTreatment.TDS
        assert session.totals.tax_amount == Decimal("-10.00")
        assert session.totals.grand_total == Decimal("90.00")

    def test_other_profiles_follow_the_header(self, make_session):
        session = make_session("bill")
        session.update_header(tax_treatment="TCS")
        assert session.header.tax_treatment is TaxTreatment.TCS
