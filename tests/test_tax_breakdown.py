# tests/test_tax_breakdown.py
"""Tests for invoice tax computation and round-off absorption."""

from decimal import Decimal

import pytest

from gstbill.domain.exceptions import ValidationError
from gstbill.domain.models.engine_config import DEFAULT_RATE_SLABS
from gstbill.domain.models.invoice import ExportType, InvoiceLine
from gstbill.domain.services.tax_breakdown import (
    compute_invoice_tax,
    is_inter_state_supply,
    split_round_off,
    to_decimal,
    validate_lines,
)
from tests.conftest import line


def _assert_reconciled(bd):
    assert sum((t.igst for t in bd.lines), Decimal("0")) == bd.igst_total
    assert sum((t.cgst for t in bd.lines), Decimal("0")) == bd.cgst_total
    assert sum((t.sgst for t in bd.lines), Decimal("0")) == bd.sgst_total
    assert bd.taxable_total + bd.igst_total + bd.cgst_total + bd.sgst_total == bd.grand_total
    assert bd.grand_total == bd.grand_total.to_integral_value()


# ============================================================
# Worked examples
# ============================================================

def test_inter_state_single_line():
    bd = compute_invoice_tax([line("1000", "18")], "24", "27")
    assert bd.is_inter_state is True
    assert bd.igst_total == Decimal("180")
    assert bd.cgst_total == 0 and bd.sgst_total == 0
    assert bd.grand_total == Decimal("1180")
    assert bd.round_off == 0
    _assert_reconciled(bd)


def test_intra_state_fractional_taxable_rounds_to_whole_rupee():
    bd = compute_invoice_tax([line("100.005", "18")], "24", "24")
    assert bd.is_inter_state is False
    assert bd.exact_total == Decimal("118.0059")
    assert bd.grand_total == Decimal("118")
    assert bd.round_off == Decimal("-0.0059")
    assert bd.cgst_total == Decimal("8.99755")
    assert bd.sgst_total == Decimal("8.99745")
    assert bd.taxable_total == Decimal("100.005")
    assert bd.igst_total == 0
    _assert_reconciled(bd)


def test_intra_state_split_differs_by_at_most_one_unit():
    bd = compute_invoice_tax([line("100.005", "18")], "24", "24")
    unit = Decimal("1").scaleb(bd.round_off.normalize().as_tuple().exponent)
    assert abs(bd.cgst_total - bd.sgst_total) <= unit


def test_multi_line_round_off_lands_on_last_line():
    lines = [line("99.99", "5"), line("10.10", "12"), line("33.33", "18")]
    bd = compute_invoice_tax(lines, "24", "29")
    exact_igst = [Decimal("99.99") * 5 / 100, Decimal("10.10") * 12 / 100, Decimal("33.33") * 18 / 100]
    assert bd.lines[0].igst == exact_igst[0]
    assert bd.lines[1].igst == exact_igst[1]
    assert bd.lines[2].igst == exact_igst[2] + bd.round_off
    _assert_reconciled(bd)


def test_taxable_value_never_adjusted():
    lines = [line("10.333", "12"), line("7.777", "28")]
    bd = compute_invoice_tax(lines, "24", "24")
    assert [t.taxable_value for t in bd.lines] == [Decimal("10.333"), Decimal("7.777")]
    assert bd.taxable_total == Decimal("18.110")


def test_computation_is_deterministic():
    lines = [line("123.456", "18"), line("0.5", "5", quantity="3")]
    assert compute_invoice_tax(lines, "24", "24") == compute_invoice_tax(lines, "24", "24")


def test_quantity_and_conversion_factor_multiply_into_taxable():
    ln = InvoiceLine(
        description="Box of 12",
        quantity=Decimal("2"),
        unit_rate=Decimal("10"),
        gst_rate=Decimal("12"),
        unit="BOX",
        conversion_factor=Decimal("12"),
    )
    bd = compute_invoice_tax([ln], "24", "24")
    assert bd.taxable_total == Decimal("240")
    assert bd.exact_total == Decimal("268.8")
    assert bd.cgst_total == bd.sgst_total == Decimal("14.5")
    assert bd.grand_total == Decimal("269")
    _assert_reconciled(bd)


def test_accepts_plain_numbers():
    ln = InvoiceLine(description="x", quantity=2, unit_rate="50.5", gst_rate=5)
    bd = compute_invoice_tax([ln], "24", "24")
    assert bd.taxable_total == Decimal("101.0")
    _assert_reconciled(bd)


# ============================================================
# Exports
# ============================================================

def test_export_is_inter_state_even_from_home_state():
    assert is_inter_state_supply("24", "24", True) is True
    bd = compute_invoice_tax([line("1000", "18")], "24", "24", True, export_type=ExportType.WITH_PAYMENT)
    assert bd.is_inter_state is True
    assert bd.igst_total == Decimal("180")


def test_export_under_lut_charges_no_rated_tax():
    bd = compute_invoice_tax([line("1000.4", "18")], "24", "96", True, export_type=ExportType.WITHOUT_PAYMENT)
    assert bd.rated_tax == Decimal("0")
    assert bd.igst_total == bd.round_off == Decimal("-0.4")
    assert bd.grand_total == Decimal("1000")
    assert bd.taxable_total == Decimal("1000.4")
    _assert_reconciled(bd)


def test_zero_rate_line_absorbs_round_off():
    bd = compute_invoice_tax([line("49.75", "0")], "24", "24")
    assert bd.grand_total == Decimal("50")
    assert bd.cgst_total + bd.sgst_total == Decimal("0.25")
    _assert_reconciled(bd)


# ============================================================
# Round-off split
# ============================================================

@pytest.mark.parametrize(
    "diff, cgst, sgst",
    [
        (Decimal("0"), Decimal("0"), Decimal("0")),
        (Decimal("0.40"), Decimal("0.2"), Decimal("0.2")),
        (Decimal("-0.0059"), Decimal("-0.0029"), Decimal("-0.0030")),
        (Decimal("0.03"), Decimal("0.01"), Decimal("0.02")),
    ],
)
def test_split_round_off(diff, cgst, sgst):
    c, s = split_round_off(diff)
    assert c == cgst
    assert s == sgst
    assert c + s == diff


# ============================================================
# Validation
# ============================================================

def test_empty_line_list_rejected():
    with pytest.raises(ValidationError):
        compute_invoice_tax([], "24", "24")


@pytest.mark.parametrize(
    "kwargs",
    [
        {"quantity": Decimal("0")},
        {"quantity": Decimal("-1")},
        {"unit_rate": Decimal("-0.01")},
        {"gst_rate": Decimal("-5")},
        {"unit_rate": Decimal("NaN")},
        {"quantity": Decimal("Infinity")},
        {"unit_rate": "abc"},
        {"quantity": None},
        {"conversion_factor": Decimal("0")},
    ],
)
def test_invalid_line_values_rejected(kwargs):
    fields = {"description": "x", "quantity": Decimal("1"), "unit_rate": Decimal("10"), "gst_rate": Decimal("18")}
    fields.update(kwargs)
    with pytest.raises(ValidationError):
        compute_invoice_tax([InvoiceLine(**fields)], "24", "24")


def test_rate_outside_permitted_slabs_rejected():
    with pytest.raises(ValidationError) as exc_info:
        compute_invoice_tax([line("100", "7")], "24", "24", permitted_rates=DEFAULT_RATE_SLABS)
    assert exc_info.value.details["gst_rate"] == "7"


def test_special_rates_are_permitted():
    bd = compute_invoice_tax([line("400", "0.25")], "24", "24", permitted_rates=DEFAULT_RATE_SLABS)
    assert bd.cgst_total + bd.sgst_total == Decimal("1")


def test_blank_state_code_rejected():
    with pytest.raises(ValidationError):
        compute_invoice_tax([line()], "24", " ")


def test_validate_lines_normalizes_to_decimal():
    (checked,) = validate_lines([InvoiceLine(description="x", quantity=3, unit_rate=1.5, gst_rate=5)])
    assert checked.quantity == Decimal("3")
    assert checked.unit_rate == Decimal("1.5")
    assert isinstance(checked.gst_rate, Decimal)


def test_to_decimal_rejects_bool():
    with pytest.raises(ValidationError):
        to_decimal(True, "quantity")
