# gstbill/domain/services/tax_breakdown.py
"""
Invoice tax computation.

Splits each line's tax into IGST (inter-state) or the CGST/SGST pair
(intra-state), sums the lines, and rounds the grand total to the nearest
rupee. The rounding difference is absorbed into the tax heads, both on the
invoice totals and on the last line, so that:

    sum(line taxes) == invoice tax totals
    taxable_total + tax_totals == grand_total   (an integer)

Taxable value is never adjusted. All arithmetic is done in Decimal at
full precision; nothing is quantized before the final rounding.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import replace
from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal, InvalidOperation

from gstbill.domain.exceptions import ValidationError
from gstbill.domain.models.invoice import ExportType, InvoiceLine, LineTax, TaxBreakdown

logger = logging.getLogger("tax_breakdown")

ZERO = Decimal("0")
HUNDRED = Decimal("100")
TWO = Decimal("2")
RUPEE = Decimal("1")


def to_decimal(value, field_name: str) -> Decimal:
    """Convert int/str/float/Decimal to a finite Decimal or raise ValidationError."""
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field_name} is required", {"field": field_name})
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"{field_name} is not a number: {value!r}", {"field": field_name})
    if not result.is_finite():
        raise ValidationError(f"{field_name} must be finite", {"field": field_name})
    return result


def is_inter_state_supply(seller_state: str, buyer_state: str, is_export: bool) -> bool:
    """Exports are always inter-state; otherwise compare state codes."""
    if is_export:
        return True
    return seller_state.strip() != buyer_state.strip()


def split_round_off(diff: Decimal) -> tuple[Decimal, Decimal]:
    """
    Split a rounding difference between CGST and SGST.

    The split is done at the precision of ``diff`` itself: CGST takes half
    rounded toward zero, SGST takes the rest, so the two differ by at most
    one unit of the last decimal place.
    """
    if diff == ZERO:
        return ZERO, ZERO
    unit = RUPEE.scaleb(diff.normalize().as_tuple().exponent)
    cgst_part = (diff / TWO).quantize(unit, rounding=ROUND_DOWN)
    return cgst_part, diff - cgst_part


def _checked_line(index: int, line: InvoiceLine, permitted_rates: frozenset[Decimal] | None) -> InvoiceLine:
    """Return ``line`` with Decimal amounts, or raise ValidationError."""
    label = f"lines[{index}]"
    quantity = to_decimal(line.quantity, f"{label}.quantity")
    unit_rate = to_decimal(line.unit_rate, f"{label}.unit_rate")
    gst_rate = to_decimal(line.gst_rate, f"{label}.gst_rate")
    factor = None
    if line.conversion_factor is not None:
        factor = to_decimal(line.conversion_factor, f"{label}.conversion_factor")
        if factor <= ZERO:
            raise ValidationError(f"{label}: conversion factor must be > 0", {"line": index})

    if quantity <= ZERO:
        raise ValidationError(f"{label}: quantity must be > 0", {"line": index})
    if unit_rate < ZERO:
        raise ValidationError(f"{label}: unit rate must be >= 0", {"line": index})
    if gst_rate < ZERO:
        raise ValidationError(f"{label}: GST rate must be >= 0", {"line": index})
    if permitted_rates is not None and gst_rate not in permitted_rates:
        raise ValidationError(
            f"{label}: GST rate {gst_rate}% is not a permitted slab",
            {"line": index, "gst_rate": str(gst_rate)},
        )

    checked = replace(
        line,
        quantity=quantity,
        unit_rate=unit_rate,
        gst_rate=gst_rate,
        conversion_factor=factor,
    )
    if checked.taxable_value < ZERO:
        raise ValidationError(f"{label}: taxable value must be >= 0", {"line": index})
    return checked


def validate_lines(
    lines: Iterable[InvoiceLine],
    permitted_rates: frozenset[Decimal] | None = None,
) -> tuple[InvoiceLine, ...]:
    """Validate a line list and return it with every amount as Decimal."""
    lines = tuple(lines)
    if not lines:
        raise ValidationError("Invoice must have at least one line")
    return tuple(_checked_line(i, line, permitted_rates) for i, line in enumerate(lines))


def compute_invoice_tax(
    lines: Iterable[InvoiceLine],
    seller_state: str,
    buyer_state: str,
    is_export: bool = False,
    *,
    export_type: ExportType | None = None,
    permitted_rates: frozenset[Decimal] | None = None,
) -> TaxBreakdown:
    """
    Compute the reconciled tax breakdown for one invoice.

    Zero-rated exports (``ExportType.WITHOUT_PAYMENT``) carry no tax on any
    line. Raises ValidationError for an empty line list, blank state codes,
    or any line with a non-positive quantity, negative or non-finite values,
    or a rate outside ``permitted_rates``.
    """
    lines = validate_lines(lines, permitted_rates)
    if not seller_state or not seller_state.strip():
        raise ValidationError("Seller state code is required", {"field": "seller_state"})
    if not buyer_state or not buyer_state.strip():
        raise ValidationError("Buyer state code is required", {"field": "buyer_state"})

    inter_state = is_inter_state_supply(seller_state, buyer_state, is_export)
    zero_rated = is_export and export_type is ExportType.WITHOUT_PAYMENT

    line_taxes: list[LineTax] = []
    for line in lines:
        taxable = line.taxable_value
        rate = line.gst_rate
        tax = ZERO if zero_rated else taxable * rate / HUNDRED
        if inter_state:
            line_taxes.append(LineTax(taxable_value=taxable, gst_rate=rate, igst=tax))
        else:
            half = tax / TWO
            line_taxes.append(LineTax(taxable_value=taxable, gst_rate=rate, cgst=half, sgst=half))

    taxable_total = sum((t.taxable_value for t in line_taxes), ZERO)
    igst_total = sum((t.igst for t in line_taxes), ZERO)
    cgst_total = sum((t.cgst for t in line_taxes), ZERO)
    sgst_total = sum((t.sgst for t in line_taxes), ZERO)

    exact_total = taxable_total + igst_total + cgst_total + sgst_total
    grand_total = exact_total.quantize(RUPEE, rounding=ROUND_HALF_UP)
    diff = grand_total - exact_total

    if diff != ZERO:
        last = line_taxes[-1]
        if inter_state:
            igst_total += diff
            line_taxes[-1] = LineTax(
                taxable_value=last.taxable_value,
                gst_rate=last.gst_rate,
                igst=last.igst + diff,
            )
        else:
            cgst_part, sgst_part = split_round_off(diff)
            cgst_total += cgst_part
            sgst_total += sgst_part
            line_taxes[-1] = LineTax(
                taxable_value=last.taxable_value,
                gst_rate=last.gst_rate,
                cgst=last.cgst + cgst_part,
                sgst=last.sgst + sgst_part,
            )
        logger.debug("Absorbed round-off %s into %s", diff, "IGST" if inter_state else "CGST/SGST")

    return TaxBreakdown(
        is_inter_state=inter_state,
        lines=tuple(line_taxes),
        taxable_total=taxable_total,
        igst_total=igst_total,
        cgst_total=cgst_total,
        sgst_total=sgst_total,
        exact_total=exact_total,
        round_off=diff,
        grand_total=grand_total,
    )
