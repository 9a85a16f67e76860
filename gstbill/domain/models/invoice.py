# gstbill/domain/models/invoice.py
"""Immutable value types for invoices and their tax breakdown."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

ZERO = Decimal("0")


class InvoiceType(str, Enum):
    GOODS = "GOODS"  # standard tax invoice
    SERVICES = "SERVICES"
    EXPORT = "EXPORT"

    @property
    def letter(self) -> str:
        return self.value[0]


class ExportType(str, Enum):
    WITH_PAYMENT = "WITH_PAYMENT"  # IGST charged
    WITHOUT_PAYMENT = "WITHOUT_PAYMENT"  # zero-rated under LUT


@dataclass(frozen=True)
class InvoiceLine:
    description: str
    quantity: Decimal
    unit_rate: Decimal
    gst_rate: Decimal  # percent
    product_id: str | None = None
    hsn_sac: str | None = None
    unit: str | None = None
    conversion_factor: Decimal | None = None  # packaging unit -> base unit

    @property
    def effective_rate(self) -> Decimal:
        if self.conversion_factor is None:
            return self.unit_rate
        return self.unit_rate * self.conversion_factor

    @property
    def taxable_value(self) -> Decimal:
        return self.quantity * self.effective_rate


@dataclass(frozen=True)
class LineTax:
    taxable_value: Decimal
    gst_rate: Decimal
    igst: Decimal = ZERO
    cgst: Decimal = ZERO
    sgst: Decimal = ZERO

    @property
    def tax_total(self) -> Decimal:
        return self.igst + self.cgst + self.sgst

    def to_dict(self) -> dict[str, str]:
        return {
            "taxable_value": str(self.taxable_value),
            "gst_rate": str(self.gst_rate),
            "igst": str(self.igst),
            "cgst": str(self.cgst),
            "sgst": str(self.sgst),
        }


@dataclass(frozen=True)
class TaxBreakdown:
    """
    Tax split for one invoice.

    ``round_off`` is ``grand_total - exact_total`` before absorption; it has
    already been folded into the tax totals and into the last line.
    """

    is_inter_state: bool
    lines: tuple[LineTax, ...]
    taxable_total: Decimal
    igst_total: Decimal
    cgst_total: Decimal
    sgst_total: Decimal
    exact_total: Decimal
    round_off: Decimal
    grand_total: Decimal

    @property
    def tax_total(self) -> Decimal:
        return self.igst_total + self.cgst_total + self.sgst_total

    @property
    def rated_tax(self) -> Decimal:
        """Tax charged by the line rates alone, without the absorbed round-off."""
        return self.tax_total - self.round_off

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_inter_state": self.is_inter_state,
            "lines": [line.to_dict() for line in self.lines],
            "taxable_total": str(self.taxable_total),
            "igst_total": str(self.igst_total),
            "cgst_total": str(self.cgst_total),
            "sgst_total": str(self.sgst_total),
            "exact_total": str(self.exact_total),
            "round_off": str(self.round_off),
            "grand_total": str(self.grand_total),
        }


@dataclass(frozen=True)
class Buyer:
    name: str
    state_code: str
    gstin: str | None = None

    @property
    def is_registered(self) -> bool:
        return bool(self.gstin and self.gstin.strip())


@dataclass(frozen=True)
class InvoiceDraft:
    """Everything the billing screen hands over at finalization."""

    invoice_type: InvoiceType
    buyer: Buyer
    seller_state_code: str
    lines: tuple[InvoiceLine, ...]
    invoice_date: date
    is_reverse_charge: bool = False
    is_paid: bool = False
    export_type: ExportType | None = None
    shipping_bill_no: str | None = None
    shipping_bill_date: date | None = None

    @property
    def is_export(self) -> bool:
        return self.invoice_type is InvoiceType.EXPORT


@dataclass(frozen=True)
class Invoice:
    """A finalized invoice. Tax fields never change after creation."""

    id: str
    tenant_id: str
    invoice_number: str
    sequence: int
    invoice_type: InvoiceType
    invoice_date: date
    buyer: Buyer
    seller_state_code: str
    lines: tuple[InvoiceLine, ...]
    breakdown: TaxBreakdown
    created_at: datetime
    is_reverse_charge: bool = False
    is_paid: bool = False
    export_type: ExportType | None = None
    shipping_bill_no: str | None = None
    shipping_bill_date: date | None = None

    @property
    def year(self) -> int:
        return self.invoice_date.year

    @property
    def is_export(self) -> bool:
        return self.invoice_type is InvoiceType.EXPORT

    @property
    def is_inter_state(self) -> bool:
        return self.breakdown.is_inter_state

    @property
    def is_registered_buyer(self) -> bool:
        return self.buyer.is_registered

    @property
    def place_of_supply(self) -> str:
        return self.buyer.state_code

    @property
    def taxable_total(self) -> Decimal:
        return self.breakdown.taxable_total

    @property
    def tax_total(self) -> Decimal:
        return self.breakdown.tax_total

    @property
    def grand_total(self) -> Decimal:
        return self.breakdown.grand_total
