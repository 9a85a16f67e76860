# gstbill/domain/models/filing.py
"""
Value types for the detailed (GSTR-1) and summary (GSTR-3B) filings.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

ZERO = Decimal("0")

# Place-of-supply key used for export rows in the summary filing.
EXPORT_KEY = "EXPORT"


class SectionKind(str, Enum):
    B2B = "b2b"  # registered business
    B2CL = "b2cl"  # large unregistered inter-state
    B2CS = "b2cs"  # aggregated small unregistered
    EXP = "exp"  # exports
    NIL = "nil"  # nil rated / exempt


class FilingStatus(str, Enum):
    DRAFT = "draft"
    FILED = "filed"
    AMENDED = "amended"


@dataclass(frozen=True)
class FilingSectionRow:
    section: SectionKind
    place_of_supply: str | None
    taxable_value: Decimal
    igst: Decimal = ZERO
    cgst: Decimal = ZERO
    sgst: Decimal = ZERO
    rate: Decimal | None = None
    invoice_id: str | None = None
    invoice_number: str | None = None
    invoice_date: date | None = None
    counterparty_gstin: str | None = None
    reverse_charge: bool = False
    export_type: str | None = None
    shipping_bill_no: str | None = None
    shipping_bill_date: date | None = None
    description: str | None = None

    @property
    def tax_total(self) -> Decimal:
        return self.igst + self.cgst + self.sgst

    @property
    def key(self) -> tuple:
        """Classification key of the row within its section."""
        if self.section is SectionKind.B2B:
            return (self.counterparty_gstin, self.invoice_number)
        if self.section is SectionKind.B2CS:
            return (self.place_of_supply, self.rate)
        if self.section is SectionKind.NIL:
            return (self.description, self.invoice_number)
        return (self.place_of_supply, self.invoice_number)

    def to_dict(self) -> dict[str, Any]:
        return {
            "section": self.section.value,
            "place_of_supply": self.place_of_supply,
            "rate": str(self.rate) if self.rate is not None else None,
            "taxable_value": str(self.taxable_value),
            "igst": str(self.igst),
            "cgst": str(self.cgst),
            "sgst": str(self.sgst),
            "invoice_id": self.invoice_id,
            "invoice_number": self.invoice_number,
            "invoice_date": self.invoice_date.isoformat() if self.invoice_date else None,
            "counterparty_gstin": self.counterparty_gstin,
            "reverse_charge": self.reverse_charge,
            "export_type": self.export_type,
            "shipping_bill_no": self.shipping_bill_no,
            "shipping_bill_date": self.shipping_bill_date.isoformat() if self.shipping_bill_date else None,
            "description": self.description,
        }


@dataclass(frozen=True)
class SupplyTotals:
    """Summed amounts, optionally keyed by place of supply."""

    taxable_value: Decimal = ZERO
    igst: Decimal = ZERO
    cgst: Decimal = ZERO
    sgst: Decimal = ZERO
    place_of_supply: str | None = None
    key: str | None = None

    @property
    def tax_total(self) -> Decimal:
        return self.igst + self.cgst + self.sgst

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "place_of_supply": self.place_of_supply,
            "taxable_value": str(self.taxable_value),
            "igst": str(self.igst),
            "cgst": str(self.cgst),
            "sgst": str(self.sgst),
        }


@dataclass(frozen=True)
class DetailedFiling:
    """GSTR-1 for one tenant and period."""

    tenant_id: str
    period: str
    financial_year: str
    invoice_count: int
    rows: tuple[FilingSectionRow, ...]
    totals: SupplyTotals
    created_at: datetime
    status: FilingStatus = FilingStatus.DRAFT

    def section(self, kind: SectionKind) -> tuple[FilingSectionRow, ...]:
        return tuple(r for r in self.rows if r.section is kind)

    def to_dict(self) -> dict[str, Any]:
        return {
            "form_type": "GSTR-1",
            "tenant_id": self.tenant_id,
            "period": self.period,
            "financial_year": self.financial_year,
            "status": self.status.value,
            "invoice_count": self.invoice_count,
            "totals": self.totals.to_dict(),
            "sections": {
                kind.value: [r.to_dict() for r in self.section(kind)]
                for kind in SectionKind
            },
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class SummaryFiling:
    """GSTR-3B for one tenant and period, derived from its GSTR-1."""

    tenant_id: str
    period: str
    financial_year: str
    outward_taxable: tuple[SupplyTotals, ...]  # 3.1(a)
    small_unregistered: tuple[SupplyTotals, ...]  # 3.2
    nil_exempt: SupplyTotals  # 3.1(c)
    created_at: datetime
    status: FilingStatus = FilingStatus.DRAFT

    def to_dict(self) -> dict[str, Any]:
        return {
            "form_type": "GSTR-3B",
            "tenant_id": self.tenant_id,
            "period": self.period,
            "financial_year": self.financial_year,
            "status": self.status.value,
            "outward_taxable": [t.to_dict() for t in self.outward_taxable],
            "small_unregistered": [t.to_dict() for t in self.small_unregistered],
            "nil_exempt": self.nil_exempt.to_dict(),
            "created_at": self.created_at.isoformat(),
        }
