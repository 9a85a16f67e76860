# gstbill/api/v1/schemas/invoices.py
"""Request and response schemas for invoice endpoints."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field

from gstbill.domain.models.invoice import (
    Buyer,
    ExportType,
    InvoiceDraft,
    InvoiceLine,
    InvoiceType,
)


class InvoiceLineIn(BaseModel):
    """One billed line. Amounts stay Decimal end to end."""

    description: str = Field(min_length=1, max_length=500)
    quantity: Decimal
    unit_rate: Decimal
    gst_rate: Decimal = Field(description="Percent, one of the configured slabs")
    product_id: str | None = Field(default=None, max_length=64)
    hsn_sac: str | None = Field(default=None, max_length=8)
    unit: str | None = Field(default=None, max_length=20)
    conversion_factor: Decimal | None = None

    def to_domain(self) -> InvoiceLine:
        return InvoiceLine(
            description=self.description,
            quantity=self.quantity,
            unit_rate=self.unit_rate,
            gst_rate=self.gst_rate,
            product_id=self.product_id,
            hsn_sac=self.hsn_sac,
            unit=self.unit,
            conversion_factor=self.conversion_factor,
        )


class TaxPreviewRequest(BaseModel):
    """Compute the tax split for a cart without saving anything."""

    lines: list[InvoiceLineIn]
    buyer_state_code: str = Field(min_length=1, max_length=2)
    seller_state_code: str | None = Field(default=None, max_length=2)
    is_export: bool = False
    export_type: ExportType | None = None


class BuyerIn(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    state_code: str = Field(min_length=1, max_length=2)
    gstin: str | None = Field(default=None, max_length=15)


class InvoiceCreate(BaseModel):
    """Finalize an invoice: compute tax, assign a number, persist."""

    invoice_type: InvoiceType = InvoiceType.GOODS
    invoice_date: date
    buyer: BuyerIn
    lines: list[InvoiceLineIn]
    seller_state_code: str | None = Field(default=None, max_length=2)
    is_reverse_charge: bool = False
    is_paid: bool = False
    export_type: ExportType | None = None
    shipping_bill_no: str | None = Field(default=None, max_length=50)
    shipping_bill_date: date | None = None

    def to_draft(self) -> InvoiceDraft:
        return InvoiceDraft(
            invoice_type=self.invoice_type,
            buyer=Buyer(
                name=self.buyer.name,
                state_code=self.buyer.state_code,
                gstin=self.buyer.gstin,
            ),
            seller_state_code=self.seller_state_code or "",
            lines=tuple(line.to_domain() for line in self.lines),
            invoice_date=self.invoice_date,
            is_reverse_charge=self.is_reverse_charge,
            is_paid=self.is_paid,
            export_type=self.export_type,
            shipping_bill_no=self.shipping_bill_no,
            shipping_bill_date=self.shipping_bill_date,
        )


class InvoiceDetail(BaseModel):
    """Finalized invoice returned in responses."""

    id: str
    invoice_number: str
    invoice_type: str
    invoice_date: date
    buyer_name: str
    buyer_gstin: str | None
    place_of_supply: str
    seller_state_code: str
    is_reverse_charge: bool
    is_paid: bool
    export_type: str | None
    shipping_bill_no: str | None
    shipping_bill_date: date | None
    breakdown: dict
