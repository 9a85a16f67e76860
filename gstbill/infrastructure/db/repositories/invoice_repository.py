import uuid

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from gstbill.domain.models.invoice import (
    Buyer,
    ExportType,
    Invoice,
    InvoiceLine,
    InvoiceType,
    LineTax,
    TaxBreakdown,
)
from gstbill.domain.services.return_period import period_date_range
from gstbill.infrastructure.db.base import commit_or_conflict
from gstbill.infrastructure.db.models import InvoiceLineRecord, InvoiceRecord


class InvoiceRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # ---------- mapping ----------

    @staticmethod
    def _to_record(invoice: Invoice) -> InvoiceRecord:
        bd = invoice.breakdown
        return InvoiceRecord(
            id=uuid.UUID(invoice.id),
            tenant_id=invoice.tenant_id,
            invoice_number=invoice.invoice_number,
            invoice_type=invoice.invoice_type.value,
            year=invoice.year,
            sequence=invoice.sequence,
            invoice_date=invoice.invoice_date,
            buyer_name=invoice.buyer.name,
            buyer_gstin=(invoice.buyer.gstin or "").strip() or None,
            buyer_state_code=invoice.buyer.state_code,
            seller_state_code=invoice.seller_state_code,
            is_inter_state=bd.is_inter_state,
            taxable_total=bd.taxable_total,
            igst_total=bd.igst_total,
            cgst_total=bd.cgst_total,
            sgst_total=bd.sgst_total,
            exact_total=bd.exact_total,
            round_off=bd.round_off,
            grand_total=bd.grand_total,
            is_paid=invoice.is_paid,
            is_reverse_charge=invoice.is_reverse_charge,
            export_type=invoice.export_type.value if invoice.export_type else None,
            shipping_bill_no=invoice.shipping_bill_no,
            shipping_bill_date=invoice.shipping_bill_date,
            created_at=invoice.created_at,
            lines=[
                InvoiceLineRecord(
                    position=pos,
                    product_id=line.product_id,
                    description=line.description,
                    hsn_sac=line.hsn_sac,
                    unit=line.unit,
                    quantity=line.quantity,
                    unit_rate=line.unit_rate,
                    conversion_factor=line.conversion_factor,
                    gst_rate=line.gst_rate,
                    taxable_value=tax.taxable_value,
                    igst=tax.igst,
                    cgst=tax.cgst,
                    sgst=tax.sgst,
                )
                for pos, (line, tax) in enumerate(zip(invoice.lines, bd.lines))
            ],
        )

    @staticmethod
    def _to_domain(rec: InvoiceRecord) -> Invoice:
        line_recs = sorted(rec.lines, key=lambda r: r.position)
        breakdown = TaxBreakdown(
            is_inter_state=rec.is_inter_state,
            lines=tuple(
                LineTax(
                    taxable_value=lr.taxable_value,
                    gst_rate=lr.gst_rate,
                    igst=lr.igst,
                    cgst=lr.cgst,
                    sgst=lr.sgst,
                )
                for lr in line_recs
            ),
            taxable_total=rec.taxable_total,
            igst_total=rec.igst_total,
            cgst_total=rec.cgst_total,
            sgst_total=rec.sgst_total,
            exact_total=rec.exact_total,
            round_off=rec.round_off,
            grand_total=rec.grand_total,
        )
        return Invoice(
            id=str(rec.id),
            tenant_id=rec.tenant_id,
            invoice_number=rec.invoice_number,
            sequence=rec.sequence,
            invoice_type=InvoiceType(rec.invoice_type),
            invoice_date=rec.invoice_date,
            buyer=Buyer(name=rec.buyer_name, state_code=rec.buyer_state_code, gstin=rec.buyer_gstin),
            seller_state_code=rec.seller_state_code,
            lines=tuple(
                InvoiceLine(
                    description=lr.description,
                    quantity=lr.quantity,
                    unit_rate=lr.unit_rate,
                    gst_rate=lr.gst_rate,
                    product_id=lr.product_id,
                    hsn_sac=lr.hsn_sac,
                    unit=lr.unit,
                    conversion_factor=lr.conversion_factor,
                )
                for lr in line_recs
            ),
            breakdown=breakdown,
            created_at=rec.created_at,
            is_reverse_charge=rec.is_reverse_charge,
            is_paid=rec.is_paid,
            export_type=ExportType(rec.export_type) if rec.export_type else None,
            shipping_bill_no=rec.shipping_bill_no,
            shipping_bill_date=rec.shipping_bill_date,
        )

    # ---------- main methods ----------

    async def count_for_sequence(self, tenant_id: str, invoice_type: InvoiceType, year: int) -> int:
        """Finalized invoices of one type for a tenant in a calendar year."""
        stmt = select(func.count()).select_from(InvoiceRecord).where(
            and_(
                InvoiceRecord.tenant_id == tenant_id,
                InvoiceRecord.invoice_type == invoice_type.value,
                InvoiceRecord.year == year,
            )
        )
        result = await self.db.execute(stmt)
        return result.scalar_one() or 0

    async def save(self, invoice: Invoice) -> Invoice:
        """
        Insert the invoice with its lines in one commit.

        The (tenant, type, year, sequence) constraint rejects a number taken
        by a concurrent finalization with ConcurrencyConflictError.
        """
        self.db.add(self._to_record(invoice))
        await commit_or_conflict(
            self.db,
            f"Invoice number {invoice.invoice_number} is already taken",
            {"invoice_number": invoice.invoice_number},
        )
        return invoice

    async def find_by_period(self, tenant_id: str, period: str) -> list[Invoice]:
        """All invoices of a tenant dated within a YYYYMM period."""
        start, end = period_date_range(period)
        stmt = (
            select(InvoiceRecord)
            .options(selectinload(InvoiceRecord.lines))
            .where(
                and_(
                    InvoiceRecord.tenant_id == tenant_id,
                    InvoiceRecord.invoice_date >= start,
                    InvoiceRecord.invoice_date <= end,
                )
            )
            .order_by(
                InvoiceRecord.invoice_date.asc(),
                InvoiceRecord.invoice_type.asc(),
                InvoiceRecord.sequence.asc(),
            )
        )
        result = await self.db.execute(stmt)
        return [self._to_domain(rec) for rec in result.scalars().all()]
