# gstbill/api/v1/routes/invoices.py
"""
V1 API endpoints for invoice tax computation and finalization.

Tenant is taken from the ``X-Tenant-ID`` header.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from gstbill.api.v1.deps import get_engine, get_tenant_id
from gstbill.api.v1.envelope import ok
from gstbill.api.v1.schemas.invoices import InvoiceCreate, InvoiceDetail, TaxPreviewRequest
from gstbill.domain.models.invoice import Invoice
from gstbill.domain.services.gst_engine import GSTEngine

router = APIRouter(prefix="/invoices", tags=["Invoices"])


# ============================================================
# Helpers
# ============================================================

def _to_invoice_response(inv: Invoice) -> dict:
    return InvoiceDetail(
        id=inv.id,
        invoice_number=inv.invoice_number,
        invoice_type=inv.invoice_type.value,
        invoice_date=inv.invoice_date,
        buyer_name=inv.buyer.name,
        buyer_gstin=inv.buyer.gstin,
        place_of_supply=inv.place_of_supply,
        seller_state_code=inv.seller_state_code,
        is_reverse_charge=inv.is_reverse_charge,
        is_paid=inv.is_paid,
        export_type=inv.export_type.value if inv.export_type else None,
        shipping_bill_no=inv.shipping_bill_no,
        shipping_bill_date=inv.shipping_bill_date,
        breakdown=inv.breakdown.to_dict(),
    ).model_dump(mode="json")


# ============================================================
# Endpoints
# ============================================================

@router.post("/tax-preview", summary="Compute invoice tax split")
async def tax_preview(
    body: TaxPreviewRequest,
    engine: GSTEngine = Depends(get_engine),
):
    """Tax breakdown for a cart. Nothing is persisted."""
    breakdown = engine.compute_invoice_tax(
        [line.to_domain() for line in body.lines],
        body.seller_state_code or engine.config.base_state_code,
        body.buyer_state_code,
        body.is_export,
        export_type=body.export_type,
    )
    return ok(data=breakdown.to_dict())


@router.post("", summary="Finalize invoice", status_code=status.HTTP_201_CREATED)
async def finalize_invoice(
    body: InvoiceCreate,
    tenant_id: str = Depends(get_tenant_id),
    engine: GSTEngine = Depends(get_engine),
):
    """Compute tax, assign the next invoice number and save."""
    invoice = await engine.finalize_invoice(tenant_id, body.to_draft())
    return ok(data=_to_invoice_response(invoice), message=f"Invoice {invoice.invoice_number} created")
