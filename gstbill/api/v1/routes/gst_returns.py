# gstbill/api/v1/routes/gst_returns.py
"""
V1 API endpoints for GSTR-1 / GSTR-3B generation and status.

Generation is one-shot per (tenant, period): a second POST returns 409.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from gstbill.api.v1.deps import get_engine, get_tenant_id
from gstbill.api.v1.envelope import ok
from gstbill.api.v1.schemas.returns import ReturnListItem, StatusTransitionRequest
from gstbill.domain.models.filing import DetailedFiling, SummaryFiling
from gstbill.domain.services.gst_engine import GSTR1, GSTR3B, GSTEngine
from gstbill.domain.services.gstr1_service import prepare_gstr1_form
from gstbill.domain.services.return_period import parse_period

logger = logging.getLogger("api.v1.gst_returns")

router = APIRouter(prefix="/gst/returns", tags=["GST Returns"])

_FORMS = {"gstr1": GSTR1, "gstr3b": GSTR3B}


# ============================================================
# Helpers
# ============================================================

def _to_list_item(filing: DetailedFiling | SummaryFiling, form_type: str) -> dict:
    return ReturnListItem(
        form_type=form_type,
        period=filing.period,
        financial_year=filing.financial_year,
        status=filing.status.value,
        created_at=filing.created_at.isoformat(),
    ).model_dump()


def _gstr1_response(filing: DetailedFiling) -> dict:
    data = filing.to_dict()
    data["summary"] = prepare_gstr1_form(filing)
    return data


# ============================================================
# Endpoints
# ============================================================

@router.get("", summary="List generated returns")
async def list_returns(
    tenant_id: str = Depends(get_tenant_id),
    engine: GSTEngine = Depends(get_engine),
):
    """Both GSTR-1 and GSTR-3B filings for the tenant, most recent period first."""
    returns = await engine.list_returns(tenant_id)
    return ok(data={
        "gstr1": [_to_list_item(f, GSTR1) for f in returns["gstr1"]],
        "gstr3b": [_to_list_item(f, GSTR3B) for f in returns["gstr3b"]],
    })


@router.post("/{period}/gstr1", summary="Generate GSTR-1", status_code=status.HTTP_201_CREATED)
async def generate_gstr1(
    period: str,
    tenant_id: str = Depends(get_tenant_id),
    engine: GSTEngine = Depends(get_engine),
):
    """Classify the period's invoices into GSTR-1 sections and save the filing."""
    filing = await engine.generate_detailed_filing(tenant_id, period)
    return ok(data=_gstr1_response(filing), message=f"GSTR-1 generated for {period}")


@router.get("/{period}/gstr1", summary="Get GSTR-1")
async def get_gstr1(
    period: str,
    tenant_id: str = Depends(get_tenant_id),
    engine: GSTEngine = Depends(get_engine),
):
    parse_period(period)
    filing = await engine.detailed_filings.find_by_period(tenant_id, period)
    if filing is None:
        raise HTTPException(status_code=404, detail=f"GSTR-1 not found for {period}")
    return ok(data=_gstr1_response(filing))


@router.post("/{period}/gstr3b", summary="Generate GSTR-3B", status_code=status.HTTP_201_CREATED)
async def generate_gstr3b(
    period: str,
    tenant_id: str = Depends(get_tenant_id),
    engine: GSTEngine = Depends(get_engine),
):
    """Aggregate the period's GSTR-1 into GSTR-3B tables and save the filing."""
    filing = await engine.generate_summary_filing(tenant_id, period)
    return ok(data=filing.to_dict(), message=f"GSTR-3B generated for {period}")


@router.get("/{period}/gstr3b", summary="Get GSTR-3B")
async def get_gstr3b(
    period: str,
    tenant_id: str = Depends(get_tenant_id),
    engine: GSTEngine = Depends(get_engine),
):
    parse_period(period)
    filing = await engine.summary_filings.find_by_period(tenant_id, period)
    if filing is None:
        raise HTTPException(status_code=404, detail=f"GSTR-3B not found for {period}")
    return ok(data=filing.to_dict())


@router.post("/{period}/{form}/status", summary="Transition filing status")
async def transition_status(
    period: str,
    form: str,
    body: StatusTransitionRequest,
    tenant_id: str = Depends(get_tenant_id),
    engine: GSTEngine = Depends(get_engine),
):
    """Record an external filing or correction action (draft -> filed -> amended)."""
    form_type = _FORMS.get(form)
    if form_type is None:
        raise HTTPException(status_code=404, detail=f"Unknown return form: {form}")
    filing = await engine.update_filing_status(form_type, tenant_id, period, body.status)
    logger.info("Tenant %s moved %s %s to %s", tenant_id, form_type, period, body.status.value)
    return ok(data=_to_list_item(filing, form_type))
