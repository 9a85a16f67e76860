# gstbill/domain/services/gst_engine.py
"""
GST engine facade.

Exposes the engine's operations over injected stores:

    compute_invoice_tax       per-invoice tax split (pure)
    finalize_invoice          tax split + numbering + save
    generate_detailed_filing  GSTR-1 for (tenant, period)
    generate_summary_filing   GSTR-3B derived from the GSTR-1
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any

from gstbill.domain.exceptions import (
    ConcurrencyConflictError,
    DuplicateFilingError,
    MissingPrerequisiteError,
    ValidationError,
)
from gstbill.domain.models.engine_config import GSTEngineConfig
from gstbill.domain.models.filing import DetailedFiling, FilingStatus, SummaryFiling
from gstbill.domain.models.invoice import (
    ExportType,
    Invoice,
    InvoiceDraft,
    InvoiceLine,
    TaxBreakdown,
)
from gstbill.domain.repositories import DetailedFilingStore, InvoiceStore, SummaryFilingStore
from gstbill.domain.services.filing_workflow import validate_filing_transition
from gstbill.domain.services.gstr1_service import build_detailed_filing
from gstbill.domain.services.gstr3b_service import aggregate_summary
from gstbill.domain.services.invoice_numbering import next_invoice_number
from gstbill.domain.services.return_period import parse_period, period_date_range
from gstbill.domain.services.tax_breakdown import compute_invoice_tax, validate_lines

logger = logging.getLogger("gst_engine")

GSTR1 = "GSTR-1"
GSTR3B = "GSTR-3B"


class GSTEngine:
    """Tax computation and return generation for one deployment's config."""

    def __init__(
        self,
        invoices: InvoiceStore,
        detailed_filings: DetailedFilingStore,
        summary_filings: SummaryFilingStore,
        config: GSTEngineConfig | None = None,
    ) -> None:
        self.invoices = invoices
        self.detailed_filings = detailed_filings
        self.summary_filings = summary_filings
        self.config = config or GSTEngineConfig()

    # ------------------------------------------------------------------
    # Invoices
    # ------------------------------------------------------------------

    def compute_invoice_tax(
        self,
        lines: Iterable[InvoiceLine],
        seller_state: str,
        buyer_state: str,
        is_export: bool = False,
        *,
        export_type: ExportType | None = None,
    ) -> TaxBreakdown:
        return compute_invoice_tax(
            lines,
            seller_state,
            buyer_state,
            is_export,
            export_type=export_type,
            permitted_rates=self.config.rate_slabs,
        )

    async def finalize_invoice(
        self,
        tenant_id: str,
        draft: InvoiceDraft,
        *,
        now: datetime | None = None,
    ) -> Invoice:
        """
        Compute the breakdown, assign the next number and persist the invoice.

        A ConcurrencyConflictError from the store means another finalization
        took the same number; the count is re-read and the invoice renumbered,
        up to ``numbering_max_attempts`` times.
        """
        if not tenant_id:
            raise ValidationError("tenant_id is required")

        export_type = draft.export_type
        if draft.is_export and export_type is None:
            export_type = ExportType.WITH_PAYMENT
        elif not draft.is_export:
            export_type = None

        seller_state = draft.seller_state_code or self.config.base_state_code
        lines = validate_lines(draft.lines, self.config.rate_slabs)
        breakdown = self.compute_invoice_tax(
            lines,
            seller_state,
            draft.buyer.state_code,
            draft.is_export,
            export_type=export_type,
        )

        created_at = now or datetime.now(timezone.utc)
        year = draft.invoice_date.year
        attempts = self.config.numbering_max_attempts

        for attempt in range(1, attempts + 1):
            number = await next_invoice_number(self.invoices, tenant_id, draft.invoice_type, year)
            invoice = Invoice(
                id=str(uuid.uuid4()),
                tenant_id=tenant_id,
                invoice_number=number.number,
                sequence=number.sequence,
                invoice_type=draft.invoice_type,
                invoice_date=draft.invoice_date,
                buyer=draft.buyer,
                seller_state_code=seller_state,
                lines=lines,
                breakdown=breakdown,
                created_at=created_at,
                is_reverse_charge=draft.is_reverse_charge,
                is_paid=draft.is_paid,
                export_type=export_type,
                shipping_bill_no=draft.shipping_bill_no if draft.is_export else None,
                shipping_bill_date=draft.shipping_bill_date if draft.is_export else None,
            )
            try:
                saved = await self.invoices.save(invoice)
            except ConcurrencyConflictError:
                logger.warning(
                    "Invoice number %s taken for tenant %s (attempt %d/%d)",
                    number.number, tenant_id, attempt, attempts,
                )
                if attempt == attempts:
                    raise
                continue
            logger.info("Finalized invoice %s for tenant %s", saved.invoice_number, tenant_id)
            return saved

        raise ConcurrencyConflictError("Invoice numbering did not complete")

    # ------------------------------------------------------------------
    # Returns
    # ------------------------------------------------------------------

    def _check_period_invoices(self, tenant_id: str, period: str, invoices: list[Invoice]) -> None:
        start, end = period_date_range(period)
        for inv in invoices:
            if inv.tenant_id != tenant_id:
                raise ValidationError(
                    f"Invoice {inv.invoice_number} belongs to another tenant",
                    {"invoice_number": inv.invoice_number},
                )
            if not start <= inv.invoice_date <= end:
                raise ValidationError(
                    f"Invoice {inv.invoice_number} dated {inv.invoice_date} is outside period {period}",
                    {"invoice_number": inv.invoice_number, "period": period},
                )

    async def generate_detailed_filing(
        self,
        tenant_id: str,
        period: str,
        invoices: Iterable[Invoice] | None = None,
        *,
        now: datetime | None = None,
    ) -> DetailedFiling:
        """
        Classify the period's invoices and persist the GSTR-1.

        ``invoices`` defaults to every invoice of the tenant dated within the
        period. The whole run is built in memory and saved in one write, so a
        failure leaves no partial filing behind.
        """
        parse_period(period)
        if await self.detailed_filings.exists_for_period(tenant_id, period):
            logger.warning("GSTR-1 already generated for tenant %s period %s", tenant_id, period)
            raise DuplicateFilingError(GSTR1, tenant_id, period)

        if invoices is None:
            invoice_list = await self.invoices.find_by_period(tenant_id, period)
        else:
            invoice_list = list(invoices)
        self._check_period_invoices(tenant_id, period, invoice_list)

        filing = build_detailed_filing(tenant_id, period, invoice_list, self.config, now=now)
        saved = await self.detailed_filings.save(filing)
        logger.info(
            "Generated GSTR-1 for tenant %s period %s: %d invoices, %d rows",
            tenant_id, period, filing.invoice_count, len(filing.rows),
        )
        return saved

    async def generate_summary_filing(
        self,
        tenant_id: str,
        period: str,
        sections: DetailedFiling | None = None,
        *,
        now: datetime | None = None,
    ) -> SummaryFiling:
        """Derive and persist the GSTR-3B from the period's GSTR-1."""
        parse_period(period)
        if await self.summary_filings.exists_for_period(tenant_id, period):
            logger.warning("GSTR-3B already generated for tenant %s period %s", tenant_id, period)
            raise DuplicateFilingError(GSTR3B, tenant_id, period)

        detailed = await self.detailed_filings.find_by_period(tenant_id, period)
        if detailed is None:
            raise MissingPrerequisiteError(
                f"{GSTR1} not found for period {period}",
                {"tenant_id": tenant_id, "period": period},
            )
        if sections is not None:
            if sections.tenant_id != tenant_id or sections.period != period:
                raise ValidationError(
                    f"{GSTR1} sections do not belong to tenant {tenant_id} period {period}",
                    {"period": period},
                )
            if sections.rows != detailed.rows:
                logger.warning(
                    "Supplied GSTR-1 sections differ from stored filing for tenant %s period %s",
                    tenant_id, period,
                )
                raise ValidationError(
                    f"{GSTR1} sections do not match the stored filing for period {period}",
                    {"period": period},
                )

        summary = aggregate_summary(detailed, now=now)
        saved = await self.summary_filings.save(summary)
        logger.info("Generated GSTR-3B for tenant %s period %s", tenant_id, period)
        return saved

    async def list_returns(self, tenant_id: str) -> dict[str, list[Any]]:
        """Both filing kinds for a tenant, most recent period first."""
        gstr1 = await self.detailed_filings.list_for_tenant(tenant_id)
        gstr3b = await self.summary_filings.list_for_tenant(tenant_id)
        return {
            "gstr1": sorted(gstr1, key=lambda f: f.period, reverse=True),
            "gstr3b": sorted(gstr3b, key=lambda f: f.period, reverse=True),
        }

    async def update_filing_status(
        self,
        form_type: str,
        tenant_id: str,
        period: str,
        new_status: FilingStatus,
    ) -> DetailedFiling | SummaryFiling:
        """Apply an external filing/correction action to an existing filing."""
        if form_type == GSTR1:
            store = self.detailed_filings
        elif form_type == GSTR3B:
            store = self.summary_filings
        else:
            raise ValidationError(f"Unknown form type {form_type!r}", {"form_type": form_type})
        current = await store.find_by_period(tenant_id, period)
        if current is None:
            raise MissingPrerequisiteError(
                f"{form_type} not found for period {period}",
                {"tenant_id": tenant_id, "period": period},
            )
        validate_filing_transition(current.status, new_status)
        updated = await store.update_status(tenant_id, period, FilingStatus(new_status))
        logger.info("%s %s for tenant %s moved to %s", form_type, period, tenant_id, FilingStatus(new_status).value)
        return updated
