"""Shared test fixtures for the gstbill test suite."""

import asyncio
import uuid
from dataclasses import replace
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from gstbill.domain.exceptions import ConcurrencyConflictError
from gstbill.domain.models.engine_config import GSTEngineConfig
from gstbill.domain.models.filing import FilingStatus
from gstbill.domain.models.invoice import (
    Buyer,
    ExportType,
    Invoice,
    InvoiceLine,
    InvoiceType,
)
from gstbill.domain.services.filing_workflow import validate_filing_transition
from gstbill.domain.services.gst_engine import GSTEngine
from gstbill.domain.services.return_period import period_date_range
from gstbill.domain.services.tax_breakdown import compute_invoice_tax

TENANT = "tenant-a"
HOME_STATE = "24"
REGISTERED_GSTIN = "27AADCB2230M1ZP"
FIXED_NOW = datetime(2024, 12, 31, 18, 0, tzinfo=timezone.utc)


@pytest.fixture(scope="session")
def event_loop():
    """Use a single event loop for the entire test session."""
    loop = asyncio.new_event_loop()
    yield loop
    loop.close()


# ---------------------------------------------------------------------------
# In-memory stores
# ---------------------------------------------------------------------------

class InMemoryInvoiceStore:
    """Invoice store with the (tenant, type, year, sequence) uniqueness rule."""

    def __init__(self):
        self.invoices: list[Invoice] = []
        self.racers = 0  # saves to lose to a simulated concurrent finalization

    def _taken(self, invoice: Invoice) -> bool:
        return any(
            i.tenant_id == invoice.tenant_id
            and i.invoice_type is invoice.invoice_type
            and i.year == invoice.year
            and i.sequence == invoice.sequence
            for i in self.invoices
        )

    async def count_for_sequence(self, tenant_id, invoice_type, year):
        return sum(
            1 for i in self.invoices
            if i.tenant_id == tenant_id and i.invoice_type is invoice_type and i.year == year
        )

    async def save(self, invoice):
        if self.racers:
            self.racers -= 1
            self.invoices.append(replace(invoice, id=str(uuid.uuid4()), invoice_number=invoice.invoice_number + "-r"))
        if self._taken(invoice):
            raise ConcurrencyConflictError(f"Invoice number {invoice.invoice_number} is already taken")
        self.invoices.append(invoice)
        return invoice

    async def find_by_period(self, tenant_id, period):
        start, end = period_date_range(period)
        return [i for i in self.invoices if i.tenant_id == tenant_id and start <= i.invoice_date <= end]


class InMemoryFilingStore:
    """Filing store keyed by (tenant, period); a second save conflicts."""

    def __init__(self):
        self.filings = {}
        self.saves = 0

    async def exists_for_period(self, tenant_id, period):
        return (tenant_id, period) in self.filings

    async def save(self, filing):
        key = (filing.tenant_id, filing.period)
        if key in self.filings:
            raise ConcurrencyConflictError(f"Filing for {filing.period} was generated concurrently")
        self.filings[key] = filing
        self.saves += 1
        return filing

    async def find_by_period(self, tenant_id, period):
        return self.filings.get((tenant_id, period))

    async def list_for_tenant(self, tenant_id):
        return [f for (t, _), f in self.filings.items() if t == tenant_id]

    async def update_status(self, tenant_id, period, status):
        current = self.filings.get((tenant_id, period))
        if current is None:
            return None
        validate_filing_transition(current.status, status)
        updated = replace(current, status=FilingStatus(status))
        self.filings[(tenant_id, period)] = updated
        return updated


@pytest.fixture
def config() -> GSTEngineConfig:
    return GSTEngineConfig(base_state_code=HOME_STATE)


@pytest.fixture
def invoice_store() -> InMemoryInvoiceStore:
    return InMemoryInvoiceStore()


@pytest.fixture
def detailed_store() -> InMemoryFilingStore:
    return InMemoryFilingStore()


@pytest.fixture
def summary_store() -> InMemoryFilingStore:
    return InMemoryFilingStore()


@pytest.fixture
def gst_engine(invoice_store, detailed_store, summary_store, config) -> GSTEngine:
    return GSTEngine(invoice_store, detailed_store, summary_store, config)


# ---------------------------------------------------------------------------
# Invoice factories
# ---------------------------------------------------------------------------

def line(taxable="1000", rate="18", quantity="1", description="Item") -> InvoiceLine:
    """A line whose taxable value equals ``taxable`` when quantity is 1."""
    return InvoiceLine(
        description=description,
        quantity=Decimal(quantity),
        unit_rate=Decimal(taxable),
        gst_rate=Decimal(rate),
    )


_counter = {"n": 0}


def make_invoice(
    lines=None,
    buyer_state=HOME_STATE,
    gstin=None,
    invoice_type=InvoiceType.GOODS,
    invoice_date=date(2024, 12, 10),
    tenant_id=TENANT,
    export_type=None,
    is_reverse_charge=False,
) -> Invoice:
    """Build a finalized invoice directly, bypassing numbering and storage."""
    lines = tuple(lines or (line(),))
    is_export = invoice_type is InvoiceType.EXPORT
    if is_export and export_type is None:
        export_type = ExportType.WITH_PAYMENT
    breakdown = compute_invoice_tax(lines, HOME_STATE, buyer_state, is_export, export_type=export_type)
    _counter["n"] += 1
    seq = _counter["n"]
    return Invoice(
        id=str(uuid.uuid4()),
        tenant_id=tenant_id,
        invoice_number=f"{invoice_type.letter}-INV-{invoice_date.year}-{seq:04d}",
        sequence=seq,
        invoice_type=invoice_type,
        invoice_date=invoice_date,
        buyer=Buyer(name="Buyer", state_code=buyer_state, gstin=gstin),
        seller_state_code=HOME_STATE,
        lines=lines,
        breakdown=breakdown,
        created_at=FIXED_NOW,
        is_reverse_charge=is_reverse_charge,
        export_type=export_type if is_export else None,
        shipping_bill_no="SB-1" if is_export else None,
    )
