# gstbill/domain/repositories.py
"""
Storage interfaces the engine depends on.

Implementations must enforce the uniqueness backstops and raise
ConcurrencyConflictError when one of them rejects a write:

- invoices: (tenant_id, invoice_type, year, sequence)
- detailed filings: (tenant_id, period)
- summary filings: (tenant_id, period)
"""

from __future__ import annotations

from typing import Protocol

from gstbill.domain.models.filing import DetailedFiling, FilingStatus, SummaryFiling
from gstbill.domain.models.invoice import Invoice, InvoiceType


class InvoiceStore(Protocol):
    async def count_for_sequence(self, tenant_id: str, invoice_type: InvoiceType, year: int) -> int:
        ...

    async def save(self, invoice: Invoice) -> Invoice:
        ...

    async def find_by_period(self, tenant_id: str, period: str) -> list[Invoice]:
        ...


class DetailedFilingStore(Protocol):
    async def exists_for_period(self, tenant_id: str, period: str) -> bool:
        ...

    async def save(self, filing: DetailedFiling) -> DetailedFiling:
        ...

    async def find_by_period(self, tenant_id: str, period: str) -> DetailedFiling | None:
        ...

    async def list_for_tenant(self, tenant_id: str) -> list[DetailedFiling]:
        ...

    async def update_status(self, tenant_id: str, period: str, status: FilingStatus) -> DetailedFiling | None:
        ...


class SummaryFilingStore(Protocol):
    async def exists_for_period(self, tenant_id: str, period: str) -> bool:
        ...

    async def save(self, filing: SummaryFiling) -> SummaryFiling:
        ...

    async def find_by_period(self, tenant_id: str, period: str) -> SummaryFiling | None:
        ...

    async def list_for_tenant(self, tenant_id: str) -> list[SummaryFiling]:
        ...

    async def update_status(self, tenant_id: str, period: str, status: FilingStatus) -> SummaryFiling | None:
        ...
