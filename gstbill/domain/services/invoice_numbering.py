# gstbill/domain/services/invoice_numbering.py
"""
Type-scoped sequential invoice numbers: ``{Letter}-INV-{year}-{seq:04d}``.

The sequence is scoped by (tenant, invoice type, calendar year) and is
derived from already-persisted invoices at finalization time. Two
finalizations racing for the same number are resolved by the store's
uniqueness constraint, not by this module.
"""

from __future__ import annotations

from dataclasses import dataclass

from gstbill.domain.models.invoice import InvoiceType
from gstbill.domain.repositories import InvoiceStore


@dataclass(frozen=True)
class InvoiceNumber:
    number: str
    sequence: int
    year: int


def format_invoice_number(invoice_type: InvoiceType, year: int, prior_count: int) -> InvoiceNumber:
    if prior_count < 0:
        raise ValueError("prior_count must be >= 0")
    sequence = prior_count + 1
    return InvoiceNumber(
        number=f"{invoice_type.letter}-INV-{year}-{sequence:04d}",
        sequence=sequence,
        year=year,
    )


async def next_invoice_number(
    store: InvoiceStore,
    tenant_id: str,
    invoice_type: InvoiceType,
    year: int,
) -> InvoiceNumber:
    """Read the persisted count for (tenant, type, year) and number the next invoice."""
    count = await store.count_for_sequence(tenant_id, invoice_type, year)
    return format_invoice_number(invoice_type, year, count)
