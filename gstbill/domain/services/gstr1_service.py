# gstbill/domain/services/gstr1_service.py
"""
GSTR-1 classification.

Partitions a period's invoices into the statutory sections:

    B2B   registered buyer, taxable > 0               one row per invoice
    B2CL  unregistered, inter-state, above threshold  one row per invoice
    B2CS  every other unregistered sale               aggregated by (POS, rate)
    EXP   export invoices                             one row per invoice
    NIL   no rated tax or no taxable value            one row per invoice

The first three are mutually exclusive (first match wins); EXP and NIL are
recorded in addition to whichever of them applied.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal

from gstbill.domain.exceptions import ValidationError
from gstbill.domain.models.engine_config import GSTEngineConfig
from gstbill.domain.models.filing import (
    DetailedFiling,
    FilingSectionRow,
    SectionKind,
    SupplyTotals,
)
from gstbill.domain.models.invoice import Invoice
from gstbill.domain.services.return_period import financial_year, parse_period

logger = logging.getLogger("gstr1_service")

ZERO = Decimal("0")
NIL_DESCRIPTION = "Exempt supplies"


# ---------------------------------------------------------------------------
# Classification rules
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ClassificationRule:
    section: SectionKind
    predicate: Callable[[Invoice, GSTEngineConfig], bool]
    exclusive: bool = True


def _is_b2b(inv: Invoice, config: GSTEngineConfig) -> bool:
    return inv.is_registered_buyer and inv.taxable_total > ZERO


def _is_b2cl(inv: Invoice, config: GSTEngineConfig) -> bool:
    return (
        not inv.is_registered_buyer
        and inv.taxable_total > config.large_b2c_threshold
        and inv.is_inter_state
    )


def _is_b2cs(inv: Invoice, config: GSTEngineConfig) -> bool:
    return not inv.is_registered_buyer


def _is_export(inv: Invoice, config: GSTEngineConfig) -> bool:
    return inv.is_export


def _is_nil(inv: Invoice, config: GSTEngineConfig) -> bool:
    return inv.taxable_total == ZERO or inv.breakdown.rated_tax == ZERO


CLASSIFICATION_RULES: tuple[ClassificationRule, ...] = (
    ClassificationRule(SectionKind.B2B, _is_b2b),
    ClassificationRule(SectionKind.B2CL, _is_b2cl),
    ClassificationRule(SectionKind.B2CS, _is_b2cs),
    ClassificationRule(SectionKind.EXP, _is_export, exclusive=False),
    ClassificationRule(SectionKind.NIL, _is_nil, exclusive=False),
)


def sections_for(
    invoice: Invoice,
    config: GSTEngineConfig,
    rules: tuple[ClassificationRule, ...] = CLASSIFICATION_RULES,
) -> list[SectionKind]:
    """Sections an invoice contributes to, in rule order."""
    matched: list[SectionKind] = []
    exclusive_taken = False
    for rule in rules:
        if rule.exclusive and exclusive_taken:
            continue
        if rule.predicate(invoice, config):
            matched.append(rule.section)
            if rule.exclusive:
                exclusive_taken = True
    return matched


# ---------- Row builders ----------


def _invoice_rate(inv: Invoice) -> Decimal | None:
    rates = {line.gst_rate for line in inv.breakdown.lines}
    return rates.pop() if len(rates) == 1 else None


def _b2b_row(inv: Invoice) -> FilingSectionRow:
    return FilingSectionRow(
        section=SectionKind.B2B,
        place_of_supply=inv.place_of_supply,
        rate=_invoice_rate(inv),
        taxable_value=inv.taxable_total,
        igst=inv.breakdown.igst_total,
        cgst=inv.breakdown.cgst_total,
        sgst=inv.breakdown.sgst_total,
        invoice_id=inv.id,
        invoice_number=inv.invoice_number,
        invoice_date=inv.invoice_date,
        counterparty_gstin=inv.buyer.gstin.strip(),
        reverse_charge=inv.is_reverse_charge,
    )


def _b2cl_row(inv: Invoice) -> FilingSectionRow:
    return FilingSectionRow(
        section=SectionKind.B2CL,
        place_of_supply=inv.place_of_supply,
        rate=_invoice_rate(inv),
        taxable_value=inv.taxable_total,
        igst=inv.breakdown.igst_total,
        invoice_id=inv.id,
        invoice_number=inv.invoice_number,
        invoice_date=inv.invoice_date,
    )


def _export_row(inv: Invoice) -> FilingSectionRow:
    return FilingSectionRow(
        section=SectionKind.EXP,
        place_of_supply=None,
        rate=_invoice_rate(inv),
        taxable_value=inv.taxable_total,
        igst=inv.breakdown.igst_total,
        invoice_id=inv.id,
        invoice_number=inv.invoice_number,
        invoice_date=inv.invoice_date,
        export_type=inv.export_type.value if inv.export_type else None,
        shipping_bill_no=inv.shipping_bill_no,
        shipping_bill_date=inv.shipping_bill_date,
    )


def _nil_row(inv: Invoice) -> FilingSectionRow:
    return FilingSectionRow(
        section=SectionKind.NIL,
        place_of_supply=inv.place_of_supply,
        taxable_value=inv.taxable_total,
        invoice_id=inv.id,
        invoice_number=inv.invoice_number,
        invoice_date=inv.invoice_date,
        description=NIL_DESCRIPTION,
    )


@dataclass
class _Running:
    taxable_value: Decimal = ZERO
    igst: Decimal = ZERO
    cgst: Decimal = ZERO
    sgst: Decimal = ZERO


def _fold_b2cs(acc: dict[tuple[str, Decimal], _Running], inv: Invoice) -> None:
    """Add an invoice's line taxes into the (POS, rate) buckets."""
    for line in inv.breakdown.lines:
        bucket = acc.setdefault((inv.place_of_supply, line.gst_rate), _Running())
        bucket.taxable_value += line.taxable_value
        bucket.igst += line.igst
        bucket.cgst += line.cgst
        bucket.sgst += line.sgst


def classify_invoices(
    invoices: Iterable[Invoice],
    config: GSTEngineConfig,
    rules: tuple[ClassificationRule, ...] = CLASSIFICATION_RULES,
) -> tuple[FilingSectionRow, ...]:
    """
    Build every GSTR-1 section row for a batch of invoices.

    Per-invoice rows keep invoice order; B2CS buckets follow, sorted by
    (place of supply, rate).
    """
    rows: list[FilingSectionRow] = []
    b2cs: dict[tuple[str, Decimal], _Running] = {}

    for inv in invoices:
        sections = sections_for(inv, config, rules)
        if not sections:
            raise ValidationError(
                f"Invoice {inv.invoice_number} matched no GSTR-1 section",
                {"invoice_number": inv.invoice_number},
            )
        for section in sections:
            if section is SectionKind.B2B:
                rows.append(_b2b_row(inv))
            elif section is SectionKind.B2CL:
                rows.append(_b2cl_row(inv))
            elif section is SectionKind.B2CS:
                _fold_b2cs(b2cs, inv)
            elif section is SectionKind.EXP:
                rows.append(_export_row(inv))
            elif section is SectionKind.NIL:
                rows.append(_nil_row(inv))

    for (pos, rate), running in sorted(b2cs.items()):
        rows.append(
            FilingSectionRow(
                section=SectionKind.B2CS,
                place_of_supply=pos,
                rate=rate,
                taxable_value=running.taxable_value,
                igst=running.igst,
                cgst=running.cgst,
                sgst=running.sgst,
            )
        )
    return tuple(rows)


def filing_totals(rows: Iterable[FilingSectionRow]) -> SupplyTotals:
    """Header totals over the B2B, B2CL and B2CS sections."""
    taxable = igst = cgst = sgst = ZERO
    for row in rows:
        if row.section in (SectionKind.B2B, SectionKind.B2CL, SectionKind.B2CS):
            taxable += row.taxable_value
            igst += row.igst
            cgst += row.cgst
            sgst += row.sgst
    return SupplyTotals(taxable_value=taxable, igst=igst, cgst=cgst, sgst=sgst)


def build_detailed_filing(
    tenant_id: str,
    period: str,
    invoices: Iterable[Invoice],
    config: GSTEngineConfig,
    *,
    now: datetime | None = None,
) -> DetailedFiling:
    parse_period(period)
    invoices = list(invoices)
    rows = classify_invoices(invoices, config)
    logger.info(
        "GSTR-1 %s for tenant %s: %d invoices -> %d rows",
        period, tenant_id, len(invoices), len(rows),
    )
    return DetailedFiling(
        tenant_id=tenant_id,
        period=period,
        financial_year=financial_year(period),
        invoice_count=len(invoices),
        rows=rows,
        totals=filing_totals(rows),
        created_at=now or datetime.now(timezone.utc),
    )


# ---------- Preview ----------


def prepare_gstr1_form(filing: DetailedFiling) -> dict:
    """Small aggregate of a filing for on-screen review."""
    return {
        "period": filing.period,
        "financial_year": filing.financial_year,
        "status": filing.status.value,
        "invoice_count": filing.invoice_count,
        "b2b_parties": len({r.counterparty_gstin for r in filing.section(SectionKind.B2B)}),
        "b2b_invoices": len(filing.section(SectionKind.B2B)),
        "b2cl_invoices": len(filing.section(SectionKind.B2CL)),
        "b2cs_rows": len(filing.section(SectionKind.B2CS)),
        "export_invoices": len(filing.section(SectionKind.EXP)),
        "nil_invoices": len(filing.section(SectionKind.NIL)),
        "total_taxable": str(filing.totals.taxable_value),
        "total_tax": str(filing.totals.tax_total),
    }
