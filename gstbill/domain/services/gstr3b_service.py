# gstbill/domain/services/gstr3b_service.py
"""
GSTR-3B derivation from a generated GSTR-1.

    3.1(a) outward taxable supplies  B2B + B2CL by place of supply,
                                     exports under the EXPORT key
    3.2    small unregistered        B2CS by place of supply (rates flattened)
    3.1(c) nil / exempt              sum of NIL rows
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime, timezone
from decimal import Decimal

from gstbill.domain.models.filing import (
    EXPORT_KEY,
    DetailedFiling,
    FilingSectionRow,
    SectionKind,
    SummaryFiling,
    SupplyTotals,
)

logger = logging.getLogger("gstr3b_service")

ZERO = Decimal("0")


def _add(totals: SupplyTotals, row: FilingSectionRow) -> SupplyTotals:
    return SupplyTotals(
        taxable_value=totals.taxable_value + row.taxable_value,
        igst=totals.igst + row.igst,
        cgst=totals.cgst + row.cgst,
        sgst=totals.sgst + row.sgst,
        place_of_supply=totals.place_of_supply,
        key=totals.key,
    )


def totals_by_place_of_supply(rows: Iterable[FilingSectionRow]) -> tuple[SupplyTotals, ...]:
    """
    Sum rows per place of supply; export rows go under ``EXPORT_KEY`` with no
    place of supply. State keys are sorted, the export key comes last.
    """
    acc: dict[str, SupplyTotals] = {}
    for row in rows:
        if row.section is SectionKind.EXP:
            key, pos = EXPORT_KEY, None
        else:
            key, pos = row.place_of_supply, row.place_of_supply
        current = acc.get(key) or SupplyTotals(place_of_supply=pos, key=key)
        acc[key] = _add(current, row)

    ordered = sorted(k for k in acc if k != EXPORT_KEY)
    if EXPORT_KEY in acc:
        ordered.append(EXPORT_KEY)
    return tuple(acc[k] for k in ordered)


def nil_exempt_totals(rows: Iterable[FilingSectionRow]) -> SupplyTotals:
    totals = SupplyTotals()
    for row in rows:
        totals = _add(totals, row)
    return totals


def aggregate_summary(
    detailed: DetailedFiling,
    *,
    now: datetime | None = None,
) -> SummaryFiling:
    """Build the draft GSTR-3B for the same tenant and period as ``detailed``."""
    outward = totals_by_place_of_supply(
        r for r in detailed.rows
        if r.section in (SectionKind.B2B, SectionKind.B2CL, SectionKind.EXP)
    )
    small = totals_by_place_of_supply(detailed.section(SectionKind.B2CS))
    nil = nil_exempt_totals(detailed.section(SectionKind.NIL))

    logger.info(
        "GSTR-3B %s for tenant %s: %d outward keys, %d B2CS states",
        detailed.period, detailed.tenant_id, len(outward), len(small),
    )
    return SummaryFiling(
        tenant_id=detailed.tenant_id,
        period=detailed.period,
        financial_year=detailed.financial_year,
        outward_taxable=outward,
        small_unregistered=small,
        nil_exempt=nil,
        created_at=now or datetime.now(timezone.utc),
    )
