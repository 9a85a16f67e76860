# gstbill/infrastructure/db/repositories/filing_repository.py

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from gstbill.domain.models.filing import (
    DetailedFiling,
    FilingSectionRow,
    FilingStatus,
    SectionKind,
    SummaryFiling,
    SupplyTotals,
)
from gstbill.domain.services.filing_workflow import validate_filing_transition
from gstbill.infrastructure.db.base import commit_or_conflict
from gstbill.infrastructure.db.models import (
    Gstr1Return,
    Gstr1SectionRow,
    Gstr3bReturn,
    Gstr3bSectionRow,
)


OUTWARD_TABLE = "3.1a"
SMALL_B2C_TABLE = "3.2"
NIL_TABLE = "3.1c"


class DetailedFilingRepository:
    """GSTR-1 header + section rows."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # ---------- mapping ----------

    @staticmethod
    def _row_to_domain(rec: Gstr1SectionRow) -> FilingSectionRow:
        return FilingSectionRow(
            section=SectionKind(rec.section),
            place_of_supply=rec.place_of_supply,
            rate=rec.rate,
            taxable_value=rec.taxable_value,
            igst=rec.igst,
            cgst=rec.cgst,
            sgst=rec.sgst,
            invoice_id=rec.invoice_id,
            invoice_number=rec.invoice_number,
            invoice_date=rec.invoice_date,
            counterparty_gstin=rec.counterparty_gstin,
            reverse_charge=rec.reverse_charge,
            export_type=rec.export_type,
            shipping_bill_no=rec.shipping_bill_no,
            shipping_bill_date=rec.shipping_bill_date,
            description=rec.description,
        )

    @classmethod
    def _to_domain(cls, rec: Gstr1Return) -> DetailedFiling:
        return DetailedFiling(
            tenant_id=rec.tenant_id,
            period=rec.return_period,
            financial_year=rec.financial_year,
            invoice_count=rec.total_invoice_count,
            rows=tuple(cls._row_to_domain(r) for r in sorted(rec.rows, key=lambda r: r.position)),
            totals=SupplyTotals(
                taxable_value=rec.total_taxable_value,
                igst=rec.total_igst,
                cgst=rec.total_cgst,
                sgst=rec.total_sgst,
            ),
            created_at=rec.created_at,
            status=FilingStatus(rec.status),
        )

    # ---------- main methods ----------

    async def _get(self, tenant_id: str, period: str) -> Gstr1Return | None:
        stmt = (
            select(Gstr1Return)
            .options(selectinload(Gstr1Return.rows))
            .where(
                and_(
                    Gstr1Return.tenant_id == tenant_id,
                    Gstr1Return.return_period == period,
                )
            )
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def exists_for_period(self, tenant_id: str, period: str) -> bool:
        stmt = select(Gstr1Return.id).where(
            and_(
                Gstr1Return.tenant_id == tenant_id,
                Gstr1Return.return_period == period,
            )
        ).limit(1)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def save(self, filing: DetailedFiling) -> DetailedFiling:
        """Insert header and every section row in a single commit."""
        header = Gstr1Return(
            tenant_id=filing.tenant_id,
            return_period=filing.period,
            financial_year=filing.financial_year,
            status=filing.status.value,
            total_invoice_count=filing.invoice_count,
            total_taxable_value=filing.totals.taxable_value,
            total_igst=filing.totals.igst,
            total_cgst=filing.totals.cgst,
            total_sgst=filing.totals.sgst,
            created_at=filing.created_at,
            rows=[
                Gstr1SectionRow(
                    position=pos,
                    section=row.section.value,
                    place_of_supply=row.place_of_supply,
                    rate=row.rate,
                    taxable_value=row.taxable_value,
                    igst=row.igst,
                    cgst=row.cgst,
                    sgst=row.sgst,
                    invoice_id=row.invoice_id,
                    invoice_number=row.invoice_number,
                    invoice_date=row.invoice_date,
                    counterparty_gstin=row.counterparty_gstin,
                    reverse_charge=row.reverse_charge,
                    export_type=row.export_type,
                    shipping_bill_no=row.shipping_bill_no,
                    shipping_bill_date=row.shipping_bill_date,
                    description=row.description,
                )
                for pos, row in enumerate(filing.rows)
            ],
        )
        self.db.add(header)
        await commit_or_conflict(
            self.db,
            f"GSTR-1 for period {filing.period} was generated concurrently",
            {"tenant_id": filing.tenant_id, "period": filing.period},
        )
        return filing

    async def find_by_period(self, tenant_id: str, period: str) -> DetailedFiling | None:
        rec = await self._get(tenant_id, period)
        return self._to_domain(rec) if rec else None

    async def list_for_tenant(self, tenant_id: str) -> list[DetailedFiling]:
        stmt = (
            select(Gstr1Return)
            .options(selectinload(Gstr1Return.rows))
            .where(Gstr1Return.tenant_id == tenant_id)
            .order_by(Gstr1Return.return_period.desc())
        )
        result = await self.db.execute(stmt)
        return [self._to_domain(rec) for rec in result.scalars().all()]

    async def update_status(
        self, tenant_id: str, period: str, status: FilingStatus
    ) -> DetailedFiling | None:
        """Update status with transition validation."""
        rec = await self._get(tenant_id, period)
        if not rec:
            return None

        validate_filing_transition(rec.status, status)
        rec.status = FilingStatus(status).value
        rec.updated_at = datetime.now(timezone.utc)
        await self.db.commit()
        await self.db.refresh(rec)
        return self._to_domain(rec)


class SummaryFilingRepository:
    """GSTR-3B header + table rows."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # ---------- mapping ----------

    @staticmethod
    def _totals(rec: Gstr3bSectionRow) -> SupplyTotals:
        return SupplyTotals(
            taxable_value=rec.taxable_value,
            igst=rec.igst,
            cgst=rec.cgst,
            sgst=rec.sgst,
            place_of_supply=rec.place_of_supply,
            key=rec.key,
        )

    @classmethod
    def _to_domain(cls, rec: Gstr3bReturn) -> SummaryFiling:
        rows = sorted(rec.rows, key=lambda r: r.position)
        nil = [cls._totals(r) for r in rows if r.table_code == NIL_TABLE]
        return SummaryFiling(
            tenant_id=rec.tenant_id,
            period=rec.return_period,
            financial_year=rec.financial_year,
            outward_taxable=tuple(cls._totals(r) for r in rows if r.table_code == OUTWARD_TABLE),
            small_unregistered=tuple(cls._totals(r) for r in rows if r.table_code == SMALL_B2C_TABLE),
            nil_exempt=nil[0] if nil else SupplyTotals(),
            created_at=rec.created_at,
            status=FilingStatus(rec.status),
        )

    @staticmethod
    def _row(position: int, table_code: str, totals: SupplyTotals) -> Gstr3bSectionRow:
        return Gstr3bSectionRow(
            position=position,
            table_code=table_code,
            key=totals.key,
            place_of_supply=totals.place_of_supply,
            taxable_value=totals.taxable_value,
            igst=totals.igst,
            cgst=totals.cgst,
            sgst=totals.sgst,
        )

    # ---------- main methods ----------

    async def _get(self, tenant_id: str, period: str) -> Gstr3bReturn | None:
        stmt = (
            select(Gstr3bReturn)
            .options(selectinload(Gstr3bReturn.rows))
            .where(
                and_(
                    Gstr3bReturn.tenant_id == tenant_id,
                    Gstr3bReturn.return_period == period,
                )
            )
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def exists_for_period(self, tenant_id: str, period: str) -> bool:
        stmt = select(Gstr3bReturn.id).where(
            and_(
                Gstr3bReturn.tenant_id == tenant_id,
                Gstr3bReturn.return_period == period,
            )
        ).limit(1)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def save(self, filing: SummaryFiling) -> SummaryFiling:
        tables = (
            [(OUTWARD_TABLE, t) for t in filing.outward_taxable]
            + [(SMALL_B2C_TABLE, t) for t in filing.small_unregistered]
            + [(NIL_TABLE, filing.nil_exempt)]
        )
        header = Gstr3bReturn(
            tenant_id=filing.tenant_id,
            return_period=filing.period,
            financial_year=filing.financial_year,
            status=filing.status.value,
            created_at=filing.created_at,
            rows=[self._row(pos, code, totals) for pos, (code, totals) in enumerate(tables)],
        )
        self.db.add(header)
        await commit_or_conflict(
            self.db,
            f"GSTR-3B for period {filing.period} was generated concurrently",
            {"tenant_id": filing.tenant_id, "period": filing.period},
        )
        return filing

    async def find_by_period(self, tenant_id: str, period: str) -> SummaryFiling | None:
        rec = await self._get(tenant_id, period)
        return self._to_domain(rec) if rec else None

    async def list_for_tenant(self, tenant_id: str) -> list[SummaryFiling]:
        stmt = (
            select(Gstr3bReturn)
            .options(selectinload(Gstr3bReturn.rows))
            .where(Gstr3bReturn.tenant_id == tenant_id)
            .order_by(Gstr3bReturn.return_period.desc())
        )
        result = await self.db.execute(stmt)
        return [self._to_domain(rec) for rec in result.scalars().all()]

    async def update_status(
        self, tenant_id: str, period: str, status: FilingStatus
    ) -> SummaryFiling | None:
        """Update status with transition validation."""
        rec = await self._get(tenant_id, period)
        if not rec:
            return None

        validate_filing_transition(rec.status, status)
        rec.status = FilingStatus(status).value
        rec.updated_at = datetime.now(timezone.utc)
        await self.db.commit()
        await self.db.refresh(rec)
        return self._to_domain(rec)
