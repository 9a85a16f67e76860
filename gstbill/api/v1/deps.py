# gstbill/api/v1/deps.py
"""
FastAPI dependencies for the v1 API layer.

``get_tenant_id`` reads the ``X-Tenant-ID`` header; ``get_engine`` wires a
:class:`GSTEngine` to the SQL repositories for the request's session.
"""

from __future__ import annotations

from fastapi import Depends, HTTPException, Header, status
from sqlalchemy.ext.asyncio import AsyncSession

from gstbill.config.settings import settings
from gstbill.core.db import get_db
from gstbill.domain.models.engine_config import GSTEngineConfig
from gstbill.domain.services.gst_engine import GSTEngine
from gstbill.infrastructure.db.repositories import (
    DetailedFilingRepository,
    InvoiceRepository,
    SummaryFilingRepository,
)


async def get_tenant_id(x_tenant_id: str | None = Header(None)) -> str:
    """Raises HTTP 400 when the tenant header is missing or blank."""
    if not x_tenant_id or not x_tenant_id.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing X-Tenant-ID header",
        )
    return x_tenant_id.strip()


def get_engine_config() -> GSTEngineConfig:
    return GSTEngineConfig.from_settings(settings)


async def get_engine(
    db: AsyncSession = Depends(get_db),
    config: GSTEngineConfig = Depends(get_engine_config),
) -> GSTEngine:
    return GSTEngine(
        invoices=InvoiceRepository(db),
        detailed_filings=DetailedFilingRepository(db),
        summary_filings=SummaryFilingRepository(db),
        config=config,
    )
