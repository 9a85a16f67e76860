# gstbill/api/v1/schemas/returns.py
"""Pydantic schemas for GSTR-1 / GSTR-3B return endpoints."""

from __future__ import annotations

from pydantic import BaseModel, Field

from gstbill.domain.models.filing import FilingStatus


class StatusTransitionRequest(BaseModel):
    """Request to move a filing to its next status."""
    status: FilingStatus = Field(description="Target status: filed or amended")


class ReturnListItem(BaseModel):
    """One filing in the tenant's return list."""
    form_type: str
    period: str
    financial_year: str
    status: str
    created_at: str
