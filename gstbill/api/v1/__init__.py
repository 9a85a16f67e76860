# gstbill/api/v1/__init__.py
"""
Versioned API v1: aggregates all sub-routers under ``/v1``.

Usage in ``main.py``::

    from gstbill.api.v1 import v1_router
    app.include_router(v1_router)
"""

from fastapi import APIRouter

from gstbill.api.v1.routes.gst_returns import router as gst_returns_router
from gstbill.api.v1.routes.invoices import router as invoices_router

v1_router = APIRouter(prefix="/v1")

v1_router.include_router(invoices_router)
v1_router.include_router(gst_returns_router)

__all__ = ["v1_router"]
