# tests/test_api.py
"""Tests for the v1 HTTP surface with the engine wired to in-memory stores."""

import pytest
from fastapi.testclient import TestClient

from gstbill.api.v1.deps import get_engine
from gstbill.domain.models.engine_config import GSTEngineConfig
from gstbill.domain.services.gst_engine import GSTEngine
from gstbill.main import app
from tests.conftest import InMemoryFilingStore, InMemoryInvoiceStore

HEADERS = {"X-Tenant-ID": "tenant-a"}


@pytest.fixture
def client():
    engine = GSTEngine(
        InMemoryInvoiceStore(),
        InMemoryFilingStore(),
        InMemoryFilingStore(),
        GSTEngineConfig(base_state_code="24"),
    )
    app.dependency_overrides[get_engine] = lambda: engine
    yield TestClient(app)
    app.dependency_overrides.clear()


def _invoice_body(**overrides):
    body = {
        "invoice_type": "GOODS",
        "invoice_date": "2024-12-10",
        "buyer": {"name": "Acme", "state_code": "27", "gstin": "27AADCB2230M1ZP"},
        "lines": [{"description": "Widget", "quantity": "1", "unit_rate": "50000", "gst_rate": "18"}],
    }
    body.update(overrides)
    return body


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_tax_preview(client):
    resp = client.post(
        "/v1/invoices/tax-preview",
        json={
            "lines": [{"description": "x", "quantity": "1", "unit_rate": "100.005", "gst_rate": "18"}],
            "buyer_state_code": "24",
        },
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["is_inter_state"] is False
    assert data["grand_total"] == "118"
    assert data["cgst_total"] == "8.99755"


def test_tax_preview_rejects_bad_rate(client):
    resp = client.post(
        "/v1/invoices/tax-preview",
        json={
            "lines": [{"description": "x", "quantity": "1", "unit_rate": "100", "gst_rate": "7"}],
            "buyer_state_code": "24",
        },
    )
    assert resp.status_code == 422
    payload = resp.json()
    assert payload["status"] == "error"
    assert payload["errors"][0]["code"] == "validation_error"


def test_finalize_invoice_requires_tenant_header(client):
    resp = client.post("/v1/invoices", json=_invoice_body())
    assert resp.status_code == 400


def test_finalize_invoice(client):
    resp = client.post("/v1/invoices", json=_invoice_body(), headers=HEADERS)
    assert resp.status_code == 201
    data = resp.json()["data"]
    assert data["invoice_number"] == "G-INV-2024-0001"
    assert data["breakdown"]["igst_total"] == "9000"


def test_return_lifecycle(client):
    client.post("/v1/invoices", json=_invoice_body(), headers=HEADERS)

    resp = client.post("/v1/gst/returns/202412/gstr1", headers=HEADERS)
    assert resp.status_code == 201
    gstr1 = resp.json()["data"]
    assert len(gstr1["sections"]["b2b"]) == 1
    assert gstr1["summary"]["b2b_invoices"] == 1

    dup = client.post("/v1/gst/returns/202412/gstr1", headers=HEADERS)
    assert dup.status_code == 409
    assert dup.json()["errors"][0]["code"] == "duplicate_filing"

    resp = client.post("/v1/gst/returns/202412/gstr3b", headers=HEADERS)
    assert resp.status_code == 201
    assert resp.json()["data"]["outward_taxable"][0]["key"] == "27"

    resp = client.get("/v1/gst/returns/202412/gstr3b", headers=HEADERS)
    assert resp.status_code == 200

    resp = client.post("/v1/gst/returns/202412/gstr1/status", json={"status": "filed"}, headers=HEADERS)
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "filed"

    listing = client.get("/v1/gst/returns", headers=HEADERS).json()["data"]
    assert [r["period"] for r in listing["gstr1"]] == ["202412"]
    assert listing["gstr1"][0]["status"] == "filed"
    assert listing["gstr3b"][0]["status"] == "draft"


def test_gstr3b_before_gstr1_is_conflict(client):
    resp = client.post("/v1/gst/returns/202412/gstr3b", headers=HEADERS)
    assert resp.status_code == 409
    assert resp.json()["errors"][0]["code"] == "missing_prerequisite"


def test_malformed_period_is_unprocessable(client):
    resp = client.post("/v1/gst/returns/2024-12/gstr1", headers=HEADERS)
    assert resp.status_code == 422


def test_missing_gstr1_is_not_found(client):
    resp = client.get("/v1/gst/returns/202412/gstr1", headers=HEADERS)
    assert resp.status_code == 404


def test_unknown_form_status_is_not_found(client):
    resp = client.post("/v1/gst/returns/202412/gstr9/status", json={"status": "filed"}, headers=HEADERS)
    assert resp.status_code == 404
