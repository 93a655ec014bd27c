"""
Test degli endpoint HTTP con TestClient.

Database e servizi esterni sono sostituiti tramite dependency_overrides;
il lifespan non viene eseguito (nessuna connessione a PostgreSQL).
"""

import json
import time
import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from devpilot.api.v1 import invoices as invoices_api
from devpilot.api.v1 import payments as payments_api
from devpilot.core.config import settings
from devpilot.core.database import get_db
from devpilot.core.exceptions import NotFoundError
from devpilot.main import app
from devpilot.services.invoice_service import InvoiceService
from devpilot.services.payment_service import (
    PaymentGateway,
    WebhookReconciler,
    get_webhook_reconciler,
)
from devpilot.services.planner_service import PlannerService, get_planner_service

from conftest import make_result, sign_payload, stripe_event

USER_ID = "11111111-1111-1111-1111-111111111111"


def _token(sub: str = USER_ID) -> str:
    claims = {"sub": sub, "exp": int(time.time()) + 3600, "role": "authenticated"}
    if settings.auth_jwt_audience:
        claims["aud"] = settings.auth_jwt_audience
    return jwt.encode(claims, settings.auth_jwt_secret, algorithm=settings.auth_jwt_algorithm)


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {_token()}"}


@pytest.fixture
def api(mock_db):
    """TestClient con sessione database mockata."""

    async def override_get_db():
        yield mock_db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


# ============================================================
# Sistema e autenticazione
# ============================================================


class TestSystem:

    def test_health(self, api):
        response = api.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_missing_token(self, api):
        response = api.get("/api/v1/clients/")

        assert response.status_code == 401

    def test_invalid_token(self, api):
        response = api.get("/api/v1/clients/", headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == 401

    def test_subject_must_be_uuid(self, api):
        response = api.get(
            "/api/v1/clients/", headers={"Authorization": f"Bearer {_token(sub='user-42')}"},
        )

        assert response.status_code == 401

    def test_clients_list(self, api, mock_db, auth_headers, client_entity):
        mock_db.execute.return_value = make_result(items=[client_entity], count=1)

        response = api.get("/api/v1/clients/", headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 1
        assert body["items"][0]["name"] == "Acme Corp"

    def test_business_error_shape(self, api, mock_db, auth_headers):
        mock_db.execute.return_value = make_result(one=None)

        response = api.get(f"/api/v1/clients/{uuid.uuid4()}", headers=auth_headers)

        assert response.status_code == 404
        assert response.json()["error_code"] == "RESOURCE_NOT_FOUND"


# ============================================================
# Webhook Stripe
# ============================================================


class TestWebhookEndpoint:

    @pytest.fixture
    def invoices(self, api, test_settings):
        invoices = AsyncMock(spec=InvoiceService)
        reconciler = WebhookReconciler(gateway=PaymentGateway(test_settings), invoices=invoices)
        app.dependency_overrides[get_webhook_reconciler] = lambda: reconciler
        return invoices

    def test_missing_signature(self, api, invoices, mock_db):
        response = api.post("/api/v1/stripe/webhook", content=b"{}")

        assert response.status_code == 400
        assert response.json() == {"error": "No signature provided"}
        mock_db.commit.assert_not_awaited()

    def test_invalid_signature(self, api, invoices):
        payload = stripe_event("checkout.session.completed", {"id": "cs_1", "payment_status": "paid"})

        response = api.post(
            "/api/v1/stripe/webhook",
            content=payload.encode(),
            headers={"stripe-signature": sign_payload(payload, secret="whsec_wrong")},
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid signature"}
        invoices.mark_paid.assert_not_awaited()

    def test_checkout_completed(self, api, invoices, mock_db):
        invoices.mark_paid.return_value = None
        payload = stripe_event(
            "checkout.session.completed",
            {"id": "cs_1", "payment_intent": "pi_1", "payment_status": "paid"},
        )

        response = api.post(
            "/api/v1/stripe/webhook",
            content=payload.encode(),
            headers={"stripe-signature": sign_payload(payload)},
        )

        assert response.status_code == 200
        assert response.json() == {"received": True}
        invoices.mark_paid.assert_awaited_once()
        mock_db.commit.assert_awaited_once()

    def test_unhandled_event(self, api, invoices):
        payload = stripe_event("invoice.created", {"id": "in_1"})

        response = api.post(
            "/api/v1/stripe/webhook",
            content=payload.encode(),
            headers={"stripe-signature": sign_payload(payload)},
        )

        assert response.status_code == 200
        assert response.json() == {"received": True}

    def test_malformed_payload(self, api, invoices):
        payload = json.dumps({"id": "evt_1"})

        response = api.post(
            "/api/v1/stripe/webhook",
            content=payload.encode(),
            headers={"stripe-signature": sign_payload(payload)},
        )

        assert response.status_code == 400
        assert "error" in response.json()


# ============================================================
# Checkout, PDF, assistente
# ============================================================


class TestIntegrationEndpoints:

    def test_checkout_requires_invoice_id(self, api, auth_headers):
        response = api.post("/api/v1/stripe/create-checkout", json={}, headers=auth_headers)

        assert response.status_code == 400
        assert response.json() == {"error": "Invoice ID is required"}

    def test_checkout_unknown_invoice(self, api, auth_headers):
        service = AsyncMock(spec=InvoiceService)
        service.request_payment.side_effect = NotFoundError()
        app.dependency_overrides[payments_api.get_invoice_service] = lambda: service

        response = api.post(
            "/api/v1/stripe/create-checkout",
            json={"invoiceId": str(uuid.uuid4())},
            headers=auth_headers,
        )

        assert response.status_code == 404
        assert response.json() == {"error": "Invoice not found"}

    def test_checkout_returns_url(self, api, mock_db, auth_headers):
        service = AsyncMock(spec=InvoiceService)
        service.request_payment.return_value = "https://checkout.stripe.test/cs_1"
        app.dependency_overrides[payments_api.get_invoice_service] = lambda: service

        response = api.post(
            "/api/v1/stripe/create-checkout",
            json={"invoiceId": str(uuid.uuid4())},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json() == {"url": "https://checkout.stripe.test/cs_1"}
        mock_db.commit.assert_awaited_once()

    def test_pdf_download(self, api, mock_db, auth_headers, invoice_entity):
        service = AsyncMock(spec=InvoiceService)
        service.get_by_id.return_value = invoice_entity
        pdf_service = MagicMock()
        pdf_service.generate_invoice_pdf.return_value = b"%PDF-1.7 test"
        app.dependency_overrides[invoices_api.get_invoice_service] = lambda: service
        app.dependency_overrides[invoices_api.get_pdf_service] = lambda: pdf_service
        mock_db.execute.return_value = make_result(one=None)

        response = api.post(
            "/api/v1/invoices/pdf",
            json={"invoiceId": str(invoice_entity.id)},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert response.headers["content-disposition"] == 'attachment; filename="DP-202610-0001.pdf"'
        assert response.content == b"%PDF-1.7 test"

    def test_pdf_unknown_invoice(self, api, auth_headers):
        service = AsyncMock(spec=InvoiceService)
        service.get_by_id.side_effect = NotFoundError()
        app.dependency_overrides[invoices_api.get_invoice_service] = lambda: service

        response = api.post(
            "/api/v1/invoices/pdf",
            json={"invoiceId": str(uuid.uuid4())},
            headers=auth_headers,
        )

        assert response.status_code == 404
        assert response.json() == {"error": "Invoice not found"}

    def test_totals_preview(self, api, auth_headers):
        response = api.post(
            "/api/v1/invoices/totals",
            json={
                "items": [{"description": "Dev", "qty": "12", "rate": "150"}],
                "tax_rate": "8",
                "discount": "0",
            },
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["total"] == "1944.00"

    def test_totals_preview_requires_token(self, api):
        response = api.post("/api/v1/invoices/totals", json={"items": []})

        assert response.status_code == 401

    def test_totals_preview_rejects_extra_precision(self, api, auth_headers):
        response = api.post(
            "/api/v1/invoices/totals",
            json={"items": [{"description": "Dev", "qty": "1.333", "rate": "100"}]},
            headers=auth_headers,
        )

        assert response.status_code == 422

    def test_plan_requires_idea(self, api, auth_headers):
        response = api.post("/api/v1/ai/plan", json={"idea": "   "}, headers=auth_headers)

        assert response.status_code == 400
        assert response.json() == {"error": "Project idea is required"}

    def test_plan_invalid_model_output(self, api, auth_headers, test_settings):
        client = MagicMock()
        client.chat.completions.create = AsyncMock(return_value=MagicMock(
            choices=[MagicMock(message=MagicMock(content="not json"))],
        ))
        app.dependency_overrides[get_planner_service] = lambda: PlannerService(test_settings, client=client)

        response = api.post("/api/v1/ai/plan", json={"idea": "Todo app"}, headers=auth_headers)

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to parse model response as JSON"}
