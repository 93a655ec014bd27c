"""
Pytest configuration and fixtures.

I service vengono testati con una AsyncSession mockata: nessun database
reale è necessario. Le entità sono istanze transienti dei modelli ORM.
"""

import datetime
import hashlib
import hmac
import json
import time
import uuid
from decimal import Decimal
from typing import Any, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from devpilot.core.config import Settings
from devpilot.models import (
    Client,
    CompanySettings,
    Invoice,
    InvoiceItem,
    InvoiceStatus,
    Project,
    Task,
)

TEST_WEBHOOK_SECRET = "whsec_test_secret"


# ============================================================
# Settings di test
# ============================================================


@pytest.fixture
def test_settings() -> Settings:
    """Settings isolate dall'ambiente, con segreti noti."""
    return Settings(
        app_env="testing",
        stripe_secret_key="sk_test_dummy",
        stripe_webhook_secret=TEST_WEBHOOK_SECRET,
        stripe_webhook_tolerance=300,
        openrouter_api_key="or-test-key",
        public_app_url="http://localhost:3000",
    )


# ============================================================
# Fixtures per AsyncSession Mock
# ============================================================


@pytest.fixture
def mock_db():
    """Crea un mock di AsyncSession."""
    db = AsyncMock(spec=AsyncSession)
    db.execute = AsyncMock()
    db.add = MagicMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.flush = AsyncMock()
    db.refresh = AsyncMock()
    db.delete = AsyncMock()
    return db


def make_result(
    one: Any = None,
    items: Optional[list] = None,
    count: Optional[int] = None,
) -> MagicMock:
    """
    Risultato di db.execute.

    Args:
        one: valore di scalar_one_or_none()
        items: valori di scalars().all()
        count: valore di scalar()
    """
    result = MagicMock()
    result.scalar_one_or_none.return_value = one
    result.scalars.return_value.all.return_value = items or []
    result.scalar.return_value = count
    return result


@pytest.fixture
def user_id() -> uuid.UUID:
    return uuid.UUID("11111111-1111-1111-1111-111111111111")


# ============================================================
# Entità
# ============================================================


NOW = datetime.datetime(2026, 10, 19, 9, 30, tzinfo=datetime.timezone.utc)


def make_client(user_id: uuid.UUID, **kwargs) -> Client:
    client = Client(
        id=kwargs.get("id", uuid.uuid4()),
        user_id=user_id,
        name=kwargs.get("name", "Acme Corp"),
        email=kwargs.get("email", "billing@acme.com"),
        phone=kwargs.get("phone"),
        billing_address=kwargs.get("billing_address", {
            "street": "1 Main St",
            "city": "Springfield",
            "state": "IL",
            "zip": "62701",
            "country": "USA",
        }),
        default_payment_terms=kwargs.get("default_payment_terms", 30),
    )
    client.created_at = NOW
    client.updated_at = NOW
    return client


def make_invoice(user_id: uuid.UUID, client: Optional[Client] = None, **kwargs) -> Invoice:
    invoice = Invoice(
        id=kwargs.get("id", uuid.uuid4()),
        user_id=user_id,
        client_id=client.id if client else None,
        invoice_number=kwargs.get("invoice_number", "DP-202610-0001"),
        issue_date=kwargs.get("issue_date", datetime.date(2026, 10, 19)),
        due_date=kwargs.get("due_date"),
        currency=kwargs.get("currency", "USD"),
        status=kwargs.get("status", InvoiceStatus.DRAFT.value),
        subtotal=kwargs.get("subtotal", Decimal("1800.00")),
        tax_rate=kwargs.get("tax_rate", Decimal("8")),
        tax=kwargs.get("tax", Decimal("144.00")),
        discount=kwargs.get("discount", Decimal("0.00")),
        total=kwargs.get("total", Decimal("1944.00")),
        stripe_payment_intent_id=kwargs.get("stripe_payment_intent_id"),
        stripe_checkout_session_id=kwargs.get("stripe_checkout_session_id"),
        extra_metadata=kwargs.get("extra_metadata", {"notes": None}),
    )
    invoice.client = client
    invoice.items = kwargs.get("items", [
        make_item(invoice.id, "Backend development", Decimal("10"), Decimal("150"), position=0),
        make_item(invoice.id, "Code review", Decimal("2"), Decimal("150"), position=1),
    ])
    invoice.created_at = NOW
    invoice.updated_at = NOW
    return invoice


def make_item(
    invoice_id: uuid.UUID, description: str, qty: Decimal, rate: Decimal, position: int = 0,
) -> InvoiceItem:
    item = InvoiceItem(
        id=uuid.uuid4(),
        invoice_id=invoice_id,
        position=position,
        description=description,
        qty=qty,
        rate=rate,
        amount=qty * rate,
    )
    item.created_at = NOW
    return item


def make_task(user_id: uuid.UUID, project_id: uuid.UUID, status: str, order_index: int = 0, **kwargs) -> Task:
    task = Task(
        id=kwargs.get("id", uuid.uuid4()),
        user_id=user_id,
        project_id=project_id,
        title=kwargs.get("title", f"Task {status} {order_index}"),
        description=None,
        status=status,
        order_index=order_index,
        estimate_hours=None,
    )
    task.created_at = NOW
    task.updated_at = NOW
    return task


def make_project(user_id: uuid.UUID, **kwargs) -> Project:
    project = Project(
        id=kwargs.get("id", uuid.uuid4()),
        user_id=user_id,
        client_id=None,
        name=kwargs.get("name", "Website redesign"),
        description=None,
        tech_stack=["python", "fastapi"],
        repo_url=None,
        status=kwargs.get("status", "active"),
    )
    project.client = None
    project.created_at = NOW
    project.updated_at = NOW
    return project


def make_company_settings(user_id: uuid.UUID, **kwargs) -> CompanySettings:
    return CompanySettings(
        id=uuid.uuid4(),
        user_id=user_id,
        company_name=kwargs.get("company_name", "Jane Doe Dev"),
        default_hourly_rate=Decimal("150"),
        invoice_footer=kwargs.get("invoice_footer"),
        bank_name=kwargs.get("bank_name", "First Bank"),
        account_number=kwargs.get("account_number", "000123456"),
        account_holder=kwargs.get("account_holder", "Jane Doe"),
        account_type=kwargs.get("account_type"),
        iban=kwargs.get("iban"),
    )


@pytest.fixture
def client_entity(user_id) -> Client:
    return make_client(user_id)


@pytest.fixture
def invoice_entity(user_id, client_entity) -> Invoice:
    return make_invoice(user_id, client_entity)


# ============================================================
# Webhook Stripe
# ============================================================


def sign_payload(payload: str, secret: str = TEST_WEBHOOK_SECRET, timestamp: Optional[int] = None) -> str:
    """Header stripe-signature valido per il payload."""
    timestamp = timestamp if timestamp is not None else int(time.time())
    signed = f"{timestamp}.{payload}".encode("utf-8")
    signature = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


def stripe_event(event_type: str, obj: dict, event_id: str = "evt_test_1") -> str:
    return json.dumps({
        "id": event_id,
        "object": "event",
        "type": event_type,
        "data": {"object": obj},
    })
