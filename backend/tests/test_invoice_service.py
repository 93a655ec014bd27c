"""
Unit tests per InvoiceService.

Le query sono simulate con una AsyncSession mockata: ogni chiamata a
db.execute restituisce il risultato successivo di side_effect.
"""

import uuid
from datetime import date, timedelta
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import configure_mappers

from devpilot.core.exceptions import (
    BusinessValidationError,
    ConflictError,
    ExternalServiceError,
    NotFoundError,
)
from devpilot.models import Invoice, InvoiceStatus
from devpilot.schemas.invoice import InvoiceCreate, InvoiceItemCreate, InvoiceRead, InvoiceUpdate
from devpilot.schemas.payment import CheckoutSession
from devpilot.services.invoice_service import InvoiceService, preview_totals

from conftest import make_invoice, make_result


def _draft(client_id=None, **kwargs) -> InvoiceCreate:
    return InvoiceCreate(
        client_id=client_id,
        issue_date=kwargs.get("issue_date", date(2026, 10, 19)),
        tax_rate=kwargs.get("tax_rate", Decimal("8")),
        discount=kwargs.get("discount", Decimal("0")),
        notes=kwargs.get("notes"),
        items=kwargs.get("items", [
            InvoiceItemCreate(description="Backend development", qty=Decimal("12"), rate=Decimal("150")),
        ]),
    )


# ============================================================
# Tests per create_draft
# ============================================================


class TestCreateDraft:
    """Validazione, totali e numerazione della bozza."""

    async def test_missing_client_writes_nothing(self, mock_db, user_id):
        with pytest.raises(BusinessValidationError) as exc_info:
            await InvoiceService().create_draft(mock_db, user_id, _draft(client_id=None))

        assert exc_info.value.detail == "Selezionare un cliente"
        mock_db.add.assert_not_called()
        mock_db.execute.assert_not_awaited()

    async def test_invalid_items_are_reported(self, mock_db, user_id):
        data = _draft(
            client_id=uuid.uuid4(),
            items=[
                InvoiceItemCreate(description="Ok", qty=Decimal("1"), rate=Decimal("10")),
                InvoiceItemCreate(description="   ", qty=Decimal("1"), rate=Decimal("10")),
                InvoiceItemCreate(description="Gratis", qty=Decimal("1"), rate=Decimal("0")),
            ],
        )

        with pytest.raises(BusinessValidationError) as exc_info:
            await InvoiceService().create_draft(mock_db, user_id, data)

        assert exc_info.value.extra == {"invalid_rows": [2, 3]}
        mock_db.add.assert_not_called()

    async def test_unknown_client(self, mock_db, user_id):
        mock_db.execute.return_value = make_result(one=None)

        with pytest.raises(BusinessValidationError):
            await InvoiceService().create_draft(mock_db, user_id, _draft(client_id=uuid.uuid4()))

        mock_db.add.assert_not_called()

    async def test_creates_numbered_draft(self, mock_db, user_id, client_entity):
        stored = object()
        mock_db.execute.side_effect = [
            make_result(one=client_entity),      # cliente
            make_result(),                       # advisory lock
            make_result(one="DP-202610-0003"),   # ultimo numero del mese
            make_result(one=stored),             # rilettura
        ]

        result = await InvoiceService().create_draft(
            mock_db, user_id, _draft(client_id=client_entity.id, notes="Grazie"),
        )

        assert result is stored
        invoice = mock_db.add.call_args[0][0]
        assert invoice.invoice_number == "DP-202610-0004"
        assert invoice.status == InvoiceStatus.DRAFT.value
        assert invoice.subtotal == Decimal("1800.00")
        assert invoice.tax == Decimal("144.00")
        assert invoice.total == Decimal("1944.00")
        assert invoice.currency == "USD"
        assert invoice.due_date is None
        assert invoice.extra_metadata == {"notes": "Grazie"}
        assert [i.amount for i in invoice.items] == [Decimal("1800.00")]
        mock_db.flush.assert_awaited_once()

    async def test_duplicate_number_is_conflict(self, mock_db, user_id, client_entity):
        mock_db.execute.side_effect = [
            make_result(one=client_entity),
            make_result(),
            make_result(one=None),
        ]
        mock_db.flush.side_effect = IntegrityError("INSERT", {}, Exception("duplicate key"))

        with pytest.raises(ConflictError):
            await InvoiceService().create_draft(mock_db, user_id, _draft(client_id=client_entity.id))

        mock_db.rollback.assert_awaited_once()

    async def test_items_keep_submitted_order(self, mock_db, user_id, client_entity):
        mock_db.execute.side_effect = [
            make_result(one=client_entity),
            make_result(),
            make_result(one=None),
            make_result(one=object()),
        ]
        items = [
            InvoiceItemCreate(description="Analisi", qty=Decimal("2"), rate=Decimal("100")),
            InvoiceItemCreate(description="Sviluppo", qty=Decimal("10"), rate=Decimal("150")),
            InvoiceItemCreate(description="Deploy", qty=Decimal("1"), rate=Decimal("80")),
        ]

        await InvoiceService().create_draft(
            mock_db, user_id, _draft(client_id=client_entity.id, items=items),
        )

        invoice = mock_db.add.call_args[0][0]
        assert [i.position for i in invoice.items] == [0, 1, 2]
        assert [i.description for i in invoice.items] == ["Analisi", "Sviluppo", "Deploy"]

    def test_items_are_read_by_position(self):
        configure_mappers()

        assert [c.key for c in Invoice.items.property.order_by] == ["position"]

    async def test_currency_defaults_from_settings(
        self, mock_db, user_id, client_entity, test_settings, monkeypatch,
    ):
        monkeypatch.setattr(
            "devpilot.services.invoice_service.settings",
            test_settings.model_copy(update={"default_currency": "EUR"}),
        )
        mock_db.execute.side_effect = [
            make_result(one=client_entity),
            make_result(),
            make_result(one=None),
            make_result(one=object()),
        ]

        await InvoiceService().create_draft(mock_db, user_id, _draft(client_id=client_entity.id))

        assert mock_db.add.call_args[0][0].currency == "EUR"
        assert Invoice.__table__.c.currency.default is None


# ============================================================
# Tests per la precisione degli importi
# ============================================================


class TestAmountPrecision:
    """Quantità, tariffe e aliquote hanno la stessa scala delle colonne."""

    @pytest.mark.parametrize("field,value", [("qty", "1.333"), ("rate", "33.333")])
    def test_item_with_three_decimals_rejected(self, field, value):
        data = {"description": "Dev", "qty": Decimal("1"), "rate": Decimal("100")}
        data[field] = Decimal(value)

        with pytest.raises(ValidationError):
            InvoiceItemCreate(**data)

    def test_tax_rate_with_three_decimals_rejected(self):
        with pytest.raises(ValidationError):
            _draft(client_id=uuid.uuid4(), tax_rate=Decimal("8.125"))
        with pytest.raises(ValidationError):
            InvoiceUpdate(tax_rate=Decimal("8.125"))

    async def test_stored_items_match_totals_after_update(self, mock_db, user_id, client_entity):
        mock_db.execute.side_effect = [
            make_result(one=client_entity),
            make_result(),
            make_result(one=None),
            make_result(one=object()),
        ]
        data = _draft(
            client_id=client_entity.id,
            tax_rate=Decimal("8.13"),
            items=[InvoiceItemCreate(description="Dev", qty=Decimal("1.33"), rate=Decimal("99.99"))],
        )
        await InvoiceService().create_draft(mock_db, user_id, data)
        invoice = mock_db.add.call_args[0][0]
        invoice.id = uuid.uuid4()

        assert invoice.subtotal == Decimal("132.99")
        assert invoice.items[0].amount == invoice.subtotal
        assert invoice.tax == Decimal("10.81")

        # solo lo sconto cambia: subtotale e imposta restano quelli salvati
        mock_db.execute.side_effect = None
        mock_db.execute.return_value = make_result(one=invoice)
        await InvoiceService().update(mock_db, user_id, invoice.id, InvoiceUpdate(discount=Decimal("10")))

        assert invoice.subtotal == Decimal("132.99")
        assert invoice.tax == Decimal("10.81")
        assert invoice.total == Decimal("133.80")


# ============================================================
# Tests per request_payment
# ============================================================


class TestRequestPayment:
    """Creazione del link di pagamento tramite gateway."""

    async def test_draft_becomes_sent(self, mock_db, user_id, invoice_entity):
        mock_db.execute.return_value = make_result(one=invoice_entity)
        gateway = AsyncMock()
        gateway.create_checkout_session.return_value = CheckoutSession(
            id="cs_test_1", url="https://checkout.stripe.test/cs_test_1", payment_intent_id=None,
        )

        url = await InvoiceService().request_payment(mock_db, user_id, invoice_entity.id, gateway)

        assert url == "https://checkout.stripe.test/cs_test_1"
        assert invoice_entity.status == "sent"
        assert invoice_entity.stripe_checkout_session_id == "cs_test_1"
        gateway.create_checkout_session.assert_awaited_once_with(invoice_entity)

    async def test_gateway_error_leaves_invoice_untouched(self, mock_db, user_id, invoice_entity):
        mock_db.execute.return_value = make_result(one=invoice_entity)
        gateway = AsyncMock()
        gateway.create_checkout_session.side_effect = ExternalServiceError("Failed to create payment link")

        with pytest.raises(ExternalServiceError):
            await InvoiceService().request_payment(mock_db, user_id, invoice_entity.id, gateway)

        assert invoice_entity.status == "draft"
        assert invoice_entity.stripe_checkout_session_id is None
        mock_db.flush.assert_not_awaited()

    async def test_unknown_invoice(self, mock_db, user_id):
        mock_db.execute.return_value = make_result(one=None)

        with pytest.raises(NotFoundError):
            await InvoiceService().request_payment(mock_db, user_id, uuid.uuid4(), AsyncMock())


# ============================================================
# Tests per mark_paid / mark_payment_failed
# ============================================================


class TestPaymentReconciliation:
    """Aggiornamenti guidati dal webhook."""

    async def test_mark_paid(self, mock_db, user_id, client_entity):
        invoice = make_invoice(user_id, client_entity, status="sent", stripe_checkout_session_id="cs_1")
        mock_db.execute.return_value = make_result(one=invoice)

        result = await InvoiceService().mark_paid(mock_db, "pi_1", checkout_session_id="cs_1")

        assert result is invoice
        assert invoice.status == "paid"
        assert invoice.stripe_payment_intent_id == "pi_1"
        mock_db.flush.assert_awaited_once()

    async def test_mark_paid_is_idempotent(self, mock_db, user_id, client_entity):
        invoice = make_invoice(user_id, client_entity, status="sent", stripe_payment_intent_id="pi_1")
        mock_db.execute.return_value = make_result(one=invoice)
        service = InvoiceService()

        await service.mark_paid(mock_db, "pi_1")
        first_update = invoice.updated_at
        await service.mark_paid(mock_db, "pi_1")

        assert invoice.status == "paid"
        assert invoice.stripe_payment_intent_id == "pi_1"
        assert invoice.updated_at >= first_update

    async def test_unknown_reference_writes_nothing(self, mock_db):
        mock_db.execute.return_value = make_result(one=None)

        result = await InvoiceService().mark_paid(mock_db, "pi_unknown")

        assert result is None
        mock_db.flush.assert_not_awaited()

    async def test_missing_reference_skips_query(self, mock_db):
        assert await InvoiceService().mark_paid(mock_db, None) is None
        mock_db.execute.assert_not_awaited()

    async def test_failed_payment_keeps_sent(self, mock_db, user_id, client_entity):
        invoice = make_invoice(user_id, client_entity, status="sent", stripe_payment_intent_id="pi_2")
        mock_db.execute.return_value = make_result(one=invoice)

        await InvoiceService().mark_payment_failed(mock_db, "pi_2")

        assert invoice.status == "sent"

    async def test_failed_payment_never_downgrades_paid(self, mock_db, user_id, client_entity):
        invoice = make_invoice(user_id, client_entity, status="paid", stripe_payment_intent_id="pi_3")
        mock_db.execute.return_value = make_result(one=invoice)

        await InvoiceService().mark_payment_failed(mock_db, "pi_3")

        assert invoice.status == "paid"
        mock_db.flush.assert_not_awaited()

    async def test_failed_payment_unknown_reference_writes_nothing(self, mock_db):
        mock_db.execute.return_value = make_result(one=None)

        result = await InvoiceService().mark_payment_failed(mock_db, "pi_unknown")

        assert result is None
        mock_db.flush.assert_not_awaited()


# ============================================================
# Tests per update e stato in lettura
# ============================================================


class TestUpdateAndRead:
    """Modifica delle bozze e stato overdue calcolato."""

    async def test_only_drafts_are_editable(self, mock_db, user_id, client_entity):
        invoice = make_invoice(user_id, client_entity, status="sent")
        mock_db.execute.return_value = make_result(one=invoice)

        with pytest.raises(BusinessValidationError):
            await InvoiceService().update(mock_db, user_id, invoice.id, InvoiceUpdate(notes="x"))

    async def test_zero_tax_rate_recomputes_totals(self, mock_db, user_id, client_entity):
        invoice = make_invoice(user_id, client_entity)
        mock_db.execute.return_value = make_result(one=invoice)

        await InvoiceService().update(mock_db, user_id, invoice.id, InvoiceUpdate(tax_rate=Decimal("0")))

        assert invoice.tax == Decimal("0.00")
        assert invoice.total == Decimal("1800.00")

    def test_sent_and_past_due_reads_as_overdue(self, user_id, client_entity):
        invoice = make_invoice(
            user_id, client_entity, status="sent", due_date=date.today() - timedelta(days=1),
        )

        read = InvoiceRead.model_validate(invoice)

        assert read.status == InvoiceStatus.SENT
        assert read.display_status == InvoiceStatus.OVERDUE
        assert read.model_dump(by_alias=True)["metadata"] == {"notes": None}

    def test_without_due_date_never_overdue(self, user_id, client_entity):
        invoice = make_invoice(user_id, client_entity, status="sent", due_date=None)

        assert InvoiceRead.model_validate(invoice).display_status == InvoiceStatus.SENT

    def test_preview_totals(self):
        totals = preview_totals([{"qty": 12, "rate": 150}], Decimal("8"), Decimal("0"))

        assert totals["total"] == Decimal("1944.00")
