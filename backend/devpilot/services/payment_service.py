"""
Pagamenti Stripe: checkout e riconciliazione webhook
Progetto: DevPilot (Gestionale Freelance)

Contiene:
- PaymentGateway: wrapper della libreria stripe (checkout, verifica firma)
- WebhookReconciler: verifica, interpreta e applica gli eventi webhook

Eventi gestiti:
- checkout.session.completed con payment_status "paid" → fattura pagata
- payment_intent.payment_failed → fattura resta/torna sent
Ogni altro evento viene registrato nel log e ignorato.
"""

import json
import logging
from decimal import Decimal
from typing import Any, Optional

import stripe
from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from devpilot.core.config import Settings, settings as default_settings
from devpilot.core.exceptions import (
    AppException,
    ExternalServiceError,
    InvalidSignatureError,
    MalformedPayloadError,
)
from devpilot.models import Invoice
from devpilot.schemas.payment import (
    CheckoutSession,
    StripeEvent,
    WebhookAction,
    WebhookEventType,
    WebhookOutcome,
)
from devpilot.services.invoice_service import InvoiceService, invoice_service

logger = logging.getLogger(__name__)

# Valute senza decimali secondo Stripe: l'importo è già nell'unità minima
ZERO_DECIMAL_CURRENCIES = frozenset({
    "BIF", "CLP", "DJF", "GNF", "JPY", "KMF", "KRW", "MGA",
    "PYG", "RWF", "UGX", "VND", "VUV", "XAF", "XOF", "XPF",
})


def format_amount_for_stripe(amount: Decimal, currency: str) -> int:
    """
    Converte un importo nell'unità minima della valuta (es. centesimi).

    Examples:
        >>> format_amount_for_stripe(Decimal("1944.00"), "usd")
        194400
    """
    multiplier = 1 if currency.upper() in ZERO_DECIMAL_CURRENCIES else 100
    return int((Decimal(amount) * multiplier).to_integral_value())


class WebhookProcessingError(AppException):
    """Errore durante l'applicazione di un evento già verificato."""
    status_code = 500
    error_code = "WEBHOOK_PROCESSING_FAILED"
    default_detail = "Webhook processing failed"


# ------------------------------------------------------------
# Gateway Stripe
# ------------------------------------------------------------

class PaymentGateway:
    """
    Accesso a Stripe per creare sessioni di checkout e verificare i webhook.

    Le chiamate di rete della libreria stripe sono sincrone: vengono
    eseguite nel threadpool per non bloccare l'event loop.
    """

    def __init__(self, app_settings: Optional[Settings] = None) -> None:
        self.settings = app_settings or default_settings

    async def create_checkout_session(self, invoice: Invoice) -> CheckoutSession:
        """
        Crea una sessione di checkout per il totale della fattura.

        Raises:
            ExternalServiceError: Chiave non configurata o errore Stripe
        """
        if not self.settings.stripe_secret_key:
            raise ExternalServiceError("Stripe non configurato (STRIPE_SECRET_KEY mancante)")

        base_url = self.settings.public_app_url.rstrip("/")
        metadata = {
            "invoice_id": str(invoice.id),
            "invoice_number": invoice.invoice_number,
        }

        try:
            session = await run_in_threadpool(
                stripe.checkout.Session.create,
                api_key=self.settings.stripe_secret_key,
                payment_method_types=["card"],
                line_items=[
                    {
                        "price_data": {
                            "currency": invoice.currency.lower(),
                            "product_data": {
                                "name": f"Invoice {invoice.invoice_number}",
                                "description": f"Payment for invoice {invoice.invoice_number}",
                            },
                            "unit_amount": format_amount_for_stripe(invoice.total, invoice.currency),
                        },
                        "quantity": 1,
                    }
                ],
                mode="payment",
                success_url=f"{base_url}/invoices/{invoice.id}?payment=success",
                cancel_url=f"{base_url}/invoices/{invoice.id}?payment=cancelled",
                metadata=metadata,
                payment_intent_data={"metadata": metadata},
            )
        except stripe.StripeError as e:
            logger.error(
                "Errore Stripe creazione checkout per fattura %s: %s",
                invoice.invoice_number, e,
            )
            raise ExternalServiceError("Failed to create payment link")

        payment_intent = session.get("payment_intent")
        if isinstance(payment_intent, dict):
            payment_intent = payment_intent.get("id")

        return CheckoutSession(
            id=session["id"],
            url=session["url"],
            payment_intent_id=payment_intent,
        )

    def verify_signature(self, payload: bytes, signature: Optional[str]) -> None:
        """
        Verifica la firma dell'header stripe-signature.

        Raises:
            InvalidSignatureError: Header mancante, firma errata o scaduta
        """
        if not signature:
            raise InvalidSignatureError("No signature provided")
        if not self.settings.stripe_webhook_secret:
            logger.error("STRIPE_WEBHOOK_SECRET non configurato: webhook rifiutato")
            raise InvalidSignatureError()

        try:
            body = payload.decode("utf-8")
        except UnicodeDecodeError:
            raise InvalidSignatureError()

        try:
            stripe.WebhookSignature.verify_header(
                body,
                signature,
                self.settings.stripe_webhook_secret,
                self.settings.stripe_webhook_tolerance,
            )
        except stripe.SignatureVerificationError as e:
            logger.warning("Verifica firma webhook fallita: %s", e)
            raise InvalidSignatureError()


def get_payment_gateway() -> PaymentGateway:
    """Dependency FastAPI per il gateway di pagamento."""
    return PaymentGateway()


# ------------------------------------------------------------
# Riconciliazione webhook
# ------------------------------------------------------------

class WebhookReconciler:
    """Applica alle fatture gli eventi webhook verificati."""

    def __init__(
        self,
        gateway: Optional[PaymentGateway] = None,
        invoices: Optional[InvoiceService] = None,
    ) -> None:
        self.gateway = gateway or PaymentGateway()
        self.invoices = invoices or invoice_service

    @staticmethod
    def parse_event(payload: bytes) -> StripeEvent:
        """
        Interpreta il corpo (già verificato) come evento Stripe.

        Raises:
            MalformedPayloadError: JSON non valido o campi mancanti
        """
        try:
            return StripeEvent.model_validate(json.loads(payload))
        except (ValueError, PydanticValidationError) as e:
            logger.warning("Payload webhook non interpretabile: %s", e)
            raise MalformedPayloadError("Malformed webhook payload")

    async def handle(
        self,
        db: AsyncSession,
        payload: bytes,
        signature: Optional[str],
    ) -> WebhookOutcome:
        """
        Elabora un evento webhook.

        Steps:
        1. Verifica della firma (prima di qualsiasi lettura del contenuto)
        2. Interpretazione del payload
        3. Dispatch per tipo di evento

        Raises:
            InvalidSignatureError: Firma mancante o non valida
            MalformedPayloadError: Payload non interpretabile
            WebhookProcessingError: Errore di persistenza
        """
        self.gateway.verify_signature(payload, signature)
        event = self.parse_event(payload)

        try:
            return await self.dispatch(db, event)
        except SQLAlchemyError as e:
            logger.error("Errore elaborazione webhook %s (%s): %s", event.id, event.type, e, exc_info=True)
            raise WebhookProcessingError()

    async def dispatch(self, db: AsyncSession, event: StripeEvent) -> WebhookOutcome:
        try:
            event_type: Optional[WebhookEventType] = WebhookEventType(event.type)
        except ValueError:
            event_type = None

        obj = event.data_object

        if event_type is WebhookEventType.CHECKOUT_SESSION_COMPLETED:
            return await self._on_checkout_completed(db, event, obj)
        elif event_type is WebhookEventType.PAYMENT_INTENT_FAILED:
            return await self._on_payment_failed(db, event, obj)
        else:
            logger.info("Evento webhook non gestito: %s (%s)", event.type, event.id)
            return WebhookOutcome(
                event_id=event.id,
                event_type=event.type,
                action=WebhookAction.IGNORED,
            )

    async def _on_checkout_completed(
        self,
        db: AsyncSession,
        event: StripeEvent,
        session: dict[str, Any],
    ) -> WebhookOutcome:
        if session.get("payment_status") != "paid":
            logger.info(
                "Checkout %s completato senza pagamento (%s): ignorato",
                session.get("id"), session.get("payment_status"),
            )
            return WebhookOutcome(event_id=event.id, event_type=event.type, action=WebhookAction.IGNORED)

        payment_intent = session.get("payment_intent")
        if isinstance(payment_intent, dict):
            payment_intent = payment_intent.get("id")

        invoice = await self.invoices.mark_paid(
            db,
            payment_intent or session.get("id"),
            checkout_session_id=session.get("id"),
        )
        return WebhookOutcome(
            event_id=event.id,
            event_type=event.type,
            action=WebhookAction.MARKED_PAID if invoice else WebhookAction.INVOICE_NOT_FOUND,
            invoice_id=invoice.id if invoice else None,
        )

    async def _on_payment_failed(
        self,
        db: AsyncSession,
        event: StripeEvent,
        payment_intent: dict[str, Any],
    ) -> WebhookOutcome:
        invoice = await self.invoices.mark_payment_failed(db, payment_intent.get("id"))
        return WebhookOutcome(
            event_id=event.id,
            event_type=event.type,
            action=WebhookAction.MARKED_FAILED if invoice else WebhookAction.INVOICE_NOT_FOUND,
            invoice_id=invoice.id if invoice else None,
        )


def get_webhook_reconciler() -> WebhookReconciler:
    """Dependency FastAPI per il riconciliatore."""
    return WebhookReconciler()
