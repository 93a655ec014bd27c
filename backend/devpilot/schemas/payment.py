"""
Schemas Pydantic per i pagamenti Stripe
Progetto: DevPilot (Gestionale Freelance)

Contiene:
- StripeEvent: evento webhook (solo i campi usati)
- CheckoutSession: risultato della creazione di una sessione di checkout
- WebhookOutcome: esito dell'elaborazione di un evento
"""

import uuid
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class WebhookEventType(str, Enum):
    """Eventi Stripe gestiti dal riconciliatore."""
    CHECKOUT_SESSION_COMPLETED = "checkout.session.completed"
    PAYMENT_INTENT_FAILED = "payment_intent.payment_failed"


class WebhookAction(str, Enum):
    """Azione eseguita per un evento."""
    MARKED_PAID = "marked_paid"
    MARKED_FAILED = "marked_failed"
    INVOICE_NOT_FOUND = "invoice_not_found"
    IGNORED = "ignored"


class StripeEventData(BaseModel):
    model_config = ConfigDict(extra="allow")

    object: dict[str, Any] = Field(..., description="Oggetto Stripe dell'evento")


class StripeEvent(BaseModel):
    """Evento webhook Stripe, dopo la verifica della firma."""

    model_config = ConfigDict(extra="allow")

    id: str
    type: str
    data: StripeEventData

    @property
    def data_object(self) -> dict[str, Any]:
        return self.data.object


class CheckoutSession(BaseModel):
    """Sessione di checkout creata presso Stripe."""

    id: str
    url: str
    payment_intent_id: Optional[str] = None


class WebhookOutcome(BaseModel):
    """Esito dell'elaborazione di un evento webhook."""

    event_id: str
    event_type: str
    action: WebhookAction
    invoice_id: Optional[uuid.UUID] = None
