"""
Router FastAPI per i pagamenti Stripe
Progetto: DevPilot (Gestionale Freelance)

Endpoint:
- POST /stripe/create-checkout: link di pagamento per una fattura
- POST /stripe/webhook: eventi Stripe (nessuna autenticazione, firma obbligatoria)
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from devpilot.api.responses import app_error_response, error_response
from devpilot.core.database import get_db
from devpilot.core.deps import CurrentUserId
from devpilot.core.exceptions import (
    ExternalServiceError,
    InvalidSignatureError,
    MalformedPayloadError,
    NotFoundError,
)
from devpilot.schemas.invoice import CheckoutResponse, InvoiceIdRequest
from devpilot.services.invoice_service import InvoiceService
from devpilot.services.payment_service import (
    PaymentGateway,
    WebhookProcessingError,
    WebhookReconciler,
    get_payment_gateway,
    get_webhook_reconciler,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/stripe",
    tags=["Pagamenti"],
)


def get_invoice_service() -> InvoiceService:
    return InvoiceService()


@router.post(
    "/create-checkout",
    name="stripe_checkout",
    summary="Crea link di pagamento",
    description="Crea una sessione di checkout Stripe per la fattura e la porta allo stato sent.",
    response_model=CheckoutResponse,
)
async def create_checkout(
    body: InvoiceIdRequest,
    user_id: CurrentUserId,
    db: AsyncSession = Depends(get_db),
    service: InvoiceService = Depends(get_invoice_service),
    gateway: PaymentGateway = Depends(get_payment_gateway),
):
    if body.invoice_id is None:
        return error_response(status.HTTP_400_BAD_REQUEST, "Invoice ID is required")

    try:
        url = await service.request_payment(
            db=db, user_id=user_id, invoice_id=body.invoice_id, gateway=gateway,
        )
    except NotFoundError:
        return error_response(status.HTTP_404_NOT_FOUND, "Invoice not found")
    except ExternalServiceError as e:
        return app_error_response(e)

    await db.commit()
    return CheckoutResponse(url=url)


@router.post(
    "/webhook",
    name="stripe_webhook",
    summary="Webhook Stripe",
    description="Riceve gli eventi Stripe. La firma viene verificata prima di leggere il contenuto.",
)
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None, alias="stripe-signature"),
    db: AsyncSession = Depends(get_db),
    reconciler: WebhookReconciler = Depends(get_webhook_reconciler),
) -> JSONResponse:
    payload = await request.body()

    try:
        outcome = await reconciler.handle(db, payload, stripe_signature)
    except (InvalidSignatureError, MalformedPayloadError) as e:
        return app_error_response(e)
    except WebhookProcessingError as e:
        await db.rollback()
        return app_error_response(e)

    await db.commit()
    logger.info(
        "Webhook %s elaborato: %s (fattura %s)",
        outcome.event_type, outcome.action.value, outcome.invoice_id,
    )
    return JSONResponse(content={"received": True})
