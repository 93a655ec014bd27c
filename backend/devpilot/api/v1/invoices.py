"""
Router FastAPI per la Fatturazione
Progetto: DevPilot (Gestionale Freelance)

Endpoint:
- CRUD fatture (creazione in bozza, modifica solo in bozza)
- Anteprima totali senza persistenza
- Download PDF
"""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from devpilot.api.responses import app_error_response, error_response
from devpilot.core.database import get_db
from devpilot.core.deps import CurrentUserId
from devpilot.core.exceptions import ExternalServiceError, NotFoundError
from devpilot.models import InvoiceStatus
from devpilot.schemas.invoice import (
    InvoiceCreate,
    InvoiceIdRequest,
    InvoiceList,
    InvoiceRead,
    InvoiceUpdate,
    TotalsPreviewRequest,
    TotalsPreviewResponse,
)
from devpilot.services.company_settings_service import CompanySettingsService
from devpilot.services.invoice_service import InvoiceService, preview_totals
from devpilot.services.pdf_service import PdfService, pdf_filename

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/invoices",
    tags=["Fatture"],
)


# -------------------------------------------------------------------
# Dependency Injection
# -------------------------------------------------------------------

def get_invoice_service() -> InvoiceService:
    return InvoiceService()


def get_pdf_service() -> PdfService:
    return PdfService()


# -------------------------------------------------------------------
# Endpoints
# -------------------------------------------------------------------

@router.get(
    "/",
    name="fatture_lista",
    summary="Lista fatture",
    description="Lista paginata; il filtro overdue seleziona le fatture inviate e scadute.",
    response_model=InvoiceList,
    response_model_by_alias=True,
)
async def get_invoices(
    user_id: CurrentUserId,
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100),
    status_filter: Optional[InvoiceStatus] = Query(None, alias="status"),
    client_id: Optional[uuid.UUID] = Query(None),
    project_id: Optional[uuid.UUID] = Query(None),
    db: AsyncSession = Depends(get_db),
    service: InvoiceService = Depends(get_invoice_service),
) -> InvoiceList:
    invoices, total = await service.get_all(
        db=db,
        user_id=user_id,
        status_filter=status_filter,
        client_id=client_id,
        project_id=project_id,
        page=page,
        per_page=per_page,
    )
    return InvoiceList(
        items=[InvoiceRead.model_validate(i) for i in invoices],
        total=total,
        page=page,
        per_page=per_page,
    )


@router.post(
    "/totals",
    name="fatture_anteprima_totali",
    summary="Anteprima totali",
    description="Calcola subtotale, imposta e totale senza salvare nulla.",
    response_model=TotalsPreviewResponse,
)
async def preview_invoice_totals(
    data: TotalsPreviewRequest,
    user_id: CurrentUserId,
) -> TotalsPreviewResponse:
    return TotalsPreviewResponse(**preview_totals(data.items, data.tax_rate, data.discount))


@router.post(
    "/pdf",
    name="fattura_pdf",
    summary="Scarica PDF",
    description="Genera il PDF della fattura indicata da {invoiceId}.",
    response_class=Response,
    responses={200: {"content": {"application/pdf": {}}}},
)
async def download_invoice_pdf(
    body: InvoiceIdRequest,
    user_id: CurrentUserId,
    db: AsyncSession = Depends(get_db),
    service: InvoiceService = Depends(get_invoice_service),
    pdf_service: PdfService = Depends(get_pdf_service),
) -> Response:
    """
    Restituisce il PDF come allegato '{invoice_number}.pdf'.

    Errori nel formato {"error"}: 400 senza invoiceId, 404 se la fattura
    non esiste, 500/502 se la generazione fallisce.
    """
    if body.invoice_id is None:
        return error_response(status.HTTP_400_BAD_REQUEST, "Invoice ID is required")

    try:
        invoice = await service.get_by_id(db=db, user_id=user_id, invoice_id=body.invoice_id)
    except NotFoundError:
        return error_response(status.HTTP_404_NOT_FOUND, "Invoice not found")

    company = await CompanySettingsService().get(db, user_id)

    try:
        pdf_bytes = pdf_service.generate_invoice_pdf(invoice, company)
    except ExternalServiceError as e:
        return app_error_response(e)

    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{pdf_filename(invoice)}"'},
    )


@router.get(
    "/{invoice_id}",
    name="fattura_dettaglio",
    response_model=InvoiceRead,
    response_model_by_alias=True,
)
async def get_invoice(
    invoice_id: uuid.UUID,
    user_id: CurrentUserId,
    db: AsyncSession = Depends(get_db),
    service: InvoiceService = Depends(get_invoice_service),
) -> InvoiceRead:
    invoice = await service.get_by_id(db=db, user_id=user_id, invoice_id=invoice_id)
    return InvoiceRead.model_validate(invoice)


@router.post(
    "/",
    name="fattura_crea",
    summary="Crea fattura in bozza",
    description=(
        "Crea una fattura in bozza. Il cliente è obbligatorio e ogni riga deve avere "
        "descrizione e tariffa positiva. Numero e totali sono calcolati dal server."
    ),
    response_model=InvoiceRead,
    response_model_by_alias=True,
    status_code=status.HTTP_201_CREATED,
)
async def create_invoice(
    data: InvoiceCreate,
    user_id: CurrentUserId,
    db: AsyncSession = Depends(get_db),
    service: InvoiceService = Depends(get_invoice_service),
) -> InvoiceRead:
    invoice = await service.create_draft(db=db, user_id=user_id, data=data)
    await db.commit()
    return InvoiceRead.model_validate(invoice)


@router.put(
    "/{invoice_id}",
    name="fattura_aggiorna",
    response_model=InvoiceRead,
    response_model_by_alias=True,
)
async def update_invoice(
    invoice_id: uuid.UUID,
    data: InvoiceUpdate,
    user_id: CurrentUserId,
    db: AsyncSession = Depends(get_db),
    service: InvoiceService = Depends(get_invoice_service),
) -> InvoiceRead:
    invoice = await service.update(db=db, user_id=user_id, invoice_id=invoice_id, data=data)
    await db.commit()
    return InvoiceRead.model_validate(invoice)


@router.delete(
    "/{invoice_id}",
    name="fattura_elimina",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_invoice(
    invoice_id: uuid.UUID,
    user_id: CurrentUserId,
    db: AsyncSession = Depends(get_db),
    service: InvoiceService = Depends(get_invoice_service),
) -> None:
    await service.delete(db=db, user_id=user_id, invoice_id=invoice_id)
    await db.commit()
