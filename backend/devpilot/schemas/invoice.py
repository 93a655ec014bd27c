"""
Schemas Pydantic per la Fatturazione
Progetto: DevPilot (Gestionale Freelance)

Contiene:
- Schemas per InvoiceItem
- Schemas per Invoice (creazione bozza, aggiornamento, lettura, lista)
- Schemas per anteprima totali e checkout
"""

import datetime
import uuid
from decimal import Decimal
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
)

from devpilot.models.invoice import InvoiceStatus
from devpilot.schemas.client import ClientRead
from devpilot.services.invoice_totals import calculate_item_amount


# -------------------------------------------------------------------
# Schemas per InvoiceItem
# -------------------------------------------------------------------

class InvoiceItemBase(BaseModel):
    """Riga fattura come inviata dal client (senza amount)."""

    description: str = Field(..., max_length=1000, description="Descrizione della riga")
    # scala delle colonne: i totali devono corrispondere alle righe salvate
    qty: Decimal = Field(..., max_digits=10, decimal_places=2, description="Quantità")
    rate: Decimal = Field(..., max_digits=12, decimal_places=2, description="Tariffa unitaria")


class InvoiceItemCreate(InvoiceItemBase):
    """
    Creazione riga.

    La presenza della descrizione e rate > 0 sono verificate dal service,
    così da restituire un unico errore di business per tutte le righe.
    """
    pass


class InvoiceItemRead(InvoiceItemBase):
    """Lettura riga: amount è sempre derivato da qty * rate."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    invoice_id: uuid.UUID
    position: int = 0
    created_at: datetime.datetime

    @computed_field
    @property
    def amount(self) -> Decimal:
        """Importo riga (qty * rate arrotondato)."""
        return calculate_item_amount(self.qty, self.rate)


# -------------------------------------------------------------------
# Schemas per Invoice
# -------------------------------------------------------------------

class InvoiceCreate(BaseModel):
    """Dati per la creazione di una fattura in bozza."""

    client_id: Optional[uuid.UUID] = Field(None, description="UUID del cliente (obbligatorio)")
    project_id: Optional[uuid.UUID] = Field(None, description="UUID del progetto")
    issue_date: datetime.date = Field(
        default_factory=datetime.date.today,
        description="Data emissione (default: oggi)",
    )
    due_date: Optional[datetime.date] = Field(None, description="Data scadenza")
    currency: Optional[str] = Field(None, min_length=3, max_length=3, description="Valuta ISO 4217")
    tax_rate: Decimal = Field(
        default=Decimal("0"), max_digits=5, decimal_places=2, description="Aliquota in percentuale",
    )
    discount: Decimal = Field(
        default=Decimal("0"), max_digits=12, decimal_places=2, description="Sconto in valore assoluto",
    )
    notes: Optional[str] = Field(None, description="Note (salvate nei metadati)")
    items: list[InvoiceItemCreate] = Field(..., min_length=1, description="Righe della fattura")

    @field_validator("currency")
    @classmethod
    def upper_currency(cls, v: Optional[str]) -> Optional[str]:
        return v.upper() if v else v


class InvoiceUpdate(BaseModel):
    """
    Aggiornamento di una fattura in bozza.

    Se items è presente le righe vengono sostituite in blocco e i totali
    ricalcolati.
    """

    client_id: Optional[uuid.UUID] = None
    project_id: Optional[uuid.UUID] = None
    issue_date: Optional[datetime.date] = None
    due_date: Optional[datetime.date] = None
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    tax_rate: Optional[Decimal] = Field(None, max_digits=5, decimal_places=2)
    discount: Optional[Decimal] = Field(None, max_digits=12, decimal_places=2)
    notes: Optional[str] = None
    items: Optional[list[InvoiceItemCreate]] = Field(None, min_length=1)


class InvoiceRead(BaseModel):
    """Lettura fattura con righe e stato effettivo."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    client_id: Optional[uuid.UUID] = None
    project_id: Optional[uuid.UUID] = None
    invoice_number: str
    issue_date: datetime.date
    due_date: Optional[datetime.date] = None
    currency: str
    status: InvoiceStatus
    subtotal: Decimal
    tax_rate: Decimal
    tax: Decimal
    discount: Decimal
    total: Decimal
    stripe_payment_intent_id: Optional[str] = None
    pdf_path: Optional[str] = None
    extra_metadata: Optional[dict[str, Any]] = Field(None, serialization_alias="metadata")
    client: Optional[ClientRead] = None
    items: list[InvoiceItemRead] = Field(default_factory=list)
    created_at: datetime.datetime
    updated_at: datetime.datetime

    @computed_field
    @property
    def display_status(self) -> InvoiceStatus:
        """Stato da mostrare: sent + scaduta → overdue (calcolato in lettura)."""
        if (
            self.status == InvoiceStatus.SENT
            and self.due_date is not None
            and self.due_date < datetime.date.today()
        ):
            return InvoiceStatus.OVERDUE
        return self.status


class InvoiceList(BaseModel):
    """Risposta paginata della lista fatture."""

    items: list[InvoiceRead] = Field(default_factory=list)
    total: int = Field(..., ge=0)
    page: int = Field(..., ge=1)
    per_page: int = Field(..., ge=1)

    @computed_field
    def total_pages(self) -> int:
        if self.per_page > 0:
            return (self.total + self.per_page - 1) // self.per_page
        return 0


# -------------------------------------------------------------------
# Anteprima totali
# -------------------------------------------------------------------

class TotalsPreviewRequest(BaseModel):
    """Righe e parametri per l'anteprima dei totali (nessuna persistenza)."""

    items: list[InvoiceItemBase] = Field(default_factory=list)
    tax_rate: Decimal = Field(default=Decimal("0"), max_digits=5, decimal_places=2)
    discount: Decimal = Field(default=Decimal("0"), max_digits=12, decimal_places=2)


class TotalsPreviewResponse(BaseModel):
    subtotal: Decimal
    tax: Decimal
    discount: Decimal
    total: Decimal


# -------------------------------------------------------------------
# Endpoint per ID fattura (checkout Stripe, PDF)
# -------------------------------------------------------------------

class InvoiceIdRequest(BaseModel):
    """Corpo {invoiceId} usato dagli endpoint di checkout e PDF."""

    model_config = ConfigDict(populate_by_name=True)

    invoice_id: Optional[uuid.UUID] = Field(None, alias="invoiceId")


class CheckoutResponse(BaseModel):
    url: str = Field(..., description="URL della pagina di pagamento Stripe")
