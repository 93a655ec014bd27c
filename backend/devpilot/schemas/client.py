"""
Schemas Pydantic per l'entità Client
Progetto: DevPilot (Gestionale Freelance)

Contiene:
- BillingAddress: indirizzo di fatturazione strutturato
- ClientCreate / ClientUpdate / ClientRead
- ClientList: risposta paginata
"""

import datetime
import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, computed_field, field_validator


class BillingAddress(BaseModel):
    """Indirizzo di fatturazione del cliente."""

    street: Optional[str] = Field(None, max_length=200, description="Via e numero civico")
    city: Optional[str] = Field(None, max_length=100, description="Città")
    state: Optional[str] = Field(None, max_length=100, description="Stato/provincia")
    zip: Optional[str] = Field(None, max_length=20, description="Codice postale")
    country: Optional[str] = Field(None, max_length=100, description="Paese")


class ClientBase(BaseModel):
    """Campi comuni del cliente."""

    name: str = Field(..., min_length=1, max_length=200, description="Nome o ragione sociale")
    email: Optional[EmailStr] = Field(None, description="Indirizzo email")
    phone: Optional[str] = Field(None, max_length=50, description="Telefono")
    billing_address: Optional[BillingAddress] = Field(None, description="Indirizzo di fatturazione")
    default_payment_terms: int = Field(
        default=30,
        ge=0,
        le=365,
        description="Termini di pagamento predefiniti (giorni)",
    )

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        """Rimuove gli spazi e rifiuta nomi vuoti."""
        v = v.strip()
        if not v:
            raise ValueError("Il nome del cliente è obbligatorio")
        return v


class ClientCreate(ClientBase):
    """Schema per la creazione di un cliente."""
    pass


class ClientUpdate(BaseModel):
    """Aggiornamento parziale: solo i campi inviati vengono modificati."""

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    billing_address: Optional[BillingAddress] = None
    default_payment_terms: Optional[int] = Field(None, ge=0, le=365)


class ClientRead(ClientBase):
    """Schema di lettura del cliente."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    created_at: datetime.datetime
    updated_at: datetime.datetime


class ClientList(BaseModel):
    """Risposta paginata della lista clienti."""

    model_config = ConfigDict(from_attributes=True)

    items: list[ClientRead] = Field(default_factory=list, description="Lista dei clienti")
    total: int = Field(..., ge=0, description="Numero totale di clienti")
    page: int = Field(..., ge=1, description="Numero pagina corrente")
    per_page: int = Field(..., ge=1, description="Numero elementi per pagina")

    @computed_field
    def total_pages(self) -> int:
        """Numero totale di pagine: ceil(total / per_page)."""
        if self.per_page > 0:
            return (self.total + self.per_page - 1) // self.per_page
        return 0
