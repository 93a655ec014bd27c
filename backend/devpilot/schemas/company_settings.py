"""
Schemas Pydantic per le impostazioni aziendali
Progetto: DevPilot (Gestionale Freelance)
"""

import uuid
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CompanySettingsBase(BaseModel):
    """Intestazione fatture e coordinate bancarie."""

    company_name: Optional[str] = Field(None, max_length=200, description="Nome mostrato in fattura")
    company_logo: Optional[str] = Field(None, max_length=500, description="URL del logo")
    default_hourly_rate: Decimal = Field(default=Decimal("0"), ge=0, description="Tariffa oraria")
    invoice_footer: Optional[str] = Field(None, description="Testo a piè di pagina")
    bank_name: Optional[str] = Field(None, max_length=200)
    account_number: Optional[str] = Field(None, max_length=100)
    account_holder: Optional[str] = Field(None, max_length=200)
    account_type: Optional[str] = Field(None, max_length=50)
    iban: Optional[str] = Field(None, max_length=50)


class CompanySettingsUpdate(CompanySettingsBase):
    """Upsert completo delle impostazioni."""
    pass


class CompanySettingsRead(CompanySettingsBase):
    model_config = ConfigDict(from_attributes=True)

    id: Optional[uuid.UUID] = Field(None, description="Assente finché l'utente non salva")
