"""
Schemas Pydantic per i token JWT
Progetto: DevPilot (Gestionale Freelance)

Payload dei token emessi dal provider di autenticazione.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class TokenPayload(BaseModel):
    """
    Schema per il payload contenuto nei token JWT.

    Attributes:
        sub: Subject - ID dell'utente come stringa
        email: Email dell'utente (se presente nel token)
        role: Ruolo assegnato dal provider (es. "authenticated")
        exp: Expiration - Data/ora di scadenza
    """

    sub: str = Field(..., description="ID utente")
    email: Optional[str] = Field(None, description="Email dell'utente")
    role: Optional[str] = Field(None, description="Ruolo assegnato dal provider")
    exp: Optional[datetime] = Field(None, description="Data/ora di scadenza")


__all__ = [
    "TokenPayload",
]
