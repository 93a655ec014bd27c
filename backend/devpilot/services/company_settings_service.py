"""
Service per le impostazioni aziendali
Progetto: DevPilot (Gestionale Freelance)

Una riga per utente. Finché l'utente non salva, la lettura restituisce
i valori predefiniti senza scrivere nulla.
"""

import logging
import uuid
from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from devpilot.core.exceptions import DuplicateError
from devpilot.models import CompanySettings
from devpilot.schemas.company_settings import CompanySettingsUpdate

logger = logging.getLogger(__name__)


class CompanySettingsService:

    async def get(self, db: AsyncSession, user_id: uuid.UUID) -> Optional[CompanySettings]:
        result = await db.execute(
            select(CompanySettings).where(CompanySettings.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def get_or_default(self, db: AsyncSession, user_id: uuid.UUID) -> CompanySettings:
        """Impostazioni salvate, oppure un oggetto transiente con i default."""
        company = await self.get(db, user_id)
        if company is None:
            company = CompanySettings(user_id=user_id, default_hourly_rate=Decimal("0"))
        return company

    async def upsert(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        data: CompanySettingsUpdate,
    ) -> CompanySettings:
        """
        Crea o aggiorna le impostazioni dell'utente.

        Raises:
            DuplicateError: Se una richiesta concorrente ha già creato la riga
        """
        company = await self.get(db, user_id)
        if company is None:
            company = CompanySettings(user_id=user_id, **data.model_dump())
            db.add(company)
            logger.info("Create impostazioni aziendali per utente %s", user_id)
        else:
            for field, value in data.model_dump().items():
                setattr(company, field, value)

        try:
            await db.flush()
            await db.refresh(company)
        except IntegrityError as e:
            logger.error("Errore IntegrityError impostazioni aziendali: %s", e.orig)
            await db.rollback()
            raise DuplicateError("Impostazioni aziendali già presenti, riprovare")

        return company
