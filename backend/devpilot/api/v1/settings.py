"""
Router FastAPI per le impostazioni aziendali
Progetto: DevPilot (Gestionale Freelance)
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from devpilot.core.database import get_db
from devpilot.core.deps import CurrentUserId
from devpilot.schemas.company_settings import CompanySettingsRead, CompanySettingsUpdate
from devpilot.services.company_settings_service import CompanySettingsService

router = APIRouter(
    prefix="/settings",
    tags=["Impostazioni"],
)


def get_company_settings_service() -> CompanySettingsService:
    return CompanySettingsService()


@router.get(
    "/",
    name="impostazioni_dettaglio",
    summary="Impostazioni aziendali",
    description="Restituisce le impostazioni salvate o i valori predefiniti.",
    response_model=CompanySettingsRead,
)
async def get_company_settings(
    user_id: CurrentUserId,
    db: AsyncSession = Depends(get_db),
    service: CompanySettingsService = Depends(get_company_settings_service),
) -> CompanySettingsRead:
    company = await service.get_or_default(db, user_id)
    return CompanySettingsRead.model_validate(company)


@router.put(
    "/",
    name="impostazioni_salva",
    summary="Salva impostazioni aziendali",
    response_model=CompanySettingsRead,
)
async def save_company_settings(
    data: CompanySettingsUpdate,
    user_id: CurrentUserId,
    db: AsyncSession = Depends(get_db),
    service: CompanySettingsService = Depends(get_company_settings_service),
) -> CompanySettingsRead:
    company = await service.upsert(db, user_id, data)
    await db.commit()
    return CompanySettingsRead.model_validate(company)
