"""
Router FastAPI per l'entità Client
Progetto: DevPilot (Gestionale Freelance)

Definisce gli endpoint API per la gestione dei clienti.
"""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from devpilot.core.database import get_db
from devpilot.core.deps import CurrentUserId
from devpilot.schemas.client import (
    ClientCreate,
    ClientList,
    ClientRead,
    ClientUpdate,
)
from devpilot.services.client_service import ClientService

# Logger per questo modulo
logger = logging.getLogger(__name__)

# Router con prefix e tag
router = APIRouter(
    prefix="/clients",
    tags=["Clienti"],
)


# -------------------------------------------------------------------
# Dependency Injection
# -------------------------------------------------------------------

def get_client_service() -> ClientService:
    """
    Dependency per ottenere un'istanza del ClientService.

    Questo permette di iniettare il service nei router senza
    usare istanze globali, facilitando i test e la manutenzione.
    """
    return ClientService()


# -------------------------------------------------------------------
# Endpoints
# -------------------------------------------------------------------

@router.get(
    "/",
    name="clienti_lista",
    summary="Lista clienti",
    description="Recupera la lista paginata dei clienti con eventuale filtro di ricerca.",
    response_model=ClientList,
    status_code=status.HTTP_200_OK,
)
async def get_clients(
    user_id: CurrentUserId,
    page: int = Query(1, ge=1, description="Numero pagina"),
    per_page: int = Query(10, ge=1, le=100, description="Elementi per pagina"),
    search: Optional[str] = Query(None, description="Termine di ricerca su nome ed email"),
    db: AsyncSession = Depends(get_db),
    service: ClientService = Depends(get_client_service),
) -> ClientList:
    """
    Recupera la lista paginata dei clienti dell'utente.

    Args:
        page: Numero pagina (default 1)
        per_page: Elementi per pagina (default 10, max 100)
        search: Termine di ricerca opzionale su nome ed email

    Returns:
        ClientList: Lista paginata con metadati
    """
    clients, total = await service.get_all(
        db=db,
        user_id=user_id,
        page=page,
        per_page=per_page,
        search=search,
    )

    return ClientList(
        items=[ClientRead.model_validate(c) for c in clients],
        total=total,
        page=page,
        per_page=per_page,
    )


@router.get(
    "/{client_id}",
    name="cliente_dettaglio",
    summary="Dettaglio cliente",
    response_model=ClientRead,
    status_code=status.HTTP_200_OK,
)
async def get_client(
    client_id: uuid.UUID,
    user_id: CurrentUserId,
    db: AsyncSession = Depends(get_db),
    service: ClientService = Depends(get_client_service),
) -> ClientRead:
    client = await service.get_by_id(db=db, user_id=user_id, client_id=client_id)
    return ClientRead.model_validate(client)


@router.post(
    "/",
    name="cliente_crea",
    summary="Crea cliente",
    response_model=ClientRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_client(
    client_data: ClientCreate,
    user_id: CurrentUserId,
    db: AsyncSession = Depends(get_db),
    service: ClientService = Depends(get_client_service),
) -> ClientRead:
    client = await service.create(db=db, user_id=user_id, client_data=client_data)
    await db.commit()
    return ClientRead.model_validate(client)


@router.put(
    "/{client_id}",
    name="cliente_aggiorna",
    summary="Aggiorna cliente",
    response_model=ClientRead,
    status_code=status.HTTP_200_OK,
)
async def update_client(
    client_id: uuid.UUID,
    client_data: ClientUpdate,
    user_id: CurrentUserId,
    db: AsyncSession = Depends(get_db),
    service: ClientService = Depends(get_client_service),
) -> ClientRead:
    """
    Aggiorna un cliente esistente.

    Raises:
        NotFoundError: Se il cliente non esiste
    """
    client = await service.update(
        db=db,
        user_id=user_id,
        client_id=client_id,
        client_data=client_data,
    )
    await db.commit()
    return ClientRead.model_validate(client)


@router.delete(
    "/{client_id}",
    name="cliente_elimina",
    summary="Elimina cliente",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_client(
    client_id: uuid.UUID,
    user_id: CurrentUserId,
    db: AsyncSession = Depends(get_db),
    service: ClientService = Depends(get_client_service),
) -> None:
    await service.delete(db=db, user_id=user_id, client_id=client_id)
    await db.commit()
