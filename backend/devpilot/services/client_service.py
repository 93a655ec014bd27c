"""
Service Layer per l'entità Client
Progetto: DevPilot (Gestionale Freelance)

Definisce la logica di business per la gestione dei clienti.
Ogni operazione è limitata ai record dell'utente corrente (user_id).
"""

import logging
import uuid
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from devpilot.core.exceptions import ConflictError, NotFoundError
from devpilot.models import Client
from devpilot.schemas.client import ClientCreate, ClientUpdate

# Logger per questo modulo
logger = logging.getLogger(__name__)


class ClientService:
    """
    Service per la gestione delle operazioni CRUD sui clienti.

    Fornisce metodi asincroni per interagire con il database
    in modo centralizzato, senza dipendenze da FastAPI.
    Il commit è responsabilità del chiamante (router).
    """

    async def get_all(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        page: int = 1,
        per_page: int = 10,
        search: Optional[str] = None,
    ) -> tuple[list[Client], int]:
        """
        Recupera la lista paginata dei clienti dell'utente.

        Args:
            db: Sessione database
            user_id: Proprietario dei dati
            page: Numero pagina (default 1)
            per_page: Elementi per pagina (default 10)
            search: Termine di ricerca opzionale su nome ed email

        Returns:
            Tuple di (lista clienti, totale count)
        """
        conditions = [Client.user_id == user_id]

        if search:
            search_term = f"%{search}%"
            conditions.append(
                or_(
                    Client.name.ilike(search_term),
                    Client.email.ilike(search_term),
                )
            )

        offset = (page - 1) * per_page
        query = (
            select(Client)
            .where(*conditions)
            .order_by(Client.name.asc())
            .offset(offset)
            .limit(per_page)
        )
        result = await db.execute(query)
        clients = list(result.scalars().all())

        count_query = select(func.count()).select_from(Client).where(*conditions)
        count_result = await db.execute(count_query)
        total = count_result.scalar() or 0

        logger.info(
            "Recuperati %s clienti su %s totali (pagina %s)",
            len(clients), total, page,
        )
        return clients, total

    async def get_by_id(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        client_id: uuid.UUID,
    ) -> Client:
        """
        Recupera un cliente tramite ID.

        Raises:
            NotFoundError: Se il cliente non esiste o appartiene a un altro utente
        """
        result = await db.execute(
            select(Client).where(Client.id == client_id, Client.user_id == user_id)
        )
        client = result.scalar_one_or_none()

        if client is None:
            logger.warning("Cliente non trovato: %s", client_id)
            raise NotFoundError(f"Cliente con ID {client_id} non trovato")
        return client

    async def create(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        client_data: ClientCreate,
    ) -> Client:
        """
        Crea un nuovo cliente.

        Raises:
            ConflictError: Se il database genera un errore imprevisto
        """
        client = Client(user_id=user_id, **client_data.model_dump())

        try:
            db.add(client)
            await db.flush()
            await db.refresh(client)
        except SQLAlchemyError as e:
            logger.error("Errore SQLAlchemy creazione cliente: %s - %s", e.__class__.__name__, e)
            await db.rollback()
            raise ConflictError("Errore del database durante la creazione del cliente")

        logger.info("Creato nuovo cliente: %s - %s", client.id, client.name)
        return client

    async def update(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        client_id: uuid.UUID,
        client_data: ClientUpdate,
    ) -> Client:
        """
        Aggiorna un cliente esistente (solo i campi inviati).

        Raises:
            NotFoundError: Se il cliente non esiste
            ConflictError: Se il database genera un errore imprevisto
        """
        client = await self.get_by_id(db, user_id, client_id)

        update_data = client_data.model_dump(exclude_unset=True)
        for field, value in update_data.items():
            setattr(client, field, value)

        try:
            await db.flush()
            await db.refresh(client)
        except SQLAlchemyError as e:
            logger.error("Errore SQLAlchemy aggiornamento cliente: %s - %s", e.__class__.__name__, e)
            await db.rollback()
            raise ConflictError("Errore del database durante l'aggiornamento del cliente")

        logger.info("Aggiornato cliente: %s - %s", client.id, client.name)
        return client

    async def delete(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        client_id: uuid.UUID,
    ) -> None:
        """
        Elimina un cliente.

        Progetti e fatture collegati restano, con client_id azzerato.

        Raises:
            NotFoundError: Se il cliente non esiste
            ConflictError: Se il database genera un errore imprevisto
        """
        client = await self.get_by_id(db, user_id, client_id)

        try:
            await db.delete(client)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Errore SQLAlchemy eliminazione cliente: %s - %s", e.__class__.__name__, e)
            await db.rollback()
            raise ConflictError("Errore del database durante l'eliminazione del cliente")

        logger.info("Eliminato cliente: %s - %s", client_id, client.name)
