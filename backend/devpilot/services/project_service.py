"""
Service Layer per l'entità Project
Progetto: DevPilot (Gestionale Freelance)
"""

import logging
import uuid
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from devpilot.core.exceptions import BusinessValidationError, ConflictError, NotFoundError
from devpilot.models import Client, Project, ProjectStatus
from devpilot.schemas.project import ProjectCreate, ProjectUpdate

logger = logging.getLogger(__name__)


class ProjectService:
    """Operazioni CRUD sui progetti dell'utente."""

    async def get_all(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        page: int = 1,
        per_page: int = 10,
        status: Optional[ProjectStatus] = None,
        client_id: Optional[uuid.UUID] = None,
    ) -> tuple[list[Project], int]:
        """
        Recupera la lista paginata dei progetti, più recenti per primi.

        Args:
            db: Sessione database
            user_id: Proprietario dei dati
            page: Numero pagina
            per_page: Elementi per pagina
            status: Filtro opzionale per stato
            client_id: Filtro opzionale per cliente

        Returns:
            Tuple di (lista progetti, totale count)
        """
        conditions = [Project.user_id == user_id]
        if status is not None:
            conditions.append(Project.status == ProjectStatus(status).value)
        if client_id is not None:
            conditions.append(Project.client_id == client_id)

        query = (
            select(Project)
            .where(*conditions)
            .order_by(Project.created_at.desc())
            .offset((page - 1) * per_page)
            .limit(per_page)
        )
        result = await db.execute(query)
        projects = list(result.scalars().all())

        count_result = await db.execute(
            select(func.count()).select_from(Project).where(*conditions)
        )
        total = count_result.scalar() or 0

        logger.info("Recuperati %s progetti su %s totali (pagina %s)", len(projects), total, page)
        return projects, total

    async def get_by_id(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        project_id: uuid.UUID,
    ) -> Project:
        """
        Raises:
            NotFoundError: Se il progetto non esiste o appartiene a un altro utente
        """
        result = await db.execute(
            select(Project).where(Project.id == project_id, Project.user_id == user_id)
        )
        project = result.scalar_one_or_none()
        if project is None:
            logger.warning("Progetto non trovato: %s", project_id)
            raise NotFoundError(f"Progetto con ID {project_id} non trovato")
        return project

    async def _ensure_client(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        client_id: Optional[uuid.UUID],
    ) -> None:
        """Il cliente indicato deve appartenere all'utente."""
        if client_id is None:
            return
        result = await db.execute(
            select(Client.id).where(Client.id == client_id, Client.user_id == user_id)
        )
        if result.scalar_one_or_none() is None:
            raise BusinessValidationError(f"Cliente con ID {client_id} non trovato")

    async def create(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        project_data: ProjectCreate,
    ) -> Project:
        """
        Crea un nuovo progetto.

        Raises:
            BusinessValidationError: Se il cliente non appartiene all'utente
            ConflictError: Se il database genera un errore imprevisto
        """
        await self._ensure_client(db, user_id, project_data.client_id)

        data = project_data.model_dump()
        data["status"] = ProjectStatus(data["status"]).value
        project = Project(user_id=user_id, **data)

        try:
            db.add(project)
            await db.flush()
            await db.refresh(project)
        except SQLAlchemyError as e:
            logger.error("Errore SQLAlchemy creazione progetto: %s - %s", e.__class__.__name__, e)
            await db.rollback()
            raise ConflictError("Errore del database durante la creazione del progetto")

        logger.info("Creato progetto: %s - %s", project.id, project.name)
        return project

    async def update(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        project_id: uuid.UUID,
        project_data: ProjectUpdate,
    ) -> Project:
        project = await self.get_by_id(db, user_id, project_id)

        update_data = project_data.model_dump(exclude_unset=True)
        if "client_id" in update_data:
            await self._ensure_client(db, user_id, update_data["client_id"])
        if update_data.get("status") is not None:
            update_data["status"] = ProjectStatus(update_data["status"]).value

        for field, value in update_data.items():
            setattr(project, field, value)

        try:
            await db.flush()
            await db.refresh(project)
        except SQLAlchemyError as e:
            logger.error("Errore SQLAlchemy aggiornamento progetto: %s - %s", e.__class__.__name__, e)
            await db.rollback()
            raise ConflictError("Errore del database durante l'aggiornamento del progetto")

        logger.info("Aggiornato progetto: %s", project.id)
        return project

    async def delete(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        project_id: uuid.UUID,
    ) -> None:
        """Elimina il progetto; task, note, risorse e chat sono eliminati in cascata."""
        project = await self.get_by_id(db, user_id, project_id)

        try:
            await db.delete(project)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Errore SQLAlchemy eliminazione progetto: %s - %s", e.__class__.__name__, e)
            await db.rollback()
            raise ConflictError("Errore del database durante l'eliminazione del progetto")

        logger.info("Eliminato progetto: %s", project_id)
