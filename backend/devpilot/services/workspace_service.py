"""
Service per lo spazio di lavoro del progetto
Progetto: DevPilot (Gestionale Freelance)

Note, risorse e chat di un progetto. Ogni operazione verifica prima
che il progetto appartenga all'utente.
"""

import logging
import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from devpilot.core.exceptions import NotFoundError
from devpilot.models import Project, ProjectChatMessage, ProjectNote, ProjectResource
from devpilot.schemas.project_workspace import (
    ChatMessageCreate,
    NoteCreate,
    NoteUpdate,
    ResourceCreate,
)

logger = logging.getLogger(__name__)


class WorkspaceService:

    async def _ensure_project(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        project_id: uuid.UUID,
    ) -> None:
        result = await db.execute(
            select(Project.id).where(Project.id == project_id, Project.user_id == user_id)
        )
        if result.scalar_one_or_none() is None:
            raise NotFoundError(f"Progetto con ID {project_id} non trovato")

    # ------------------------------------------------------------
    # Note
    # ------------------------------------------------------------

    async def list_notes(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        project_id: uuid.UUID,
        task_id: Optional[uuid.UUID] = None,
    ) -> list[ProjectNote]:
        """Note del progetto, aggiornate più di recente per prime."""
        await self._ensure_project(db, user_id, project_id)
        query = select(ProjectNote).where(
            ProjectNote.project_id == project_id,
            ProjectNote.user_id == user_id,
        )
        if task_id is not None:
            query = query.where(ProjectNote.task_id == task_id)
        result = await db.execute(query.order_by(ProjectNote.updated_at.desc()))
        return list(result.scalars().all())

    async def list_tags(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        project_id: uuid.UUID,
    ) -> list[str]:
        """Etichette usate nelle note del progetto, in ordine alfabetico."""
        notes = await self.list_notes(db, user_id, project_id)
        return sorted({tag for note in notes for tag in (note.tags or [])})

    async def _get_note(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        note_id: uuid.UUID,
    ) -> ProjectNote:
        result = await db.execute(
            select(ProjectNote).where(ProjectNote.id == note_id, ProjectNote.user_id == user_id)
        )
        note = result.scalar_one_or_none()
        if note is None:
            raise NotFoundError(f"Nota con ID {note_id} non trovata")
        return note

    async def create_note(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        project_id: uuid.UUID,
        data: NoteCreate,
    ) -> ProjectNote:
        await self._ensure_project(db, user_id, project_id)
        note = ProjectNote(user_id=user_id, project_id=project_id, **data.model_dump())
        db.add(note)
        await db.flush()
        await db.refresh(note)
        logger.info("Creata nota %s nel progetto %s", note.id, project_id)
        return note

    async def update_note(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        note_id: uuid.UUID,
        data: NoteUpdate,
    ) -> ProjectNote:
        note = await self._get_note(db, user_id, note_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(note, field, value)
        await db.flush()
        await db.refresh(note)
        return note

    async def delete_note(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        note_id: uuid.UUID,
    ) -> None:
        note = await self._get_note(db, user_id, note_id)
        await db.delete(note)
        await db.flush()
        logger.info("Eliminata nota %s", note_id)

    # ------------------------------------------------------------
    # Risorse (solo metadati)
    # ------------------------------------------------------------

    async def list_resources(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        project_id: uuid.UUID,
        task_id: Optional[uuid.UUID] = None,
    ) -> list[ProjectResource]:
        """Risorse del progetto, più recenti per prime."""
        await self._ensure_project(db, user_id, project_id)
        query = select(ProjectResource).where(
            ProjectResource.project_id == project_id,
            ProjectResource.user_id == user_id,
        )
        if task_id is not None:
            query = query.where(ProjectResource.task_id == task_id)
        result = await db.execute(query.order_by(ProjectResource.created_at.desc()))
        return list(result.scalars().all())

    async def create_resource(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        project_id: uuid.UUID,
        data: ResourceCreate,
    ) -> ProjectResource:
        await self._ensure_project(db, user_id, project_id)
        resource = ProjectResource(user_id=user_id, project_id=project_id, **data.model_dump())
        db.add(resource)
        await db.flush()
        await db.refresh(resource)
        logger.info("Registrata risorsa %s (%s) nel progetto %s", resource.id, resource.name, project_id)
        return resource

    async def delete_resource(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        resource_id: uuid.UUID,
    ) -> None:
        """Elimina i metadati; il file sullo storage esterno non viene toccato."""
        result = await db.execute(
            select(ProjectResource).where(
                ProjectResource.id == resource_id,
                ProjectResource.user_id == user_id,
            )
        )
        resource = result.scalar_one_or_none()
        if resource is None:
            raise NotFoundError(f"Risorsa con ID {resource_id} non trovata")
        await db.delete(resource)
        await db.flush()
        logger.info("Eliminata risorsa %s", resource_id)

    # ------------------------------------------------------------
    # Chat
    # ------------------------------------------------------------

    async def list_messages(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        project_id: uuid.UUID,
    ) -> list[ProjectChatMessage]:
        """Messaggi del progetto dal più vecchio."""
        await self._ensure_project(db, user_id, project_id)
        result = await db.execute(
            select(ProjectChatMessage)
            .where(ProjectChatMessage.project_id == project_id)
            .order_by(ProjectChatMessage.created_at.asc())
        )
        return list(result.scalars().all())

    async def post_message(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        project_id: uuid.UUID,
        data: ChatMessageCreate,
    ) -> ProjectChatMessage:
        await self._ensure_project(db, user_id, project_id)
        message = ProjectChatMessage(user_id=user_id, project_id=project_id, **data.model_dump())
        db.add(message)
        await db.flush()
        await db.refresh(message)
        return message
