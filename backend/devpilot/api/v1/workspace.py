"""
Router FastAPI per lo spazio di lavoro del progetto
Progetto: DevPilot (Gestionale Freelance)

Endpoint per note, risorse (metadati) e chat di progetto.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from devpilot.core.database import get_db
from devpilot.core.deps import CurrentUserId
from devpilot.schemas.project_workspace import (
    ChatMessageCreate,
    ChatMessageRead,
    NoteCreate,
    NoteRead,
    NoteUpdate,
    ResourceCreate,
    ResourceRead,
)
from devpilot.services.workspace_service import WorkspaceService

router = APIRouter(tags=["Spazio di lavoro"])


def get_workspace_service() -> WorkspaceService:
    return WorkspaceService()


# -------------------------------------------------------------------
# Note
# -------------------------------------------------------------------

@router.get("/projects/{project_id}/notes", name="note_lista", response_model=list[NoteRead])
async def get_notes(
    project_id: uuid.UUID,
    user_id: CurrentUserId,
    task_id: Optional[uuid.UUID] = Query(None, description="Solo le note del task"),
    db: AsyncSession = Depends(get_db),
    service: WorkspaceService = Depends(get_workspace_service),
) -> list[NoteRead]:
    notes = await service.list_notes(db, user_id, project_id, task_id=task_id)
    return [NoteRead.model_validate(n) for n in notes]


@router.get("/projects/{project_id}/notes/tags", name="note_tag", response_model=list[str])
async def get_note_tags(
    project_id: uuid.UUID,
    user_id: CurrentUserId,
    db: AsyncSession = Depends(get_db),
    service: WorkspaceService = Depends(get_workspace_service),
) -> list[str]:
    return await service.list_tags(db, user_id, project_id)


@router.post(
    "/projects/{project_id}/notes",
    name="nota_crea",
    response_model=NoteRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_note(
    project_id: uuid.UUID,
    data: NoteCreate,
    user_id: CurrentUserId,
    db: AsyncSession = Depends(get_db),
    service: WorkspaceService = Depends(get_workspace_service),
) -> NoteRead:
    note = await service.create_note(db, user_id, project_id, data)
    await db.commit()
    return NoteRead.model_validate(note)


@router.put("/notes/{note_id}", name="nota_aggiorna", response_model=NoteRead)
async def update_note(
    note_id: uuid.UUID,
    data: NoteUpdate,
    user_id: CurrentUserId,
    db: AsyncSession = Depends(get_db),
    service: WorkspaceService = Depends(get_workspace_service),
) -> NoteRead:
    note = await service.update_note(db, user_id, note_id, data)
    await db.commit()
    return NoteRead.model_validate(note)


@router.delete("/notes/{note_id}", name="nota_elimina", status_code=status.HTTP_204_NO_CONTENT)
async def delete_note(
    note_id: uuid.UUID,
    user_id: CurrentUserId,
    db: AsyncSession = Depends(get_db),
    service: WorkspaceService = Depends(get_workspace_service),
) -> None:
    await service.delete_note(db, user_id, note_id)
    await db.commit()


# -------------------------------------------------------------------
# Risorse
# -------------------------------------------------------------------

@router.get("/projects/{project_id}/resources", name="risorse_lista", response_model=list[ResourceRead])
async def get_resources(
    project_id: uuid.UUID,
    user_id: CurrentUserId,
    task_id: Optional[uuid.UUID] = Query(None),
    db: AsyncSession = Depends(get_db),
    service: WorkspaceService = Depends(get_workspace_service),
) -> list[ResourceRead]:
    resources = await service.list_resources(db, user_id, project_id, task_id=task_id)
    return [ResourceRead.model_validate(r) for r in resources]


@router.post(
    "/projects/{project_id}/resources",
    name="risorsa_registra",
    summary="Registra risorsa",
    description="Salva i metadati di un file già caricato sullo storage esterno.",
    response_model=ResourceRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_resource(
    project_id: uuid.UUID,
    data: ResourceCreate,
    user_id: CurrentUserId,
    db: AsyncSession = Depends(get_db),
    service: WorkspaceService = Depends(get_workspace_service),
) -> ResourceRead:
    resource = await service.create_resource(db, user_id, project_id, data)
    await db.commit()
    return ResourceRead.model_validate(resource)


@router.delete("/resources/{resource_id}", name="risorsa_elimina", status_code=status.HTTP_204_NO_CONTENT)
async def delete_resource(
    resource_id: uuid.UUID,
    user_id: CurrentUserId,
    db: AsyncSession = Depends(get_db),
    service: WorkspaceService = Depends(get_workspace_service),
) -> None:
    await service.delete_resource(db, user_id, resource_id)
    await db.commit()


# -------------------------------------------------------------------
# Chat
# -------------------------------------------------------------------

@router.get("/projects/{project_id}/chat", name="chat_lista", response_model=list[ChatMessageRead])
async def get_chat_messages(
    project_id: uuid.UUID,
    user_id: CurrentUserId,
    db: AsyncSession = Depends(get_db),
    service: WorkspaceService = Depends(get_workspace_service),
) -> list[ChatMessageRead]:
    messages = await service.list_messages(db, user_id, project_id)
    return [ChatMessageRead.model_validate(m) for m in messages]


@router.post(
    "/projects/{project_id}/chat",
    name="chat_invia",
    response_model=ChatMessageRead,
    status_code=status.HTTP_201_CREATED,
)
async def post_chat_message(
    project_id: uuid.UUID,
    data: ChatMessageCreate,
    user_id: CurrentUserId,
    db: AsyncSession = Depends(get_db),
    service: WorkspaceService = Depends(get_workspace_service),
) -> ChatMessageRead:
    message = await service.post_message(db, user_id, project_id, data)
    await db.commit()
    return ChatMessageRead.model_validate(message)
