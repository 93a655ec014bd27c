"""
Router FastAPI per Progetti e Task
Progetto: DevPilot (Gestionale Freelance)

Endpoint:
- CRUD progetti
- Task del progetto e board kanban
- Modifica, spostamento ed eliminazione dei singoli task (/tasks)
"""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from devpilot.core.database import get_db
from devpilot.core.deps import CurrentUserId
from devpilot.models import ProjectStatus
from devpilot.schemas.project import (
    KanbanBoardRead,
    ProjectCreate,
    ProjectList,
    ProjectRead,
    ProjectUpdate,
    TaskCreate,
    TaskMoveRequest,
    TaskRead,
    TaskUpdate,
)
from devpilot.services.project_service import ProjectService
from devpilot.services.task_service import TaskService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/projects",
    tags=["Progetti"],
)

tasks_router = APIRouter(
    prefix="/tasks",
    tags=["Task"],
)


# -------------------------------------------------------------------
# Dependency Injection
# -------------------------------------------------------------------

def get_project_service() -> ProjectService:
    return ProjectService()


def get_task_service() -> TaskService:
    return TaskService()


# -------------------------------------------------------------------
# Progetti
# -------------------------------------------------------------------

@router.get(
    "/",
    name="progetti_lista",
    summary="Lista progetti",
    response_model=ProjectList,
)
async def get_projects(
    user_id: CurrentUserId,
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100),
    project_status: Optional[ProjectStatus] = Query(None, alias="status", description="Filtro per stato"),
    client_id: Optional[uuid.UUID] = Query(None, description="Filtro per cliente"),
    db: AsyncSession = Depends(get_db),
    service: ProjectService = Depends(get_project_service),
) -> ProjectList:
    projects, total = await service.get_all(
        db=db,
        user_id=user_id,
        page=page,
        per_page=per_page,
        status=project_status,
        client_id=client_id,
    )
    return ProjectList(
        items=[ProjectRead.model_validate(p) for p in projects],
        total=total,
        page=page,
        per_page=per_page,
    )


@router.get("/{project_id}", name="progetto_dettaglio", response_model=ProjectRead)
async def get_project(
    project_id: uuid.UUID,
    user_id: CurrentUserId,
    db: AsyncSession = Depends(get_db),
    service: ProjectService = Depends(get_project_service),
) -> ProjectRead:
    project = await service.get_by_id(db=db, user_id=user_id, project_id=project_id)
    return ProjectRead.model_validate(project)


@router.post(
    "/",
    name="progetto_crea",
    summary="Crea progetto",
    response_model=ProjectRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_project(
    project_data: ProjectCreate,
    user_id: CurrentUserId,
    db: AsyncSession = Depends(get_db),
    service: ProjectService = Depends(get_project_service),
) -> ProjectRead:
    project = await service.create(db=db, user_id=user_id, project_data=project_data)
    await db.commit()
    return ProjectRead.model_validate(project)


@router.put("/{project_id}", name="progetto_aggiorna", response_model=ProjectRead)
async def update_project(
    project_id: uuid.UUID,
    project_data: ProjectUpdate,
    user_id: CurrentUserId,
    db: AsyncSession = Depends(get_db),
    service: ProjectService = Depends(get_project_service),
) -> ProjectRead:
    project = await service.update(
        db=db, user_id=user_id, project_id=project_id, project_data=project_data,
    )
    await db.commit()
    return ProjectRead.model_validate(project)


@router.delete(
    "/{project_id}",
    name="progetto_elimina",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_project(
    project_id: uuid.UUID,
    user_id: CurrentUserId,
    db: AsyncSession = Depends(get_db),
    service: ProjectService = Depends(get_project_service),
) -> None:
    await service.delete(db=db, user_id=user_id, project_id=project_id)
    await db.commit()


# -------------------------------------------------------------------
# Task del progetto
# -------------------------------------------------------------------

@router.get(
    "/{project_id}/tasks",
    name="progetto_task_lista",
    response_model=list[TaskRead],
)
async def get_project_tasks(
    project_id: uuid.UUID,
    user_id: CurrentUserId,
    db: AsyncSession = Depends(get_db),
    service: TaskService = Depends(get_task_service),
) -> list[TaskRead]:
    tasks = await service.list_by_project(db=db, user_id=user_id, project_id=project_id)
    return [TaskRead.model_validate(t) for t in tasks]


@router.post(
    "/{project_id}/tasks",
    name="progetto_task_crea",
    response_model=TaskRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_project_task(
    project_id: uuid.UUID,
    task_data: TaskCreate,
    user_id: CurrentUserId,
    db: AsyncSession = Depends(get_db),
    service: TaskService = Depends(get_task_service),
) -> TaskRead:
    task = await service.create(db=db, user_id=user_id, project_id=project_id, task_data=task_data)
    await db.commit()
    return TaskRead.model_validate(task)


@router.get(
    "/{project_id}/board",
    name="progetto_kanban",
    summary="Board kanban",
    description="Task raggruppati per colonna (3 colonne, oppure 5 stati con collapsed=false).",
    response_model=KanbanBoardRead,
)
async def get_project_board(
    project_id: uuid.UUID,
    user_id: CurrentUserId,
    collapsed: bool = Query(True, description="Board compatta a 3 colonne"),
    db: AsyncSession = Depends(get_db),
    service: TaskService = Depends(get_task_service),
) -> KanbanBoardRead:
    board = await service.get_board(db=db, user_id=user_id, project_id=project_id, collapsed=collapsed)
    return KanbanBoardRead.model_validate(
        {
            **board,
            "columns": [
                {**column, "tasks": [TaskRead.model_validate(t) for t in column["tasks"]]}
                for column in board["columns"]
            ],
        }
    )


# -------------------------------------------------------------------
# Singoli task
# -------------------------------------------------------------------

@tasks_router.put("/{task_id}", name="task_aggiorna", response_model=TaskRead)
async def update_task(
    task_id: uuid.UUID,
    task_data: TaskUpdate,
    user_id: CurrentUserId,
    db: AsyncSession = Depends(get_db),
    service: TaskService = Depends(get_task_service),
) -> TaskRead:
    task = await service.update(db=db, user_id=user_id, task_id=task_id, task_data=task_data)
    await db.commit()
    return TaskRead.model_validate(task)


@tasks_router.post(
    "/{task_id}/move",
    name="task_sposta",
    summary="Sposta task",
    description=(
        "Sposta il task in un'altra colonna della board: con la board compatta lo stato "
        "diventa quello canonico della colonna, con quella a 5 stati resta quello scelto."
    ),
    response_model=TaskRead,
)
async def move_task(
    task_id: uuid.UUID,
    move_data: TaskMoveRequest,
    user_id: CurrentUserId,
    db: AsyncSession = Depends(get_db),
    service: TaskService = Depends(get_task_service),
) -> TaskRead:
    task = await service.move_task(
        db=db, user_id=user_id, task_id=task_id,
        target_column=move_data.target_column, collapsed=move_data.collapsed,
    )
    await db.commit()
    return TaskRead.model_validate(task)


@tasks_router.delete(
    "/{task_id}",
    name="task_elimina",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_task(
    task_id: uuid.UUID,
    user_id: CurrentUserId,
    db: AsyncSession = Depends(get_db),
    service: TaskService = Depends(get_task_service),
) -> None:
    await service.delete(db=db, user_id=user_id, task_id=task_id)
    await db.commit()
