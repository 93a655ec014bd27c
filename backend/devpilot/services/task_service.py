"""
Service Layer per i Task di progetto
Progetto: DevPilot (Gestionale Freelance)

Gestisce CRUD dei task, board kanban e spostamento tra colonne.

Politica di ordinamento (unica per creazione e spostamento):
order_index = numero degli altri task del progetto già presenti nello
stato di destinazione, cioè il task finisce in coda alla colonna.
"""

import logging
import uuid
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from devpilot.core.exceptions import ConflictError, NotFoundError
from devpilot.models import Project, Task, TaskStatus
from devpilot.schemas.project import TaskCreate, TaskUpdate
from devpilot.services.kanban import (
    COLUMN_TITLES,
    FULL_BOARD_TITLES,
    KanbanColumn,
    TaskMove,
    calculate_progress,
    canonical_status,
    group_tasks_by_column,
    parse_task_status,
)

logger = logging.getLogger(__name__)


class TaskService:
    """Operazioni sui task, sempre filtrate per utente proprietario."""

    # ------------------------------------------------------------
    # Helper
    # ------------------------------------------------------------

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

    async def _next_order_index(
        self,
        db: AsyncSession,
        project_id: uuid.UUID,
        status: TaskStatus,
        exclude_task_id: uuid.UUID | None = None,
    ) -> int:
        """Numero di task (escluso quello in movimento) già nello stato."""
        query = select(func.count()).select_from(Task).where(
            Task.project_id == project_id,
            Task.status == status.value,
        )
        if exclude_task_id is not None:
            query = query.where(Task.id != exclude_task_id)
        result = await db.execute(query)
        return result.scalar() or 0

    # ------------------------------------------------------------
    # Lettura
    # ------------------------------------------------------------

    async def list_by_project(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        project_id: uuid.UUID,
    ) -> list[Task]:
        """Task del progetto ordinati per stato e posizione."""
        await self._ensure_project(db, user_id, project_id)
        result = await db.execute(
            select(Task)
            .where(Task.project_id == project_id, Task.user_id == user_id)
            .order_by(Task.status, Task.order_index, Task.created_at)
        )
        return list(result.scalars().all())

    async def get_by_id(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        task_id: uuid.UUID,
    ) -> Task:
        result = await db.execute(
            select(Task).where(Task.id == task_id, Task.user_id == user_id)
        )
        task = result.scalar_one_or_none()
        if task is None:
            logger.warning("Task non trovato: %s", task_id)
            raise NotFoundError(f"Task con ID {task_id} non trovato")
        return task

    async def get_board(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        project_id: uuid.UUID,
        collapsed: bool = True,
    ) -> dict[str, Any]:
        """
        Board kanban del progetto.

        Args:
            collapsed: True per la board a 3 colonne, False per quella a 5 stati

        Returns:
            dict compatibile con KanbanBoardRead
        """
        tasks = await self.list_by_project(db, user_id, project_id)
        grouped = group_tasks_by_column(tasks, collapsed=collapsed)

        if collapsed:
            titles = {column.value: title for column, title in COLUMN_TITLES.items()}
        else:
            titles = {status.value: title for status, title in FULL_BOARD_TITLES.items()}

        return {
            "project_id": project_id,
            "collapsed": collapsed,
            "columns": [
                {"id": key, "title": titles[key], "tasks": column_tasks}
                for key, column_tasks in grouped.items()
            ],
            "progress": calculate_progress(tasks),
        }

    # ------------------------------------------------------------
    # Scrittura
    # ------------------------------------------------------------

    async def create(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        project_id: uuid.UUID,
        task_data: TaskCreate,
    ) -> Task:
        """
        Crea un task in coda allo stato indicato.

        Raises:
            NotFoundError: Se il progetto non appartiene all'utente
            ConflictError: Se il database genera un errore imprevisto
        """
        await self._ensure_project(db, user_id, project_id)

        status = TaskStatus(task_data.status)
        order_index = await self._next_order_index(db, project_id, status)

        task = Task(
            user_id=user_id,
            project_id=project_id,
            title=task_data.title,
            description=task_data.description,
            estimate_hours=task_data.estimate_hours,
            status=status.value,
            order_index=order_index,
        )

        try:
            db.add(task)
            await db.flush()
            await db.refresh(task)
        except SQLAlchemyError as e:
            logger.error("Errore SQLAlchemy creazione task: %s - %s", e.__class__.__name__, e)
            await db.rollback()
            raise ConflictError("Errore del database durante la creazione del task")

        logger.info("Creato task %s in %s (posizione %s)", task.id, status.value, order_index)
        return task

    async def update(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        task_id: uuid.UUID,
        task_data: TaskUpdate,
    ) -> Task:
        """Aggiorna titolo, descrizione e stima. Lo stato si cambia con move_task."""
        task = await self.get_by_id(db, user_id, task_id)

        for field, value in task_data.model_dump(exclude_unset=True).items():
            setattr(task, field, value)

        try:
            await db.flush()
            await db.refresh(task)
        except SQLAlchemyError as e:
            logger.error("Errore SQLAlchemy aggiornamento task: %s - %s", e.__class__.__name__, e)
            await db.rollback()
            raise ConflictError("Errore del database durante l'aggiornamento del task")

        return task

    async def delete(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        task_id: uuid.UUID,
    ) -> None:
        task = await self.get_by_id(db, user_id, task_id)
        try:
            await db.delete(task)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Errore SQLAlchemy eliminazione task: %s - %s", e.__class__.__name__, e)
            await db.rollback()
            raise ConflictError("Errore del database durante l'eliminazione del task")
        logger.info("Eliminato task: %s", task_id)

    async def move_task(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        task_id: uuid.UUID,
        target_column: str | KanbanColumn | TaskStatus,
        collapsed: bool = True,
    ) -> Task:
        """
        Sposta un task nella colonna indicata.

        Sulla board compatta lo stato viene sovrascritto con quello canonico
        della colonna (review → in_progress, backlog → todo); sulla board a
        5 stati (collapsed=False) lo stato scelto viene salvato invariato.
        Se la scrittura fallisce il task torna a stato e posizione precedenti
        e l'errore viene propagato come ConflictError.

        Raises:
            BusinessValidationError: Se la colonna non è valida
            NotFoundError: Se il task non esiste
            ConflictError: Se il database rifiuta la scrittura
        """
        if collapsed:
            target_status = canonical_status(target_column)
        else:
            target_status = parse_task_status(target_column)
        task = await self.get_by_id(db, user_id, task_id)

        target_order = await self._next_order_index(
            db, task.project_id, target_status, exclude_task_id=task.id,
        )
        move = TaskMove(task=task, target_status=target_status, target_order_index=target_order)
        if move.is_noop:
            move.commit()
            return task

        move.apply()
        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Errore SQLAlchemy spostamento task: %s - %s", e.__class__.__name__, e)
            await db.rollback()
            move.revert(e)
            raise ConflictError("Impossibile spostare il task: modifica annullata")

        move.commit()
        logger.info(
            "Task %s spostato: %s → %s (posizione %s)",
            task.id, move.previous_status, target_status.value, target_order,
        )
        return task
