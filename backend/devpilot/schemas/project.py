"""
Schemas Pydantic per Progetti e Task
Progetto: DevPilot (Gestionale Freelance)

Contiene:
- ProjectCreate / ProjectUpdate / ProjectRead / ProjectList
- TaskCreate / TaskUpdate / TaskRead / TaskMoveRequest
- KanbanBoardRead: board raggruppata per colonna
"""

import datetime
import uuid
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field

from devpilot.models.project import ProjectStatus
from devpilot.models.task import TaskStatus
from devpilot.schemas.client import ClientRead


# -------------------------------------------------------------------
# Schemas per Project
# -------------------------------------------------------------------

class ProjectBase(BaseModel):
    """Campi comuni del progetto."""

    name: str = Field(..., min_length=1, max_length=200, description="Nome del progetto")
    description: Optional[str] = Field(None, description="Descrizione")
    client_id: Optional[uuid.UUID] = Field(None, description="UUID del cliente")
    tech_stack: list[str] = Field(default_factory=list, description="Tecnologie usate")
    repo_url: Optional[str] = Field(None, max_length=500, description="URL del repository")
    status: ProjectStatus = Field(default=ProjectStatus.ACTIVE, description="Stato del progetto")


class ProjectCreate(ProjectBase):
    pass


class ProjectUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    client_id: Optional[uuid.UUID] = None
    tech_stack: Optional[list[str]] = None
    repo_url: Optional[str] = Field(None, max_length=500)
    status: Optional[ProjectStatus] = None


class ProjectRead(ProjectBase):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    tech_stack: Optional[list[str]] = None
    client: Optional[ClientRead] = None
    created_at: datetime.datetime
    updated_at: datetime.datetime


class ProjectList(BaseModel):
    """Risposta paginata della lista progetti."""

    items: list[ProjectRead] = Field(default_factory=list)
    total: int = Field(..., ge=0)
    page: int = Field(..., ge=1)
    per_page: int = Field(..., ge=1)

    @computed_field
    def total_pages(self) -> int:
        if self.per_page > 0:
            return (self.total + self.per_page - 1) // self.per_page
        return 0


# -------------------------------------------------------------------
# Schemas per Task
# -------------------------------------------------------------------

class TaskBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=300, description="Titolo del task")
    description: Optional[str] = Field(None, description="Descrizione")
    estimate_hours: Optional[Decimal] = Field(None, ge=0, description="Stima in ore")


class TaskCreate(TaskBase):
    """
    Creazione task.

    order_index non è accettato dal client: viene calcolato dal service
    come numero di task già presenti nello stesso stato.
    """
    status: TaskStatus = Field(default=TaskStatus.BACKLOG, description="Stato iniziale")


class TaskUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=300)
    description: Optional[str] = None
    estimate_hours: Optional[Decimal] = Field(None, ge=0)


class TaskMoveRequest(BaseModel):
    """
    Drag-and-drop: colonna (o stato) di destinazione.

    Con collapsed=True (board a 3 colonne) lo stato diventa quello canonico
    della colonna; con collapsed=False target_column è uno dei 5 stati e
    viene salvato invariato.
    """

    target_column: str = Field(
        ...,
        description="Colonna di destinazione (todo, in_progress, done) o stato completo",
    )
    collapsed: bool = Field(default=True, description="False per la board a 5 stati")


class TaskRead(TaskBase):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    project_id: uuid.UUID
    status: TaskStatus
    order_index: int
    created_at: datetime.datetime
    updated_at: datetime.datetime


class KanbanColumnRead(BaseModel):
    """Colonna della board."""

    id: str = Field(..., description="Identificativo colonna")
    title: str = Field(..., description="Titolo visualizzato")
    tasks: list[TaskRead] = Field(default_factory=list)


class KanbanBoardRead(BaseModel):
    """Board kanban di un progetto."""

    project_id: uuid.UUID
    collapsed: bool = Field(..., description="True per la board a 3 colonne")
    columns: list[KanbanColumnRead]
    progress: int = Field(..., ge=0, le=100, description="Percentuale task completati")
