"""
Modello SQLAlchemy per l'entità Task
Progetto: DevPilot (Gestionale Freelance)

Le attività di un progetto, mostrate sulla board kanban.
"""

from __future__ import annotations

import uuid
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import ForeignKey, Index, Integer, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from devpilot.models import Base
from devpilot.models.mixins import OwnedMixin, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from devpilot.models.project import Project


class TaskStatus(str, Enum):
    """Stati persistiti di un task (5 valori)."""
    BACKLOG = "backlog"
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    REVIEW = "review"
    DONE = "done"


class Task(Base, UUIDMixin, OwnedMixin, TimestampMixin):
    """
    Modello per i task di progetto.

    order_index è la posizione nel gruppo (progetto, stato). È solo
    indicativo: nessun vincolo di unicità a livello database.

    Attributes:
        project_id: UUID del progetto
        title: Titolo
        description: Descrizione opzionale
        status: backlog | todo | in_progress | review | done
        order_index: Posizione nel gruppo di stato
        estimate_hours: Stima in ore (opzionale)
    """

    __tablename__ = "tasks"

    project_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        doc="UUID del progetto",
    )

    title: Mapped[str] = mapped_column(String(300), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=TaskStatus.BACKLOG.value,
        doc="Stato persistito (5 valori)",
    )

    order_index: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        doc="Posizione nel gruppo (progetto, stato)",
    )

    estimate_hours: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(6, 2),
        nullable=True,
        doc="Stima in ore",
    )

    project: Mapped["Project"] = relationship(
        "Project",
        back_populates="tasks",
        lazy="noload",
    )

    __table_args__ = (
        Index("ix_tasks_project_status_order", "project_id", "status", "order_index"),
    )

    def __repr__(self) -> str:
        return f"<Task(id={self.id}, title={self.title!r}, status={self.status})>"
