"""
Modello SQLAlchemy per l'entità Project
Progetto: DevPilot (Gestionale Freelance)
"""

from __future__ import annotations

import uuid
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import ForeignKey, Index, JSON, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from devpilot.models import Base
from devpilot.models.mixins import OwnedMixin, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from devpilot.models.client import Client
    from devpilot.models.task import Task


class ProjectStatus(str, Enum):
    """Stati di un progetto."""
    ACTIVE = "active"
    ARCHIVED = "archived"
    COMPLETED = "completed"


class Project(Base, UUIDMixin, OwnedMixin, TimestampMixin):
    """
    Modello per i progetti.

    Un progetto appartiene al più a un cliente e raccoglie task,
    note, risorse e messaggi di chat.

    Attributes:
        client_id: UUID del cliente (opzionale)
        name: Nome del progetto
        description: Descrizione libera
        tech_stack: Lista di tecnologie usate
        repo_url: URL del repository
        status: active | archived | completed
    """

    __tablename__ = "projects"

    client_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("clients.id", ondelete="SET NULL"),
        nullable=True,
        doc="UUID del cliente associato",
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    tech_stack: Mapped[Optional[list[str]]] = mapped_column(JSON, nullable=True)
    repo_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ProjectStatus.ACTIVE.value,
        doc="Stato del progetto",
    )

    client: Mapped[Optional["Client"]] = relationship(
        "Client",
        back_populates="projects",
        lazy="selectin",
    )

    tasks: Mapped[List["Task"]] = relationship(
        "Task",
        back_populates="project",
        cascade="all, delete-orphan",
        lazy="noload",
    )

    __table_args__ = (
        Index("ix_projects_user_status", "user_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<Project(id={self.id}, name={self.name!r}, status={self.status})>"
