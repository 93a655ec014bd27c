"""
Modelli SQLAlchemy per lo spazio di lavoro del progetto
Progetto: DevPilot (Gestionale Freelance)

Contiene:
- ProjectNote: Note testuali con tag
- ProjectResource: Metadati dei file caricati (i byte stanno nello storage esterno)
- ProjectChatMessage: Messaggi della chat di progetto
"""

from __future__ import annotations

import datetime
import uuid
from typing import Optional

from sqlalchemy import BigInteger, DateTime, ForeignKey, Index, JSON, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from devpilot.models import Base
from devpilot.models.mixins import OwnedMixin, TimestampMixin, UUIDMixin


class ProjectNote(Base, UUIDMixin, OwnedMixin, TimestampMixin):
    """Nota di progetto, opzionalmente collegata a un task o a una risorsa."""

    __tablename__ = "project_notes"

    project_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    content: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    tags: Mapped[Optional[list[str]]] = mapped_column(JSON, nullable=True)
    task_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("tasks.id", ondelete="SET NULL"),
        nullable=True,
    )
    resource_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("project_resources.id", ondelete="SET NULL"),
        nullable=True,
    )

    __table_args__ = (
        Index("ix_project_notes_project_updated", "project_id", "updated_at"),
    )


class ProjectResource(Base, UUIDMixin, OwnedMixin, TimestampMixin):
    """Risorsa (file) di progetto: solo metadati."""

    __tablename__ = "project_resources"

    project_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(300), nullable=False)
    file_type: Mapped[str] = mapped_column(String(100), nullable=False)
    file_size: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    file_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    storage_path: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    task_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("tasks.id", ondelete="SET NULL"),
        nullable=True,
    )

    __table_args__ = (
        Index("ix_project_resources_project_created", "project_id", "created_at"),
    )


class ProjectChatMessage(Base, UUIDMixin, OwnedMixin):
    """
    Messaggio della chat di progetto.

    I messaggi sono immutabili: nessun updated_at.
    """

    __tablename__ = "project_chat_messages"

    project_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
    )
    message: Mapped[str] = mapped_column(Text, nullable=False)
    resource_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("project_resources.id", ondelete="SET NULL"),
        nullable=True,
    )
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (
        Index("ix_project_chat_project_created", "project_id", "created_at"),
    )
