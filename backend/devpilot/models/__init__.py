"""
Modelli Database SQLAlchemy
Progetto: DevPilot (Gestionale Freelance)

Import centralizzato di tutti i modelli per create_all e usage generico.

Modelli:
- Client: Anagrafica clienti
- Project: Progetti (opzionalmente legati a un cliente)
- Task: Attività del progetto (kanban)
- Invoice / InvoiceItem: Fatture e righe
- CompanySettings: Dati aziendali per il PDF
- ProjectNote / ProjectResource / ProjectChatMessage: Spazio di lavoro del progetto
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class per tutti i modelli SQLAlchemy."""
    pass


from devpilot.models.client import Client
from devpilot.models.project import Project, ProjectStatus
from devpilot.models.task import Task, TaskStatus
from devpilot.models.invoice import Invoice, InvoiceItem, InvoiceStatus
from devpilot.models.company_settings import CompanySettings
from devpilot.models.project_workspace import ProjectChatMessage, ProjectNote, ProjectResource

__all__ = [
    "Base",
    "Client",
    "Project",
    "ProjectStatus",
    "Task",
    "TaskStatus",
    "Invoice",
    "InvoiceItem",
    "InvoiceStatus",
    "CompanySettings",
    "ProjectNote",
    "ProjectResource",
    "ProjectChatMessage",
]
