"""
Schema Pydantic per la dashboard
Progetto: DevPilot (Gestionale Freelance)
"""

from pydantic import BaseModel, Field

from devpilot.schemas.invoice import InvoiceRead
from devpilot.schemas.project import ProjectRead, TaskRead


class DashboardStats(BaseModel):
    completed_tasks: int = Field(..., ge=0)
    total_tasks: int = Field(..., ge=0)
    pending_invoices: int = Field(..., ge=0, description="Fatture in bozza o inviate")


class DashboardRead(BaseModel):
    """Riepilogo per la home dell'utente."""

    active_projects: list[ProjectRead] = Field(default_factory=list)
    recent_invoices: list[InvoiceRead] = Field(default_factory=list)
    recent_tasks: list[TaskRead] = Field(default_factory=list)
    stats: DashboardStats
