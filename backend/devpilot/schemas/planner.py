"""
Schemas Pydantic per l'assistente di pianificazione
Progetto: DevPilot (Gestionale Freelance)

La risposta del modello viene solo interpretata come JSON: questi schemi
documentano la forma attesa ma non vengono usati per validarla.
"""

from typing import Optional, Union

from pydantic import BaseModel, Field


class PlanRequest(BaseModel):
    idea: Optional[str] = Field(None, description="Breve descrizione dell'idea di progetto")


class PlanTask(BaseModel):
    title: str
    description: Optional[str] = None
    estimate_hours: Optional[Union[int, float]] = None
    priority: Optional[str] = None


class PlanPhase(BaseModel):
    name: str
    description: Optional[str] = None
    tasks: list[PlanTask] = Field(default_factory=list)


class ProjectPlan(BaseModel):
    """Piano di progetto generato."""

    project_name: str
    summary: Optional[str] = None
    estimated_weeks: Optional[Union[int, float]] = None
    phases: list[PlanPhase] = Field(default_factory=list)
