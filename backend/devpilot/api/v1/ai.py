"""
Router FastAPI per l'assistente di pianificazione
Progetto: DevPilot (Gestionale Freelance)
"""

import logging

from fastapi import APIRouter, Depends, status

from devpilot.api.responses import app_error_response, error_response
from devpilot.core.deps import CurrentUserId
from devpilot.schemas.planner import PlanRequest, ProjectPlan
from devpilot.services.planner_service import PlannerError, PlannerService, get_planner_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/ai",
    tags=["Assistente"],
)


@router.post(
    "/plan",
    name="ai_piano",
    summary="Genera piano di progetto",
    description="Trasforma una breve idea in un piano a fasi e task (JSON).",
    responses={200: {"model": ProjectPlan}},
)
async def generate_plan(
    body: PlanRequest,
    user_id: CurrentUserId,
    planner: PlannerService = Depends(get_planner_service),
):
    """
    Errori nel formato {"error"}: 400 senza idea, 500 se la chiave
    non è configurata o la risposta del modello non è JSON.
    """
    if not body.idea or not body.idea.strip():
        return error_response(status.HTTP_400_BAD_REQUEST, "Project idea is required")

    try:
        plan = await planner.generate_plan(body.idea)
    except PlannerError as e:
        logger.error("Generazione piano fallita per utente %s: %s", user_id, e.detail)
        return app_error_response(e)

    return plan
