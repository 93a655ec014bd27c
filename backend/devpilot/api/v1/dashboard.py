"""
Router FastAPI per la dashboard
Progetto: DevPilot (Gestionale Freelance)
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from devpilot.core.database import get_db
from devpilot.core.deps import CurrentUserId
from devpilot.schemas.dashboard import DashboardRead
from devpilot.schemas.invoice import InvoiceRead
from devpilot.schemas.project import ProjectRead, TaskRead
from devpilot.services.dashboard_service import DashboardService

router = APIRouter(
    prefix="/dashboard",
    tags=["Dashboard"],
)


@router.get(
    "/",
    name="dashboard",
    summary="Riepilogo",
    description="Progetti attivi, fatture e task recenti, contatori.",
    response_model=DashboardRead,
    response_model_by_alias=True,
)
async def get_dashboard(
    user_id: CurrentUserId,
    db: AsyncSession = Depends(get_db),
) -> DashboardRead:
    summary = await DashboardService().get_summary(db, user_id)
    return DashboardRead(
        active_projects=[ProjectRead.model_validate(p) for p in summary["active_projects"]],
        recent_invoices=[InvoiceRead.model_validate(i) for i in summary["recent_invoices"]],
        recent_tasks=[TaskRead.model_validate(t) for t in summary["recent_tasks"]],
        stats=summary["stats"],
    )
