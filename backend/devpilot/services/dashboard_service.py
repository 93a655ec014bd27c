"""
Service per la dashboard
Progetto: DevPilot (Gestionale Freelance)
"""

import logging
import uuid
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from devpilot.models import Invoice, InvoiceStatus, Project, ProjectStatus, Task, TaskStatus

logger = logging.getLogger(__name__)

ACTIVE_PROJECTS_LIMIT = 5
RECENT_INVOICES_LIMIT = 5
RECENT_TASKS_LIMIT = 10


class DashboardService:

    async def get_summary(self, db: AsyncSession, user_id: uuid.UUID) -> dict[str, Any]:
        """
        Riepilogo della home.

        Returns:
            dict con active_projects, recent_invoices, recent_tasks e stats
        """
        projects_result = await db.execute(
            select(Project)
            .where(Project.user_id == user_id, Project.status == ProjectStatus.ACTIVE.value)
            .order_by(Project.created_at.desc())
            .limit(ACTIVE_PROJECTS_LIMIT)
        )
        invoices_result = await db.execute(
            select(Invoice)
            .where(Invoice.user_id == user_id)
            .order_by(Invoice.created_at.desc())
            .limit(RECENT_INVOICES_LIMIT)
        )
        tasks_result = await db.execute(
            select(Task)
            .where(Task.user_id == user_id)
            .order_by(Task.created_at.desc())
            .limit(RECENT_TASKS_LIMIT)
        )

        total_tasks = (
            await db.execute(select(func.count()).select_from(Task).where(Task.user_id == user_id))
        ).scalar() or 0
        completed_tasks = (
            await db.execute(
                select(func.count()).select_from(Task).where(
                    Task.user_id == user_id,
                    Task.status == TaskStatus.DONE.value,
                )
            )
        ).scalar() or 0
        pending_invoices = (
            await db.execute(
                select(func.count()).select_from(Invoice).where(
                    Invoice.user_id == user_id,
                    Invoice.status.in_([InvoiceStatus.DRAFT.value, InvoiceStatus.SENT.value]),
                )
            )
        ).scalar() or 0

        return {
            "active_projects": list(projects_result.scalars().all()),
            "recent_invoices": list(invoices_result.scalars().all()),
            "recent_tasks": list(tasks_result.scalars().all()),
            "stats": {
                "completed_tasks": completed_tasks,
                "total_tasks": total_tasks,
                "pending_invoices": pending_invoices,
            },
        }
