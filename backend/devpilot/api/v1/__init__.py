"""
API v1 Routes
Progetto: DevPilot (Gestionale Freelance)

Router versione 1 dell'API.
"""

from fastapi import APIRouter

from devpilot.api.v1 import (
    ai, clients, dashboard, invoices, payments, projects, settings, workspace
)

# Router aggregato per v1
api_v1_router = APIRouter(prefix="/api/v1")

# Includi i router dei moduli
api_v1_router.include_router(clients.router)
api_v1_router.include_router(projects.router)
api_v1_router.include_router(projects.tasks_router)
api_v1_router.include_router(workspace.router)
api_v1_router.include_router(invoices.router)
api_v1_router.include_router(payments.router)
api_v1_router.include_router(ai.router)
api_v1_router.include_router(settings.router)
api_v1_router.include_router(dashboard.router)

# Esportazione
__all__ = ["api_v1_router"]
