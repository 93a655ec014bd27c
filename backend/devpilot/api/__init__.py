"""
API Routes
Progetto: DevPilot (Gestionale Freelance)

Modulo per l'aggregazione dei router versionati.
"""

from devpilot.api.v1 import api_v1_router

# Esportazione router
__all__ = ["api_v1_router"]
