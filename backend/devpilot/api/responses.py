"""
Risposte di errore degli endpoint di integrazione
Progetto: DevPilot (Gestionale Freelance)

Webhook, checkout, assistente e PDF rispondono con {"error": messaggio}
invece del formato {"detail", "error_code"} degli endpoint CRUD.
"""

from fastapi.responses import JSONResponse

from devpilot.core.exceptions import AppException


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def app_error_response(exc: AppException) -> JSONResponse:
    """Converte un'eccezione applicativa nel formato {"error"}."""
    return error_response(exc.status_code, exc.detail)
