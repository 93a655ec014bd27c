"""
Dependency Injection per autenticazione
Progetto: DevPilot (Gestionale Freelance)

Ogni record applicativo è di proprietà di un utente: le dependency
di questo modulo ricavano l'ID utente dal token Bearer.
"""

from typing import Annotated, Optional
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from devpilot.core.security import decode_token

# Schema Bearer - estrae il token dall'header Authorization
bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> UUID:
    """
    Dependency per ottenere l'ID dell'utente corrente dal token JWT.

    Args:
        credentials: Credenziali Bearer estratte dall'header Authorization

    Returns:
        UUID dell'utente proprietario dei dati

    Raises:
        HTTPException 401: Se il token manca, è invalido o il subject non è un UUID
    """
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token di autenticazione non fornito",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token_data = decode_token(credentials.credentials)

    try:
        return UUID(token_data.sub)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="ID utente invalido nel token",
            headers={"WWW-Authenticate": "Bearer"},
        )


# Type alias per uso comune nei router
CurrentUserId = Annotated[UUID, Depends(get_current_user_id)]


__all__ = [
    "get_current_user_id",
    "bearer_scheme",
    "CurrentUserId",
]
