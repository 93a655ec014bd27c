"""
Modulo di sicurezza per i token JWT
Progetto: DevPilot (Gestionale Freelance)

I token sono emessi dal provider di autenticazione ospitato (login,
registrazione e reset password avvengono lì); il backend si limita a
verificarne firma, scadenza e audience con il segreto condiviso.
"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import HTTPException, status
from jose import JWTError, jwt

from devpilot.core.config import settings
from devpilot.schemas.token import TokenPayload


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def decode_token(token: str, secret: Optional[str] = None) -> TokenPayload:
    """
    Decodifica e valida un token JWT del provider di autenticazione.

    Args:
        token: Token JWT da decodificare
        secret: Segreto di firma (default: settings.auth_jwt_secret)

    Returns:
        TokenPayload con i dati del token

    Raises:
        HTTPException: Se il token è invalido, scaduto o senza subject
    """
    options = {"verify_aud": settings.auth_jwt_audience is not None}
    try:
        payload = jwt.decode(
            token,
            secret or settings.auth_jwt_secret,
            algorithms=[settings.auth_jwt_algorithm],
            audience=settings.auth_jwt_audience,
            options=options,
        )
    except JWTError as e:
        raise _unauthorized(f"Token invalido o scaduto: {str(e)}")

    if not payload.get("sub"):
        raise _unauthorized("Token invalido: missing subject")

    exp = payload.get("exp")
    return TokenPayload(
        sub=payload["sub"],
        email=payload.get("email"),
        role=payload.get("role"),
        exp=datetime.fromtimestamp(exp, tz=timezone.utc) if exp is not None else None,
    )


__all__ = [
    "decode_token",
]
