"""
Eccezioni Custom per l'applicazione.
Progetto: DevPilot (Gestionale Freelance)

Definisce eccezioni specifiche del dominio per una gestione
centralizzata degli errori.

NOTA: BusinessValidationError è volutamente distinta da pydantic.ValidationError.
- pydantic.ValidationError: errori di formato/tipo nei dati di input (gestiti da FastAPI → 422)
- BusinessValidationError: violazioni delle regole di business logic (gestiti dal nostro handler → 422)
"""

from typing import Any, Dict, Optional

__all__ = [
    "AppException",
    "NotFoundError",
    "DuplicateError",
    "BusinessValidationError",
    "ValidationError",       # alias di BusinessValidationError
    "ConflictError",
    "AuthorizationError",
    "InvalidSignatureError",
    "MalformedPayloadError",
    "ExternalServiceError",
]


class AppException(Exception):
    """
    Base exception per l'applicazione.

    Tutte le eccezioni custom ereditano da questa classe base.

    Attributes:
        status_code: HTTP status code da restituire al client
        error_code: Identificativo univoco dell'errore per il frontend
        detail: Messaggio di errore leggibile per l'utente
        extra: Dizionario con dati aggiuntivi per il frontend
    """

    status_code: int = 500
    error_code: str = "INTERNAL_SERVER_ERROR"
    default_detail: str = "Errore interno"

    def __init__(
        self,
        detail: Optional[str] = None,
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Inizializza l'eccezione.

        Args:
            detail: Messaggio di errore dettagliato (default: quello di classe)
            error_code: Identificativo univoco (default: quello di classe)
            extra: Dati aggiuntivi da passare al frontend (default: None)
        """
        self.detail = detail if detail is not None else self.default_detail
        self.error_code = error_code if error_code is not None else self.error_code
        self.extra = extra
        self.status_code = self.__class__.status_code
        super().__init__(self.detail)


class NotFoundError(AppException):
    """Risorsa non trovata (o non appartenente all'utente corrente)."""

    status_code: int = 404
    error_code: str = "RESOURCE_NOT_FOUND"
    default_detail: str = "Risorsa non trovata"


class DuplicateError(AppException):
    """
    Tentativo di creare una risorsa duplicata.

    Utilizzata per violazioni di vincoli unique (es. impostazioni aziendali già presenti).
    """

    status_code: int = 409
    error_code: str = "DUPLICATE_RESOURCE"
    default_detail: str = "Risorsa già esistente"


class BusinessValidationError(ValueError, AppException):
    """
    Eccezione sollevata per violazioni delle regole di business logic.

    Eredita da ValueError per essere catturata dai validatori Pydantic.

    Esempi di utilizzo:
        - "Selezionare un cliente per la fattura"
        - "Solo le fatture in bozza possono essere modificate"
        - "Stato task non valido"
    """

    status_code: int = 422
    error_code: str = "BUSINESS_VALIDATION_ERROR"
    default_detail: str = "Validazione dati fallita"

    def __init__(
        self,
        detail: Optional[str] = None,
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        # Chiama AppException.__init__ direttamente per evitare ValueError
        AppException.__init__(self, detail, error_code, extra)


# Alias per compatibilità
ValidationError = BusinessValidationError


class ConflictError(AppException):
    """
    Eccezione sollevata per conflitti di stato.

    Utilizzata quando un'operazione non può essere eseguita
    a causa dello stato corrente della risorsa.
    """

    status_code: int = 409
    error_code: str = "CONFLICT_STATE"
    default_detail: str = "Conflitto di stato"


class AuthorizationError(AppException):
    """Accesso non autorizzato a una risorsa di un altro utente."""

    status_code: int = 403
    error_code: str = "FORBIDDEN"
    default_detail: str = "Accesso non autorizzato"


class InvalidSignatureError(AppException):
    """
    Firma del webhook mancante o non valida.

    Viene sempre sollevata prima di qualunque elaborazione dell'evento.
    """

    status_code: int = 400
    error_code: str = "INVALID_SIGNATURE"
    default_detail: str = "Invalid signature"


class MalformedPayloadError(AppException):
    """Payload in ingresso non interpretabile (JSON non valido o struttura inattesa)."""

    status_code: int = 400
    error_code: str = "MALFORMED_PAYLOAD"
    default_detail: str = "Malformed payload"


class ExternalServiceError(AppException):
    """
    Errore di un servizio esterno (Stripe, provider LLM, renderer PDF).

    Il messaggio restituito al client è generico; il dettaglio va nei log.
    """

    status_code: int = 502
    error_code: str = "EXTERNAL_SERVICE_ERROR"
    default_detail: str = "Servizio esterno non disponibile"
