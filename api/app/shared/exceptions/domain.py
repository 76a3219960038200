"""
Excepciones relacionadas con la lógica de dominio.
"""
from app.shared.exceptions.base import AppException


class DomainException(AppException):
    """Excepción base para errores de dominio (400)."""

    def __init__(self, message: str, error_code: str = "DOMAIN_ERROR", details=None):
        super().__init__(
            message=message,
            status_code=400,
            error_code=error_code,
            details=details
        )


class InvalidSyncPayloadException(DomainException):
    """El body del POST de sync no tiene la forma { jobs: [...] }."""

    def __init__(self, message: str = "Request body must be { jobs: IncomingJob[] }"):
        super().__init__(
            message=message,
            error_code="INVALID_SYNC_PAYLOAD"
        )
