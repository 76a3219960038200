"""
Excepciones del pipeline de sincronización Excel -> base de datos.
"""
from typing import Optional

from app.shared.exceptions.base import AppException


class SyncConfigError(AppException):
    """Falta configuración obligatoria (ruta de la planilla, URL remota, token)."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            status_code=500,
            error_code="SYNC_CONFIG_ERROR"
        )


class ExcelReadError(AppException):
    """No se pudo abrir o interpretar la planilla."""

    def __init__(self, message: str, file_name: Optional[str] = None):
        super().__init__(
            message=message,
            status_code=500,
            error_code="EXCEL_READ_ERROR",
            details={"file_name": file_name} if file_name else None
        )


class SyncTransportError(AppException):
    """
    Fallo al entregar el batch al endpoint remoto (red, auth o error del servidor).
    Aborta la corrida completa: no hay reintentos.
    """

    def __init__(self, message: str, remote_status: Optional[int] = None):
        super().__init__(
            message=message,
            status_code=502,
            error_code="SYNC_TRANSPORT_ERROR",
            details={"remote_status": remote_status} if remote_status else None
        )
        self.remote_status = remote_status
