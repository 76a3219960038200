"""
Dependencias de autenticación para los endpoints de sync.
"""
from typing import Optional

from fastapi import Depends, Header
from loguru import logger

from app.core.security import SyncTokenVerifier, get_sync_token_verifier
from app.shared.constants.job_constants import SYNC_TOKEN_HEADER
from app.shared.exceptions.auth import UnauthorizedException


async def require_sync_token(
    x_sync_token: Optional[str] = Header(default=None, alias=SYNC_TOKEN_HEADER),
    verifier: SyncTokenVerifier = Depends(get_sync_token_verifier),
) -> None:
    """
    Rechaza con 401 si el token falta, no coincide o el servidor no tiene secreto.

    Raises:
        UnauthorizedException
    """
    if not verifier.is_configured():
        logger.error("EXCEL_SYNC_TOKEN no configurado en el servidor; rechazando sync")
        raise UnauthorizedException()

    if not verifier.verify(x_sync_token):
        logger.warning("Request de sync con token inválido o ausente")
        raise UnauthorizedException()
