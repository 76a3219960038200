"""
Verificación del secreto compartido del endpoint de sync.

- Compara el header x-sync-token contra EXCEL_SYNC_TOKEN.
- Usa comparación en tiempo constante (hmac.compare_digest) para reducir leaks
  por timing.
- Si el servidor no tiene token configurado, todo request se rechaza.
"""

from __future__ import annotations

import hmac
from typing import Optional

from app.core.config import settings


class SyncTokenVerifier:
    """Verifica el token del agente de oficina contra el secreto del servidor."""

    def __init__(self, expected_token: str) -> None:
        self._expected_token = expected_token or ""

    def is_configured(self) -> bool:
        return bool(self._expected_token)

    def verify(self, token: Optional[str]) -> bool:
        if not self.is_configured() or not token:
            return False

        # bytes para aceptar headers con caracteres no ASCII sin TypeError
        return hmac.compare_digest(
            token.encode("utf-8"),
            self._expected_token.encode("utf-8"),
        )


def get_sync_token_verifier() -> SyncTokenVerifier:
    """Se construye en cada request para reflejar cambios de configuración."""
    return SyncTokenVerifier(settings.EXCEL_SYNC_TOKEN)
