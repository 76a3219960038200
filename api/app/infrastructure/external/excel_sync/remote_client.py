"""
Cliente HTTP del endpoint remoto de sync (POST /api/sync/jobs).

- requests + secreto compartido en el header x-sync-token.
- Sin reintentos ni backoff: cualquier fallo aborta la corrida y se reporta.
- Sin atomicidad entre filas: el servidor confirma fila por fila.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

import requests
from loguru import logger

from app.shared.constants.job_constants import SYNC_TOKEN_HEADER
from app.shared.exceptions.sync import SyncConfigError, SyncTransportError

from .types import JobRow


class RemoteJobSyncClient:
    """Envía batches de filas al backend remoto."""

    def __init__(
        self,
        *,
        url: str,
        token: str,
        session: Optional[requests.Session] = None,
        timeout_s: float = 30.0,
    ) -> None:
        if not url:
            raise SyncConfigError("Falta SYNC_REMOTE_URL para el modo remoto")
        if not token:
            raise SyncConfigError("Falta EXCEL_SYNC_TOKEN para el modo remoto")
        self._url = url
        self._token = token
        self._timeout_s = timeout_s
        self._session = session or requests.Session()

    def push_jobs(self, jobs: Sequence[JobRow]) -> dict[str, Any]:
        """
        POST { jobs: [...] } y retorna el JSON de respuesta.

        Raises:
            SyncTransportError: error de red, 401 o cualquier respuesta no 2xx.
        """
        headers = {
            SYNC_TOKEN_HEADER: self._token,
            "Content-Type": "application/json",
        }
        body = {"jobs": [job.to_payload() for job in jobs]}

        try:
            resp = self._session.post(self._url, json=body, headers=headers, timeout=self._timeout_s)
        except requests.RequestException as e:
            raise SyncTransportError(f"No se pudo contactar {self._url}: {e}") from e

        if resp.status_code == 401:
            raise SyncTransportError("El endpoint remoto rechazó el token de sync", remote_status=401)

        if not 200 <= resp.status_code < 300:
            raise SyncTransportError(
                f"Sync remoto falló {resp.status_code}: {resp.text[:500]}",
                remote_status=resp.status_code,
            )

        try:
            payload = resp.json()
        except ValueError as e:
            raise SyncTransportError(
                f"Respuesta no JSON del endpoint remoto: {resp.text[:200]}",
                remote_status=resp.status_code,
            ) from e

        logger.info(
            f"Sync remoto OK: enviados={len(jobs)}, guardados={payload.get('count')}, "
            f"errores={len(payload.get('errors') or [])}"
        )
        return payload
