"""
Interfaz del transporte que entrega las filas extraídas de la planilla.

Este contrato existe para:
- Que el orquestador no sepa si escribe directo a la base o hace POST remoto.
- Facilitar tests unitarios con un fake en memoria.
"""

from __future__ import annotations

from typing import Protocol, Sequence

from app.infrastructure.external.excel_sync.types import JobRow, UpsertResult


class JobSyncTransport(Protocol):
    """
    Entrega un batch de filas canónicas al sink de jobs.

    Implementaciones:
    - DirectJobTransport: UPSERT en la base local, una transacción por batch.
    - HttpJobTransport: POST /api/sync/jobs, sin atomicidad entre filas.
    """

    name: str

    async def send(self, jobs: Sequence[JobRow], *, dry_run: bool = False) -> UpsertResult:
        """
        Aplica el batch.

        Reglas:
        - Fallos de red/base deben lanzar excepción: la corrida se aborta.
        - Errores por fila que no abortan se devuelven en UpsertResult.errors.
        """
