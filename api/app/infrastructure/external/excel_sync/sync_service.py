"""
Servicio de sincronización planilla Excel -> jobs.

Diseño (resumen):
- Extrae filas canónicas de la hoja (excel_reader, en un thread)
- Entrega el batch a un transporte:
  - directo: UPSERT por job_number en una sola transacción (todo o nada)
  - remoto: POST /api/sync/jobs con x-sync-token (el servidor confirma fila por fila)
- Devuelve un SyncSummary para logging/UI

Estrategia de idempotencia:
- UPSERT por job_number: re-ejecutar con la misma planilla no crea duplicados
  y solo refresca imported_at.
"""

from __future__ import annotations

import asyncio
from typing import Optional, Sequence

from loguru import logger
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.application.interfaces.job_sync_transport import JobSyncTransport
from app.core.config import Settings, settings as default_settings
from app.infrastructure.repositories.job_repository import JobRepository

from .excel_reader import extract_jobs_from_excel
from .remote_client import RemoteJobSyncClient
from .types import JobRow, SyncSummary, UpsertResult, utc_now


class DirectJobTransport:
    """UPSERT en la base del mismo proceso."""

    name = "direct"

    def __init__(
        self,
        session_factory: async_sessionmaker,
        *,
        protect_app_jobs: bool = True,
    ) -> None:
        self._session_factory = session_factory
        self._protect_app_jobs = protect_app_jobs

    async def send(self, jobs: Sequence[JobRow], *, dry_run: bool = False) -> UpsertResult:
        async with self._session_factory() as session:
            repo = JobRepository(session)
            if dry_run:
                return await repo.preview_upsert(list(jobs), protect_app_jobs=self._protect_app_jobs)

            # Todo el batch o nada: un error revierte la transacción completa.
            async with session.begin():
                return await repo.upsert_jobs(
                    list(jobs),
                    imported_at=utc_now(),
                    protect_app_jobs=self._protect_app_jobs,
                )


class HttpJobTransport:
    """Envía el batch al backend remoto."""

    name = "remote"

    def __init__(self, client: RemoteJobSyncClient) -> None:
        self._client = client

    async def send(self, jobs: Sequence[JobRow], *, dry_run: bool = False) -> UpsertResult:
        if dry_run:
            logger.info(f"Dry run remoto: {len(jobs)} fila(s) no enviadas")
            return UpsertResult(dry_run=True)

        # requests es bloqueante: se ejecuta en un thread para no frenar el event loop
        payload = await asyncio.to_thread(self._client.push_jobs, list(jobs))
        return UpsertResult.from_remote_payload(payload)


class ExcelJobSync:
    """
    Orquestador del pipeline para una planilla.
    """

    def __init__(self, transport: JobSyncTransport, *, min_job_number: int = 0) -> None:
        self._transport = transport
        self._min_job_number = min_job_number

    @property
    def transport_name(self) -> str:
        return self._transport.name

    async def run(
        self,
        *,
        file_path: Optional[str] = None,
        buffer: Optional[bytes] = None,
        file_name: Optional[str] = None,
        sheet_name: Optional[str] = None,
        dry_run: bool = False,
    ) -> SyncSummary:
        """
        Ejecuta una corrida completa: lee la hoja y entrega las filas válidas.

        Raises:
            ExcelReadError: la planilla no se pudo leer.
            SyncTransportError: falló el envío remoto (sin reintento).
            SQLAlchemyError: falló el UPSERT directo (rollback del batch).
        """
        started_at = utc_now()
        extraction = await asyncio.to_thread(
            extract_jobs_from_excel,
            file_path=file_path,
            buffer=buffer,
            file_name=file_name,
            sheet_name=sheet_name,
            min_job_number=self._min_job_number,
        )

        if extraction.jobs:
            upsert = await self._transport.send(extraction.jobs, dry_run=dry_run)
        else:
            logger.info(f"Sin filas válidas en {extraction.file_name}; nada que enviar")
            upsert = UpsertResult(dry_run=dry_run)

        summary = SyncSummary(
            transport=self._transport.name,
            extraction=extraction,
            upsert=upsert,
            started_at=started_at,
            finished_at=utc_now(),
        )
        logger.info(
            f"Sync {self._transport.name} completado ({extraction.file_name}): "
            f"creados={upsert.created}, actualizados={upsert.updated}, "
            f"protegidos={upsert.protected_app_jobs}, errores={len(upsert.errors)}"
            + (f", dry_run would_create={upsert.would_create} would_update={upsert.would_update}" if dry_run else "")
        )
        return summary


def build_transport(cfg: Settings = default_settings, *, remote: Optional[bool] = None) -> JobSyncTransport:
    """
    Construye el transporte según SYNC_MODE (o el override `remote`).
    """
    use_remote = cfg.is_remote_sync if remote is None else remote
    if use_remote:
        client = RemoteJobSyncClient(
            url=cfg.SYNC_REMOTE_URL,
            token=cfg.EXCEL_SYNC_TOKEN,
            timeout_s=cfg.SYNC_HTTP_TIMEOUT_SECONDS,
        )
        return HttpJobTransport(client)

    from app.infrastructure.database.session import AsyncSessionLocal

    return DirectJobTransport(AsyncSessionLocal, protect_app_jobs=cfg.SYNC_PROTECT_APP_JOBS)


def build_from_settings(cfg: Settings = default_settings, *, remote: Optional[bool] = None) -> ExcelJobSync:
    """
    Constructor "oficial" del pipeline leyendo la configuración global.
    """
    return ExcelJobSync(build_transport(cfg, remote=remote), min_job_number=cfg.EXCEL_MIN_JOB_NUMBER)
