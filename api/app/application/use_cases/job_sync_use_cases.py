"""
Casos de uso para la sincronizacion de jobs (lado receptor y corrida directa).
"""
from typing import Any, List, Optional

from loguru import logger
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.dto.job_sync_dto import (
    IncomingJobDTO,
    JobSyncErrorDTO,
    JobSyncResponseDTO,
)
from app.core.config import settings
from app.infrastructure.external.excel_sync.sync_service import DirectJobTransport, ExcelJobSync
from app.infrastructure.external.excel_sync.types import SyncSummary, utc_now
from app.infrastructure.repositories.job_repository import CREATED, PROTECTED, JobRepository
from app.shared.exceptions.sync import SyncConfigError


class JobSyncUseCases:
    """
    Aplica batches de jobs recibidos por HTTP y dispara corridas directas.
    """

    def __init__(self, db: AsyncSession, *, protect_app_jobs: Optional[bool] = None):
        self.db = db
        self.repository = JobRepository(db)
        self.protect_app_jobs = (
            settings.SYNC_PROTECT_APP_JOBS if protect_app_jobs is None else protect_app_jobs
        )

    async def apply_incoming_jobs(self, jobs: List[Any]) -> JobSyncResponseDTO:
        """
        UPSERT fila por fila con commit individual.

        No hay atomicidad entre filas: si una falla, las anteriores quedan
        guardadas y se sigue con las siguientes. Filas sin jobNumber/siteName
        se reportan como error de fila.
        """
        now = utc_now()
        saved: List[str] = []
        errors: List[JobSyncErrorDTO] = []
        created = updated = protected = 0

        for index, raw in enumerate(jobs):
            try:
                dto = IncomingJobDTO.model_validate(raw)
            except ValidationError as e:
                errors.append(JobSyncErrorDTO(
                    job_number=_raw_job_number(raw),
                    row_ref=f"jobs[{index}]",
                    message=f"Invalid job payload: {e.error_count()} error(s)",
                ))
                continue

            if not dto.is_complete:
                errors.append(JobSyncErrorDTO(
                    job_number=dto.job_number or "",
                    row_ref=dto.excel_row_ref or f"jobs[{index}]",
                    message="Missing jobNumber or siteName",
                ))
                continue

            try:
                outcome = await self.repository.upsert_job(
                    dto.to_job_row(),
                    imported_at=now,
                    protect_app_jobs=self.protect_app_jobs,
                )
                await self.db.commit()
            except SQLAlchemyError as e:
                await self.db.rollback()
                logger.error(f"UPSERT de job {dto.job_number} falló: {e}")
                errors.append(JobSyncErrorDTO(
                    job_number=dto.job_number,
                    row_ref=dto.excel_row_ref,
                    message=str(e.__cause__ or e),
                ))
                continue

            if outcome == PROTECTED:
                protected += 1
                continue
            if outcome == CREATED:
                created += 1
            else:
                updated += 1
            saved.append(dto.job_number)

        logger.info(
            f"Sync recibido: filas={len(jobs)}, creados={created}, actualizados={updated}, "
            f"protegidos={protected}, errores={len(errors)}"
        )
        return JobSyncResponseDTO(
            success=not errors,
            count=len(saved),
            saved=saved,
            created=created,
            updated=updated,
            protected_app_jobs=protected,
            errors=errors,
        )

    async def run_excel_sync(
        self,
        *,
        file_path: Optional[str] = None,
        sheet_name: Optional[str] = None,
        dry_run: bool = False,
        sync: Optional[ExcelJobSync] = None,
    ) -> SyncSummary:
        """
        Corrida directa contra la planilla configurada (EXCEL_JOBS_PATH).
        El batch completo va en una transaccion propia.
        """
        path = file_path or settings.EXCEL_JOBS_PATH
        if not path:
            raise SyncConfigError("EXCEL_JOBS_PATH not set")

        if sync is None:
            from app.infrastructure.database.session import AsyncSessionLocal

            sync = ExcelJobSync(
                DirectJobTransport(AsyncSessionLocal, protect_app_jobs=self.protect_app_jobs),
                min_job_number=settings.EXCEL_MIN_JOB_NUMBER,
            )

        return await sync.run(
            file_path=path,
            sheet_name=sheet_name or settings.EXCEL_SHEET_NAME or None,
            dry_run=dry_run,
        )


def _raw_job_number(raw: Any) -> str:
    if isinstance(raw, dict):
        value = raw.get("jobNumber") or raw.get("job_number")
        return str(value) if value is not None else ""
    return ""
