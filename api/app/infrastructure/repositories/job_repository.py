"""
Implementación del repositorio de jobs.
Maneja el UPSERT por job_number usado por el sync desde Excel.
"""
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.infrastructure.database.models import JobModel
from app.infrastructure.external.excel_sync.types import JobRow, UpsertResult
from app.shared.constants.job_constants import JobSource

# Columnas que un re-import puede pisar. manager_id, supplier_id y source
# quedan fuera a proposito.
UPDATABLE_COLUMNS = (
    "site_name",
    "client",
    "manager_name_raw",
    "imported_at",
    "excel_file_name",
    "excel_sheet_name",
    "excel_row_ref",
)

_INSERT_BY_DIALECT = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}

CREATED = "created"
UPDATED = "updated"
PROTECTED = "protected"


class JobRepository:
    """Repositorio para gestionar jobs en la base de datos."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_job_number(self, job_number: str) -> Optional[JobModel]:
        """
        Obtiene un job por su numero de negocio.
        """
        result = await self.db.execute(
            select(JobModel).where(JobModel.job_number == job_number)
        )
        return result.scalars().first()

    async def count(self) -> int:
        result = await self.db.execute(select(func.count()).select_from(JobModel))
        return int(result.scalar_one())

    async def get_sources(self, job_numbers: Iterable[str]) -> Dict[str, JobSource]:
        """
        Retorna job_number -> source para los jobs que ya existen.
        """
        numbers = list(set(job_numbers))
        if not numbers:
            return {}
        result = await self.db.execute(
            select(JobModel.job_number, JobModel.source).where(JobModel.job_number.in_(numbers))
        )
        return {row.job_number: row.source for row in result.all()}

    def _insert(self):
        dialect = self.db.get_bind().dialect.name
        try:
            return _INSERT_BY_DIALECT[dialect]
        except KeyError:
            raise NotImplementedError(f"UPSERT no soportado para el dialecto '{dialect}'")

    async def upsert_job(
        self,
        job: JobRow,
        *,
        imported_at: datetime,
        protect_app_jobs: bool = True,
        existing_source: Optional[JobSource] = None,
    ) -> str:
        """
        INSERT ... ON CONFLICT (job_number) DO UPDATE para una fila.

        - Insert: todos los campos de la fila, source=EXCEL.
        - Update: solo campos descriptivos y de procedencia.
        - protect_app_jobs: un job creado desde el panel (source=APP) no se toca;
          la condicion tambien va en el WHERE del DO UPDATE.

        Retorna "created", "updated" o "protected". No hace commit.

        El resultado sale de la lectura previa de `source`, no del statement:
        si otro proceso inserta el mismo job_number entre esa lectura y el
        UPSERT, la fila se actualiza igual pero se informa como "created".
        No hay lock entre procesos; solo los contadores pueden desviarse.
        """
        if existing_source is None:
            existing_source = (await self.get_sources([job.job_number])).get(job.job_number)

        if protect_app_jobs and existing_source == JobSource.APP:
            return PROTECTED

        insert = self._insert()
        stmt = insert(JobModel).values(
            job_number=job.job_number,
            site_name=job.site_name,
            client=job.client,
            manager_name_raw=job.manager_name_raw,
            source=JobSource.EXCEL,
            imported_at=imported_at,
            excel_file_name=job.excel_file_name,
            excel_sheet_name=job.excel_sheet_name,
            excel_row_ref=job.excel_row_ref,
        )
        set_ = {col: stmt.excluded[col] for col in UPDATABLE_COLUMNS}
        set_["updated_at"] = func.now()

        where = JobModel.__table__.c.source != JobSource.APP if protect_app_jobs else None
        stmt = stmt.on_conflict_do_update(
            index_elements=[JobModel.__table__.c.job_number],
            set_=set_,
            where=where,
        )
        await self.db.execute(stmt)
        return UPDATED if existing_source is not None else CREATED

    async def upsert_jobs(
        self,
        jobs: List[JobRow],
        *,
        imported_at: datetime,
        protect_app_jobs: bool = True,
    ) -> UpsertResult:
        """
        Aplica un batch fila por fila dentro de la transaccion del caller.
        Cualquier error de base de datos se propaga (el caller hace rollback).
        """
        result = UpsertResult()
        sources = await self.get_sources(job.job_number for job in jobs)

        for job in jobs:
            outcome = await self.upsert_job(
                job,
                imported_at=imported_at,
                protect_app_jobs=protect_app_jobs,
                existing_source=sources.get(job.job_number),
            )
            _tally(result, job.job_number, outcome)
            if outcome == CREATED:
                # Un job_number repetido mas abajo en el mismo batch ya es update
                sources[job.job_number] = JobSource.EXCEL

        logger.info(
            f"UPSERT jobs: creados={result.created}, actualizados={result.updated}, "
            f"protegidos={result.protected_app_jobs}"
        )
        return result

    async def preview_upsert(self, jobs: List[JobRow], *, protect_app_jobs: bool = True) -> UpsertResult:
        """
        Dry run: cuenta que se crearia/actualizaria sin escribir.
        """
        result = UpsertResult(dry_run=True)
        sources = await self.get_sources(job.job_number for job in jobs)
        seen = set()
        for job in jobs:
            source = sources.get(job.job_number)
            if protect_app_jobs and source == JobSource.APP:
                result.protected_app_jobs += 1
            elif source is None and job.job_number not in seen:
                result.would_create += 1
            else:
                result.would_update += 1
            seen.add(job.job_number)
        return result


def _tally(result: UpsertResult, job_number: str, outcome: str) -> None:
    if outcome == PROTECTED:
        result.protected_app_jobs += 1
        return
    if outcome == CREATED:
        result.created += 1
    else:
        result.updated += 1
    result.saved.append(job_number)
