"""
Dependencias para inyeccion de casos de uso.
"""
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.use_cases.job_sync_use_cases import JobSyncUseCases
from app.infrastructure.database.session import get_db
from app.infrastructure.external.excel_sync.sync_agent import ExcelSyncAgent


async def get_job_sync_use_cases(
    db: AsyncSession = Depends(get_db)
) -> JobSyncUseCases:
    """
    Dependencia para obtener los casos de uso de sync de jobs.

    Args:
        db: Sesion de base de datos

    Returns:
        JobSyncUseCases: Instancia de casos de uso de sync
    """
    return JobSyncUseCases(db)


def get_sync_agent(request: Request) -> Optional[ExcelSyncAgent]:
    """
    Agente de sync creado en el startup (None si no hay EXCEL_JOBS_PATH).
    """
    return getattr(request.app.state, "sync_agent", None)
