"""
Endpoints para sincronizacion de jobs desde la planilla Excel.

- POST /sync/jobs: recibe filas ya extraidas (agente de oficina) y hace UPSERT.
- POST /sync/excel: lee EXCEL_JOBS_PATH en este proceso y sincroniza directo.
- POST /sync/request: pide al agente en proceso que corra ahora.
- GET  /sync/status: ultimo resultado del agente.
"""
from typing import Any, List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request, status
from fastapi.responses import JSONResponse
from loguru import logger

from app.api.v1.dependencies.auth_deps import require_sync_token
from app.api.v1.dependencies.use_case_deps import get_job_sync_use_cases, get_sync_agent
from app.application.dto.job_sync_dto import (
    ExcelSyncResponseDTO,
    JobSyncResponseDTO,
    SyncRequestResponseDTO,
)
from app.application.use_cases.job_sync_use_cases import JobSyncUseCases
from app.infrastructure.external.excel_sync.sync_agent import ExcelSyncAgent
from app.shared.exceptions.domain import InvalidSyncPayloadException
from app.shared.exceptions.sync import SyncConfigError


router = APIRouter(prefix="/sync", tags=["Sync"])


def _error_response(error: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "error": str(error) or error.__class__.__name__},
    )


async def _read_jobs_payload(request: Request) -> List[Any]:
    """
    Extrae la lista `jobs` del body.

    Raises:
        InvalidSyncPayloadException: body no JSON, sin `jobs` o con lista vacia.
    """
    try:
        body = await request.json()
    except ValueError:
        body = None

    jobs = body.get("jobs") if isinstance(body, dict) else None
    if not isinstance(jobs, list) or not jobs:
        raise InvalidSyncPayloadException()
    return jobs


@router.post(
    "/jobs",
    response_model=JobSyncResponseDTO,
    status_code=status.HTTP_200_OK,
    summary="Recibir jobs extraidos de la planilla",
    dependencies=[Depends(require_sync_token)],
)
async def sync_jobs(
    request: Request,
    use_cases: JobSyncUseCases = Depends(get_job_sync_use_cases),
):
    """
    UPSERT por jobNumber de cada fila recibida.

    - Requiere header x-sync-token
    - Cada fila se confirma por separado (sin atomicidad entre filas)
    - manager_id / supplier_id nunca se modifican
    """
    jobs = await _read_jobs_payload(request)

    try:
        logger.info(f"Sync remoto recibido: {len(jobs)} fila(s)")
        return await use_cases.apply_incoming_jobs(jobs)
    except Exception as e:
        logger.error(f"Error aplicando sync de jobs: {e}")
        return _error_response(e)


@router.post(
    "/excel",
    response_model=ExcelSyncResponseDTO,
    status_code=status.HTTP_200_OK,
    summary="Sincronizar la planilla configurada directo a la base",
    dependencies=[Depends(require_sync_token)],
)
async def sync_excel(
    sheet_name: Optional[str] = Query(default=None, description="Hoja a leer (default: la primera)"),
    dry_run: bool = Query(default=False, description="Si True, solo cuenta lo que se crearia/actualizaria"),
    use_cases: JobSyncUseCases = Depends(get_job_sync_use_cases),
):
    """
    Lee EXCEL_JOBS_PATH y aplica el batch completo en una transaccion.
    """
    try:
        summary = await use_cases.run_excel_sync(sheet_name=sheet_name, dry_run=dry_run)
    except Exception as e:
        logger.error(f"Error en sync de planilla: {e}")
        return _error_response(e)

    return ExcelSyncResponseDTO(success=summary.success, summary=summary.to_dict())


@router.post(
    "/request",
    response_model=SyncRequestResponseDTO,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Pedir una corrida inmediata del agente",
    dependencies=[Depends(require_sync_token)],
)
async def request_sync(
    background_tasks: BackgroundTasks,
    agent: Optional[ExcelSyncAgent] = Depends(get_sync_agent),
) -> SyncRequestResponseDTO:
    """
    Encola una corrida forzada (ignora el chequeo de cambios del archivo).
    Si ya hay una corrida en curso, la nueva se omite.
    """
    if agent is None:
        raise SyncConfigError("Sync agent not configured (EXCEL_JOBS_PATH not set)")

    if agent.is_running:
        return SyncRequestResponseDTO(ok=True, message="A sync is already running.")

    background_tasks.add_task(agent.scheduled_run, True)
    return SyncRequestResponseDTO(ok=True, message="Sync request received. Jobs will be processed shortly.")


@router.get(
    "/status",
    summary="Estado del agente de sync",
    dependencies=[Depends(require_sync_token)],
)
async def sync_status(agent: Optional[ExcelSyncAgent] = Depends(get_sync_agent)) -> dict:
    """Ultima corrida, error y estado del agente en proceso."""
    if agent is None:
        return {"configured": False}
    return {"configured": True, **agent.status()}
