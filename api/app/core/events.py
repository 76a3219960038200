"""
Manejadores de eventos de inicio y cierre de la aplicacion.
"""
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI
from loguru import logger

from app.core.config import settings
from app.infrastructure.database.session import init_db, close_db
from app.infrastructure.external.excel_sync.sync_agent import ExcelSyncAgent
from app.infrastructure.external.excel_sync.sync_service import build_from_settings


def startup_handler(app: FastAPI) -> Callable:
    """
    Manejador de eventos de inicio de la aplicacion.

    Args:
        app: Instancia de FastAPI

    Returns:
        Callable: Funcion asincrona de inicio
    """
    async def startup() -> None:
        """Inicializa recursos al inicio de la aplicacion."""
        try:
            logger.info(f"Iniciando {settings.APP_NAME} v{settings.APP_VERSION}")
            logger.info(f"Entorno: {settings.ENVIRONMENT}")

            # Configurar logging a archivo
            logger.add(
                settings.LOG_FILE,
                rotation="500 MB",
                retention="10 days",
                level=settings.LOG_LEVEL
            )

            _validate_config()

            # Inicializar base de datos (crea tablas si no existen)
            await init_db()
            logger.info("Base de datos inicializada")

            app.state.sync_agent = _build_sync_agent()
            app.state.scheduler = _start_scheduler(app.state.sync_agent)

            logger.success("Aplicacion iniciada correctamente")

        except Exception as e:
            logger.error(f"Error durante startup: {e}")
            logger.exception("Detalle del error:")
            raise

    return startup


def _validate_config() -> None:
    """Valida que la configuracion critica este presente."""
    warnings = []

    if not settings.EXCEL_SYNC_TOKEN:
        warnings.append("EXCEL_SYNC_TOKEN no configurado - los endpoints de sync responderan 401")

    if not settings.EXCEL_JOBS_PATH:
        warnings.append("EXCEL_JOBS_PATH no configurado - el agente de sync queda deshabilitado")

    if settings.is_remote_sync and not settings.SYNC_REMOTE_URL:
        warnings.append("SYNC_MODE=remote sin SYNC_REMOTE_URL")

    for warning in warnings:
        logger.warning(f"CONFIG: {warning}")


def _build_sync_agent():
    """Crea el agente si hay planilla configurada."""
    if not settings.EXCEL_JOBS_PATH:
        return None

    return ExcelSyncAgent(
        build_from_settings(settings),
        file_path=settings.EXCEL_JOBS_PATH,
        sheet_name=settings.EXCEL_SHEET_NAME or None,
        only_on_change=settings.SYNC_ONLY_ON_CHANGE,
    )


def _start_scheduler(agent):
    """Arranca el AsyncIOScheduler con el job de sync (si esta habilitado)."""
    if agent is None or not settings.SYNC_SCHEDULER_ENABLED:
        return None

    scheduler = AsyncIOScheduler(timezone="UTC")
    agent.schedule(scheduler, interval_seconds=settings.SYNC_INTERVAL_SECONDS)
    scheduler.start()
    logger.info("Scheduler de sync iniciado")
    return scheduler


def shutdown_handler(app: FastAPI) -> Callable:
    """
    Manejador de eventos de cierre de la aplicacion.

    Args:
        app: Instancia de FastAPI

    Returns:
        Callable: Funcion asincrona de cierre
    """
    async def shutdown() -> None:
        """Libera recursos al cerrar la aplicacion."""
        logger.info("Cerrando aplicacion...")

        scheduler = getattr(app.state, "scheduler", None)
        if scheduler is not None:
            scheduler.shutdown(wait=False)
            logger.info("Scheduler de sync detenido")

        # Cerrar conexiones de base de datos
        await close_db()
        logger.info("Conexiones de base de datos cerradas")

        logger.success("Aplicacion cerrada correctamente")

    return shutdown


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Ciclo de vida de la app: startup antes de servir, shutdown al final."""
    await startup_handler(app)()
    yield
    await shutdown_handler(app)()
