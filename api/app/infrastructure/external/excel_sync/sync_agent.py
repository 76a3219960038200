"""
Agente de sincronización periódica de la planilla.

Características:
- Una corrida a la vez por instancia: un flag en proceso rechaza solapamientos.
  No hay lock entre procesos; dos agentes distintos pueden correr a la vez y el
  UPSERT por job_number es la única protección.
- Disparadores: IntervalTrigger de APScheduler, cambio de mtime del archivo y
  pedido manual (POST /api/sync/request).
"""

from __future__ import annotations

import os
from datetime import datetime
from typing import Any, Dict, Optional

from apscheduler.triggers.interval import IntervalTrigger
from loguru import logger

from .sync_service import ExcelJobSync
from .types import SyncSummary, utc_now


class ExcelSyncAgent:
    """
    Ejecuta ExcelJobSync sobre una ruta fija.

    Uso:
        agent = ExcelSyncAgent(build_from_settings(), file_path="/srv/jobs.xlsx")
        agent.schedule(scheduler, interval_seconds=120)
    """

    JOB_ID = "excel_jobs_sync"

    def __init__(
        self,
        sync: ExcelJobSync,
        *,
        file_path: str,
        sheet_name: Optional[str] = None,
        only_on_change: bool = True,
    ) -> None:
        self._sync = sync
        self.file_path = file_path
        self.sheet_name = sheet_name or None
        self.only_on_change = only_on_change

        self._running = False
        self._last_mtime: Optional[float] = None
        self.last_summary: Optional[SyncSummary] = None
        self.last_error: Optional[str] = None
        self.last_run_at: Optional[datetime] = None

    @property
    def is_running(self) -> bool:
        return self._running

    def _current_mtime(self) -> Optional[float]:
        try:
            return os.stat(self.file_path).st_mtime
        except OSError:
            return None

    def file_changed(self) -> bool:
        """True si el archivo cambió desde la última corrida exitosa (o nunca corrió)."""
        mtime = self._current_mtime()
        return mtime is None or mtime != self._last_mtime

    async def run_once(self, *, force: bool = False, dry_run: bool = False) -> Optional[SyncSummary]:
        """
        Ejecuta una corrida si no hay otra en curso.

        Retorna None si se omitió (solapamiento o archivo sin cambios).
        Los errores se registran en last_error y se relanzan.
        """
        if self._running:
            logger.warning("Sync de planilla ya está corriendo en este proceso. Omitiendo.")
            return None

        if not force and self.only_on_change and not self.file_changed():
            logger.debug(f"Sin cambios en {self.file_path}; sync omitido")
            return None

        self._running = True
        mtime = self._current_mtime()
        try:
            summary = await self._sync.run(
                file_path=self.file_path,
                sheet_name=self.sheet_name,
                dry_run=dry_run,
            )
        except Exception as e:
            self.last_error = str(e)
            logger.error(f"Sync de planilla falló: {e}")
            raise
        finally:
            self._running = False
            self.last_run_at = utc_now()

        self.last_error = None
        self.last_summary = summary
        if not dry_run:
            self._last_mtime = mtime
        return summary

    async def scheduled_run(self, force: bool = False) -> None:
        """
        Punto de entrada para el scheduler y las background tasks.
        El error ya quedó logueado y guardado en last_error; el job sigue programado.
        """
        try:
            await self.run_once(force=force)
        except Exception:
            logger.exception("Detalle del error de sync programado:")

    def schedule(self, scheduler, *, interval_seconds: int) -> None:
        """
        Registra el job en un AsyncIOScheduler (primera corrida inmediata).
        """
        scheduler.add_job(
            self.scheduled_run,
            trigger=IntervalTrigger(seconds=interval_seconds),
            id=self.JOB_ID,
            max_instances=1,
            coalesce=True,
            replace_existing=True,
            next_run_time=utc_now(),
        )
        logger.info(f"Sync de planilla programado cada {interval_seconds}s ({self.file_path})")

    def status(self) -> Dict[str, Any]:
        return {
            "filePath": self.file_path,
            "sheetName": self.sheet_name,
            "transport": self._sync.transport_name,
            "running": self._running,
            "lastRunAt": self.last_run_at.isoformat() if self.last_run_at else None,
            "lastError": self.last_error,
            "lastSummary": self.last_summary.to_dict() if self.last_summary else None,
        }
