"""
CLI: planilla Excel -> jobs (one-way sync).

Uso recomendado:
  - En la PC de oficina con acceso a la planilla compartida, como job
    (cron / task scheduler) o con --watch.
  - Modo remoto: envía las filas a POST /api/sync/jobs del backend publicado.

Variables de entorno:
  - EXCEL_JOBS_PATH (o --file)
  - EXCEL_SHEET_NAME (opcional, o --sheet)
  - DATABASE_URL (modo directo)
  - SYNC_REMOTE_URL + EXCEL_SYNC_TOKEN (modo remoto)

Ejecución:
  python scripts/excel_jobs_sync.py
  python scripts/excel_jobs_sync.py --dry-run
  python scripts/excel_jobs_sync.py --remote --watch --interval 30
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

from dotenv import load_dotenv
from loguru import logger

# Permite ejecutar este script desde cualquier cwd sin configurar PYTHONPATH.
# La carpeta "api" contiene el paquete raíz `app/`.
_API_ROOT = Path(__file__).resolve().parents[1]
if str(_API_ROOT) not in sys.path:
    sys.path.insert(0, str(_API_ROOT))

# Cargar variables desde .env si existe (api/.env o raíz del repo).
load_dotenv(_API_ROOT / ".env", override=False)
load_dotenv(_API_ROOT.parent / ".env", override=False)

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from app.core.config import settings
from app.infrastructure.database.session import close_db, init_db
from app.infrastructure.external.excel_sync.sync_agent import ExcelSyncAgent
from app.infrastructure.external.excel_sync.sync_service import build_from_settings
from app.shared.exceptions.base import AppException


def _parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Sincroniza jobs desde la planilla Excel")
    parser.add_argument("--file", default=None, help="Ruta a la planilla (default: EXCEL_JOBS_PATH)")
    parser.add_argument("--sheet", default=None, help="Hoja a leer (default: EXCEL_SHEET_NAME o la primera)")
    parser.add_argument("--dry-run", action="store_true", help="No escribe: solo cuenta creados/actualizados")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--remote", dest="remote", action="store_true", default=None,
                      help="Enviar a SYNC_REMOTE_URL en vez de escribir en la base")
    mode.add_argument("--direct", dest="remote", action="store_false",
                      help="Escribir directo en DATABASE_URL")
    parser.add_argument("--watch", action="store_true",
                        help="Quedarse corriendo y sincronizar cada --interval segundos si el archivo cambió")
    parser.add_argument("--interval", type=int, default=None,
                        help="Segundos entre chequeos en --watch (default: SYNC_INTERVAL_SECONDS)")
    return parser.parse_args(argv)


async def _watch(agent: ExcelSyncAgent, interval_seconds: int) -> None:
    scheduler = AsyncIOScheduler(timezone="UTC")
    agent.schedule(scheduler, interval_seconds=interval_seconds)
    scheduler.start()
    logger.info("Watcher activo. Ctrl+C para salir.")
    try:
        await asyncio.Event().wait()
    finally:
        scheduler.shutdown(wait=False)


async def _main(args: argparse.Namespace) -> int:
    file_path = args.file or settings.EXCEL_JOBS_PATH
    if not file_path:
        raise SystemExit("Falta la planilla: usa --file o EXCEL_JOBS_PATH")

    sync = build_from_settings(settings, remote=args.remote)
    if sync.transport_name == "direct":
        await init_db()

    agent = ExcelSyncAgent(
        sync,
        file_path=file_path,
        sheet_name=args.sheet or settings.EXCEL_SHEET_NAME or None,
        only_on_change=settings.SYNC_ONLY_ON_CHANGE,
    )

    try:
        if args.watch:
            await _watch(agent, args.interval or settings.SYNC_INTERVAL_SECONDS)
            return 0

        logger.info(f"Iniciando sync {sync.transport_name} de {file_path}...")
        summary = await agent.run_once(force=True, dry_run=args.dry_run)
        print(json.dumps(summary.to_dict(), indent=2, ensure_ascii=False))
        return 0 if summary.success else 1
    except AppException as e:
        logger.error(f"Sync abortado: {e.message}")
        return 2
    finally:
        if sync.transport_name == "direct":
            await close_db()


def main(argv=None) -> int:
    args = _parse_args(argv)
    try:
        return asyncio.run(_main(args))
    except AppException as e:
        # Configuración incompleta detectada al armar el transporte
        logger.error(f"Sync abortado: {e.message}")
        return 2
    except KeyboardInterrupt:
        logger.info("Watcher detenido")
        return 0


if __name__ == "__main__":
    raise SystemExit(main())
