"""
Tipos y utilidades puras para el pipeline Excel -> base de datos.

Se mantienen libres de I/O para poder testearlos fácilmente.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Optional

_TRAILING_ZERO_RE = re.compile(r"\.0$")


def utc_now() -> datetime:
    """Retorna la hora actual en UTC, como datetime aware."""
    return datetime.now(timezone.utc)


def normalize_header(value: Any) -> str:
    """trim + lowercase + espacios internos colapsados."""
    return " ".join(str(value or "").split()).lower()


def clean_cell(value: Any) -> str:
    """
    Convierte el valor de una celda a texto recortado.

    openpyxl entrega números como int/float: un float entero se muestra sin
    decimales (1234.0 -> "1234"), igual que en la planilla.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value).strip()


def normalize_job_number(value: str) -> str:
    """Quita el sufijo '.0' que deja Excel cuando el número se guardó como texto."""
    return _TRAILING_ZERO_RE.sub("", (value or "").strip())


def optional_text(value: Optional[str]) -> Optional[str]:
    """Cadena vacía (tras trim) se trata como ausente."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class JobRow:
    """Fila canónica extraída de la planilla (o recibida por HTTP)."""

    job_number: str
    site_name: str
    client: Optional[str] = None
    manager_name_raw: Optional[str] = None
    excel_file_name: Optional[str] = None
    excel_sheet_name: Optional[str] = None
    excel_row_ref: Optional[str] = None

    def to_payload(self) -> dict[str, Any]:
        """Forma JSON que espera POST /api/sync/jobs."""
        payload = {
            "jobNumber": self.job_number,
            "siteName": self.site_name,
            "client": self.client,
            "managerNameRaw": self.manager_name_raw,
            "excelFileName": self.excel_file_name,
            "excelSheetName": self.excel_sheet_name,
            "excelRowRef": self.excel_row_ref,
        }
        return {k: v for k, v in payload.items() if v is not None}


@dataclass(frozen=True)
class RowIssue:
    """Problema puntual de una fila; no aborta el batch."""

    row_ref: str
    message: str
    job_number: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {"rowRef": self.row_ref, "jobNumber": self.job_number, "message": self.message}


@dataclass
class ExtractionResult:
    """Resultado de leer una hoja."""

    file_name: str
    sheet_name: Optional[str]
    sheet_names: list[str] = field(default_factory=list)
    jobs: list[JobRow] = field(default_factory=list)
    skipped: list[RowIssue] = field(default_factory=list)
    rows_read: int = 0
    skipped_below_min: int = 0

    @property
    def rows_skipped(self) -> int:
        return len(self.skipped)


@dataclass
class UpsertResult:
    """
    Resultado de aplicar un batch de filas.

    saved: job_numbers efectivamente escritos (creados o actualizados).
    """

    created: int = 0
    updated: int = 0
    protected_app_jobs: int = 0
    saved: list[str] = field(default_factory=list)
    errors: list[RowIssue] = field(default_factory=list)
    dry_run: bool = False
    would_create: int = 0
    would_update: int = 0

    @property
    def count(self) -> int:
        return len(self.saved)

    @classmethod
    def from_remote_payload(cls, payload: dict[str, Any]) -> "UpsertResult":
        """Reconstruye el resultado a partir de la respuesta del endpoint remoto."""
        errors = [
            RowIssue(
                row_ref=str(e.get("rowRef") or "N/A"),
                job_number=e.get("jobNumber"),
                message=str(e.get("message") or ""),
            )
            for e in (payload.get("errors") or [])
        ]
        return cls(
            created=int(payload.get("created") or 0),
            updated=int(payload.get("updated") or 0),
            protected_app_jobs=int(payload.get("protectedAppJobs") or 0),
            saved=[str(j) for j in (payload.get("saved") or [])],
            errors=errors,
        )


@dataclass
class SyncSummary:
    """Resumen de una corrida completa (extracción + transporte)."""

    transport: str
    extraction: ExtractionResult
    upsert: UpsertResult
    started_at: datetime
    finished_at: datetime

    @property
    def success(self) -> bool:
        return not self.upsert.errors

    def to_dict(self) -> dict[str, Any]:
        return {
            "transport": self.transport,
            "fileName": self.extraction.file_name,
            "sheetName": self.extraction.sheet_name,
            "sheetNames": self.extraction.sheet_names,
            "rowsRead": self.extraction.rows_read,
            "rowsSkipped": self.extraction.rows_skipped,
            "skippedBelowMin": self.extraction.skipped_below_min,
            "created": self.upsert.created,
            "updated": self.upsert.updated,
            "protectedAppJobs": self.upsert.protected_app_jobs,
            "count": self.upsert.count,
            "errors": len(self.upsert.errors),
            "errorDetails": [e.to_dict() for e in self.upsert.errors],
            "skipped": [s.to_dict() for s in self.extraction.skipped],
            "dryRun": self.upsert.dry_run,
            "wouldCreate": self.upsert.would_create,
            "wouldUpdate": self.upsert.would_update,
            "startedAt": self.started_at.isoformat(),
            "finishedAt": self.finished_at.isoformat(),
        }
