"""
Extractor de jobs desde la planilla compartida (openpyxl).

Reglas:
- La primera fila es el header; los headers se normalizan y se resuelven
  contra HEADER_ALIASES. Si dos columnas mapean a la misma clave, gana la primera.
- Todas las celdas se recortan; vacío tras trim = ausente.
- Filas sin jobNumber o siteName se descartan (quedan registradas en `skipped`).
- row_ref = "<hoja>:R<n>", con n el número de fila 1-based de Excel
  (el header es la fila 1).

No toca la base de datos.
"""

from __future__ import annotations

import io
import os
from typing import Any, Optional, Sequence

import openpyxl
from loguru import logger

from app.shared.constants.job_constants import (
    CLIENT,
    DEFAULT_UPLOAD_FILE_NAME,
    HEADER_ALIASES,
    JOB_NUMBER,
    MANAGER_NAME_RAW,
    REQUIRED_KEYS,
    SITE_NAME,
)
from app.shared.exceptions.sync import ExcelReadError

from .types import (
    ExtractionResult,
    JobRow,
    RowIssue,
    clean_cell,
    normalize_header,
    normalize_job_number,
    optional_text,
)

# Cantidad de filas descartadas que se detallan en el log (el resto solo se cuenta)
_MAX_SKIP_LOGS = 10


def map_headers(header_row: Sequence[Any]) -> dict[str, int]:
    """
    Retorna clave canónica -> índice de columna.

    Headers desconocidos se ignoran. Primer match gana.
    """
    mapping: dict[str, int] = {}
    for idx, raw in enumerate(header_row):
        canonical = HEADER_ALIASES.get(normalize_header(raw))
        if canonical and canonical not in mapping:
            mapping[canonical] = idx
    return mapping


def _cell(values: Sequence[str], idx: Optional[int]) -> str:
    if idx is None or idx < 0 or idx >= len(values):
        return ""
    return values[idx]


def _load_workbook(
    *,
    file_path: Optional[str],
    buffer: Optional[bytes],
    file_name: Optional[str],
) -> tuple[openpyxl.Workbook, str]:
    if not file_path and buffer is None:
        raise ExcelReadError("Provide file_path or buffer")

    resolved_name = file_name or (os.path.basename(file_path) if file_path else DEFAULT_UPLOAD_FILE_NAME)
    try:
        source = io.BytesIO(buffer) if buffer is not None else file_path
        workbook = openpyxl.load_workbook(source, data_only=True)
    except Exception as e:
        raise ExcelReadError(f"Failed to read Excel: {e}", file_name=resolved_name) from e
    return workbook, resolved_name


def select_sheet_name(sheet_names: Sequence[str], requested: Optional[str]) -> str:
    """La hoja pedida si existe; si no, la primera."""
    if not sheet_names:
        raise ExcelReadError("Workbook has no sheets")
    if requested and requested in sheet_names:
        return requested
    if requested:
        logger.warning(f"Hoja '{requested}' no existe; usando '{sheet_names[0]}'")
    return sheet_names[0]


def extract_jobs_from_worksheet(
    worksheet,
    *,
    file_name: str,
    sheet_names: Optional[list[str]] = None,
    min_job_number: int = 0,
) -> ExtractionResult:
    """
    Recorre una hoja ya abierta y arma las filas canónicas.

    min_job_number > 0 descarta jobs no numéricos o menores al mínimo
    (se cuentan en skipped_below_min, no en skipped).
    """
    sheet_name = worksheet.title
    result = ExtractionResult(
        file_name=file_name,
        sheet_name=sheet_name,
        sheet_names=list(sheet_names or [sheet_name]),
    )

    rows = worksheet.iter_rows(values_only=True)
    header = next(rows, None)
    if header is None:
        logger.info(f"Hoja '{sheet_name}' vacía en {file_name}")
        return result

    header_map = map_headers(header)
    logger.debug(f"Header map ({sheet_name}): {header_map}")
    for required in REQUIRED_KEYS:
        if required not in header_map:
            logger.warning(f"Hoja '{sheet_name}' sin columna para '{required}'. Headers: {list(header)}")

    job_idx = header_map.get(JOB_NUMBER)
    site_idx = header_map.get(SITE_NAME)
    client_idx = header_map.get(CLIENT)
    manager_idx = header_map.get(MANAGER_NAME_RAW)

    for row_number, row in enumerate(rows, start=2):
        values = [clean_cell(v) for v in row]
        if not any(values):
            continue

        result.rows_read += 1
        row_ref = f"{sheet_name}:R{row_number}"
        job_number = normalize_job_number(_cell(values, job_idx))
        site_name = _cell(values, site_idx)

        if not job_number or not site_name:
            reason = "Missing jobNumber" if not job_number else "Missing siteName"
            result.skipped.append(RowIssue(row_ref=row_ref, message=reason, job_number=job_number or None))
            if len(result.skipped) <= _MAX_SKIP_LOGS:
                logger.debug(f"[SKIP {row_ref}] {reason}")
            continue

        if min_job_number > 0 and (not job_number.isdigit() or int(job_number) < min_job_number):
            result.skipped_below_min += 1
            continue

        result.jobs.append(
            JobRow(
                job_number=job_number,
                site_name=site_name,
                client=optional_text(_cell(values, client_idx)),
                manager_name_raw=optional_text(_cell(values, manager_idx)),
                excel_file_name=file_name,
                excel_sheet_name=sheet_name,
                excel_row_ref=row_ref,
            )
        )

    if result.skipped_below_min:
        logger.info(f"Filas bajo el mínimo ({min_job_number}): {result.skipped_below_min}")
    logger.info(
        f"Extracción {file_name}/{sheet_name}: leídas={result.rows_read}, "
        f"válidas={len(result.jobs)}, descartadas={result.rows_skipped}"
    )
    return result


def extract_jobs_from_excel(
    *,
    file_path: Optional[str] = None,
    buffer: Optional[bytes] = None,
    file_name: Optional[str] = None,
    sheet_name: Optional[str] = None,
    min_job_number: int = 0,
) -> ExtractionResult:
    """
    Abre la planilla (ruta o buffer en memoria) y extrae los jobs de la hoja elegida.

    Raises:
        ExcelReadError: si el archivo no existe o no es un workbook válido.
    """
    workbook, resolved_name = _load_workbook(file_path=file_path, buffer=buffer, file_name=file_name)
    try:
        selected = select_sheet_name(workbook.sheetnames, sheet_name)
        return extract_jobs_from_worksheet(
            workbook[selected],
            file_name=resolved_name,
            sheet_names=list(workbook.sheetnames),
            min_job_number=min_job_number,
        )
    finally:
        workbook.close()
