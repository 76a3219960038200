"""
DTOs para la sincronizacion de jobs desde la planilla.
Los nombres JSON son camelCase porque el agente de oficina ya envia ese formato.
"""
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, field_validator

from app.infrastructure.external.excel_sync.types import JobRow, optional_text


class IncomingJobDTO(BaseModel):
    """
    Fila recibida en POST /api/sync/jobs.

    job_number y site_name son opcionales a nivel de schema: una fila
    incompleta se reporta como error de esa fila, sin rechazar todo el batch.
    """

    job_number: Optional[str] = Field(None, alias="jobNumber")
    site_name: Optional[str] = Field(None, alias="siteName")
    client: Optional[str] = Field(None, description="Cliente / empresa")
    manager_name_raw: Optional[str] = Field(None, alias="managerNameRaw")
    excel_file_name: Optional[str] = Field(None, alias="excelFileName")
    excel_sheet_name: Optional[str] = Field(None, alias="excelSheetName")
    excel_row_ref: Optional[str] = Field(None, alias="excelRowRef")

    @field_validator("*", mode="before")
    @classmethod
    def _to_trimmed_text(cls, value: Any) -> Optional[str]:
        if value is None or isinstance(value, (dict, list, bool)):
            return value
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        return optional_text(str(value))

    @property
    def is_complete(self) -> bool:
        return bool(self.job_number and self.site_name)

    def to_job_row(self) -> JobRow:
        return JobRow(
            job_number=self.job_number,
            site_name=self.site_name,
            client=self.client,
            manager_name_raw=self.manager_name_raw,
            excel_file_name=self.excel_file_name,
            excel_sheet_name=self.excel_sheet_name,
            excel_row_ref=self.excel_row_ref,
        )

    class Config:
        populate_by_name = True


class JobSyncErrorDTO(BaseModel):
    """Error de una fila puntual."""

    job_number: Optional[str] = Field(None, alias="jobNumber")
    row_ref: Optional[str] = Field(None, alias="rowRef")
    message: str

    class Config:
        populate_by_name = True


class JobSyncResponseDTO(BaseModel):
    """Respuesta de POST /api/sync/jobs."""

    success: bool
    count: int = Field(..., description="Cantidad de jobs guardados")
    saved: List[str] = Field(default_factory=list, description="job_numbers guardados")
    created: int = 0
    updated: int = 0
    protected_app_jobs: int = Field(0, alias="protectedAppJobs")
    errors: List[JobSyncErrorDTO] = Field(default_factory=list)

    class Config:
        populate_by_name = True


class ExcelSyncResponseDTO(BaseModel):
    """Respuesta de POST /api/sync/excel."""

    success: bool
    summary: Dict[str, Any]


class SyncRequestResponseDTO(BaseModel):
    """Respuesta de POST /api/sync/request."""

    ok: bool
    message: str
