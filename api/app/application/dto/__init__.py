"""
Data Transfer Objects (DTOs) para la capa de aplicacion.
"""
from .job_sync_dto import (
    IncomingJobDTO,
    JobSyncErrorDTO,
    JobSyncResponseDTO,
    ExcelSyncResponseDTO,
    SyncRequestResponseDTO,
)

__all__ = [
    "IncomingJobDTO",
    "JobSyncErrorDTO",
    "JobSyncResponseDTO",
    "ExcelSyncResponseDTO",
    "SyncRequestResponseDTO",
]
