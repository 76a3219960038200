"""
Casos de uso de la aplicacion.
"""
from .job_sync_use_cases import JobSyncUseCases

__all__ = ["JobSyncUseCases"]
