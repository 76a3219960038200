"""
Constantes relacionadas con jobs y su sincronizacion desde Excel.
"""
from enum import Enum


class JobSource(str, Enum):
    """Origen de un job."""
    APP = "APP"  # creado desde el panel de administracion
    EXCEL = "EXCEL"  # importado desde la planilla compartida


# Header HTTP con el secreto compartido del endpoint de sync
SYNC_TOKEN_HEADER = "x-sync-token"

# Claves canonicas de una fila de la planilla
JOB_NUMBER = "jobNumber"
SITE_NAME = "siteName"
CLIENT = "client"
MANAGER_NAME_RAW = "managerNameRaw"

# Alias de headers (ya normalizados: trim + lowercase + espacios colapsados)
HEADER_ALIASES = {
    # jobNumber
    "job": JOB_NUMBER,
    "job number": JOB_NUMBER,
    "jobnumber": JOB_NUMBER,
    "job nr": JOB_NUMBER,
    "job no": JOB_NUMBER,
    "job no.": JOB_NUMBER,
    "job #": JOB_NUMBER,
    "job#": JOB_NUMBER,
    # siteName
    "job name": SITE_NAME,
    "site name": SITE_NAME,
    "site": SITE_NAME,
    # client
    "company": CLIENT,
    "client": CLIENT,
    # managerNameRaw
    "supervis": MANAGER_NAME_RAW,
    "supervisor": MANAGER_NAME_RAW,
    "manager": MANAGER_NAME_RAW,
}

REQUIRED_KEYS = (JOB_NUMBER, SITE_NAME)

# Nombre por defecto cuando la planilla llega como buffer sin nombre
DEFAULT_UPLOAD_FILE_NAME = "uploaded.xlsx"
