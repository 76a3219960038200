"""
Settings del backend de jobs y del agente de sync de la planilla.

Todo se lee de variables de entorno (o .env). Los nombres de los campos
son los de las variables, respetando mayúsculas.
"""
import json
from typing import List

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings
from sqlalchemy.engine import URL


class Settings(BaseSettings):
    """
    Configuración global.

    Sync de la planilla:
    - EXCEL_JOBS_PATH: ruta a la planilla compartida (puede ser UNC en la oficina)
    - EXCEL_SYNC_TOKEN: secreto compartido que valida el header x-sync-token
    - SYNC_MODE: 'direct' escribe en la base local, 'remote' hace POST a SYNC_REMOTE_URL

    La base se define con DATABASE_URL o, si está vacía, con DATABASE_HOST,
    DATABASE_PORT, DATABASE_USER, DATABASE_PASSWORD y DATABASE_NAME.
    """

    # Aplicación y servidor
    APP_NAME: str = Field(default="Panel de Jobs - Sync Excel")
    APP_VERSION: str = Field(default="1.0.0")
    ENVIRONMENT: str = Field(default="production")
    DEBUG: bool = Field(default=False)
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=8000)
    CORS_ORIGINS: str = Field(default="*", description='"*", lista JSON o valores separados por coma')

    # Logs (consola + archivo rotado por loguru)
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FILE: str = Field(default="logs/app.log")

    # Base de datos
    DATABASE_URL: str = Field(default="")
    DATABASE_HOST: str = Field(default="localhost")
    DATABASE_PORT: int = Field(default=5432)
    DATABASE_USER: str = Field(default="jobs_user")
    DATABASE_PASSWORD: str = Field(default="jobs_pass")
    DATABASE_NAME: str = Field(default="jobs_db")
    DB_POOL_SIZE: int = Field(default=5)
    DB_MAX_OVERFLOW: int = Field(default=10)

    # Planilla origen
    EXCEL_JOBS_PATH: str = Field(default="")
    EXCEL_SHEET_NAME: str = Field(default="")
    # 0 desactiva el filtro por numero minimo de job
    EXCEL_MIN_JOB_NUMBER: int = Field(default=0)

    # Seguridad del endpoint de sync
    EXCEL_SYNC_TOKEN: str = Field(default="")

    # Transporte y agente de sincronizacion
    SYNC_MODE: str = Field(default="direct")
    SYNC_REMOTE_URL: str = Field(default="")
    SYNC_HTTP_TIMEOUT_SECONDS: float = Field(default=30.0)
    SYNC_SCHEDULER_ENABLED: bool = Field(default=False)
    SYNC_INTERVAL_SECONDS: int = Field(default=120)
    SYNC_ONLY_ON_CHANGE: bool = Field(default=True)
    SYNC_PROTECT_APP_JOBS: bool = Field(default=True)

    @computed_field
    @property
    def effective_database_url(self) -> str:
        """DATABASE_URL tal cual, o una URL postgresql+asyncpg armada por componentes."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        url = URL.create(
            "postgresql+asyncpg",
            username=self.DATABASE_USER,
            password=self.DATABASE_PASSWORD,
            host=self.DATABASE_HOST,
            port=self.DATABASE_PORT,
            database=self.DATABASE_NAME,
        )
        return url.render_as_string(hide_password=False)

    @computed_field
    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT.strip().lower() == "development"

    @computed_field
    @property
    def is_remote_sync(self) -> bool:
        """True si el agente envía las filas a SYNC_REMOTE_URL."""
        return self.SYNC_MODE.strip().lower() == "remote"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


def get_cors_origins(cors_string: str) -> List[str]:
    """Convierte CORS_ORIGINS en la lista que espera CORSMiddleware."""
    value = (cors_string or "").strip()
    if value == "*":
        return ["*"]
    if value.startswith("["):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            # JSON mal formado: se interpreta como lista separada por comas
            value = value.strip("[]").replace('"', "")
    return [origin.strip() for origin in value.split(",") if origin.strip()]


settings = Settings()
