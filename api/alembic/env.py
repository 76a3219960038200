"""
Entorno de Alembic para el esquema de jobs.

- La URL sale de settings (DATABASE_URL o sus componentes)
- Los drivers async se cambian por sus equivalentes sync para migrar
- En SQLite se usa render_as_batch (no soporta ALTER TABLE completo)
"""
import sys
from logging.config import fileConfig
from pathlib import Path

from sqlalchemy import engine_from_config, pool
from sqlalchemy.engine import make_url

from alembic import context

# api/ al path para poder importar `app`
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from app.core.config import settings
from app.infrastructure.database.session import Base
from app.infrastructure.database import models  # noqa: F401  (registra las tablas)

_SYNC_DRIVERS = {"asyncpg": "psycopg", "aiosqlite": None}


def _sync_database_url(async_url: str) -> str:
    url = make_url(async_url)
    driver = url.get_driver_name()
    if driver in _SYNC_DRIVERS:
        sync_driver = _SYNC_DRIVERS[driver]
        backend = url.get_backend_name()
        url = url.set(drivername=f"{backend}+{sync_driver}" if sync_driver else backend)
    return url.render_as_string(hide_password=False)


config = context.config
config.set_main_option(
    "sqlalchemy.url",
    _sync_database_url(settings.effective_database_url).replace("%", "%%"),
)
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _is_sqlite(url: str) -> bool:
    return make_url(url).get_backend_name() == "sqlite"


def run_migrations_offline() -> None:
    """Emite el SQL de las migraciones sin conectarse."""
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=_is_sqlite(url),
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Aplica las migraciones contra la base configurada."""
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            render_as_batch=connection.dialect.name == "sqlite",
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
