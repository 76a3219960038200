"""
Engine, sesiones y ciclo de vida de la base de datos de jobs.

DATABASE_URL (o sus componentes) decide el backend:
- postgresql+asyncpg en producción, con pool
- sqlite+aiosqlite para desarrollo local y tests
"""
from typing import AsyncGenerator

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from app.core.config import settings


Base = declarative_base()


def _create_engine_args(database_url: str) -> dict:
    """Argumentos de create_async_engine según el dialecto de la URL."""
    args = {"echo": settings.DEBUG}

    # SQLite no usa pool de conexiones configurable
    if make_url(database_url).get_backend_name() == "postgresql":
        args.update(
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_pre_ping=True,
        )
    return args


DATABASE_URL = settings.effective_database_url

engine = create_async_engine(DATABASE_URL, **_create_engine_args(DATABASE_URL))

# expire_on_commit=False: los resultados del sync se leen después del commit
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependencia de FastAPI: una sesión por request.

    Confirma al terminar sin errores y revierte si el handler lanza.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Crea las tablas que falten (jobs, managers, suppliers)."""
    # Registra los modelos en Base.metadata antes del create_all
    from app.infrastructure.database import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    await engine.dispose()
