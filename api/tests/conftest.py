"""
Configuración de fixtures para pytest.
"""
import os

# La app crea el engine al importarse: en tests nunca debe apuntar a Postgres.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("EXCEL_SYNC_TOKEN", "")

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.infrastructure.database.session import Base
from app.infrastructure.database import models  # noqa: F401  (registra las tablas)


# URL de base de datos de prueba
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker, None]:
    """
    Session factory sobre una base en memoria compartida por todas las
    sesiones del test (StaticPool = una sola conexión).
    """
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_factory: async_sessionmaker) -> AsyncGenerator[AsyncSession, None]:
    """Sesión de base de datos para tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def sync_token(monkeypatch: pytest.MonkeyPatch) -> str:
    """Configura el secreto del servidor para el test."""
    from app.core.config import settings

    token = "test-sync-secret"
    monkeypatch.setattr(settings, "EXCEL_SYNC_TOKEN", token)
    return token
