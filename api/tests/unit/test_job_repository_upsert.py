"""
Tests unitarios del UPSERT por job_number (SQLite en memoria).

Verifica:
- Insert con source=EXCEL y metadatos de procedencia.
- Re-import idempotente que no pisa manager_id / supplier_id.
- Jobs creados desde el panel (source=APP) protegidos.
- Dry run sin escrituras.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select

from app.infrastructure.database.models import JobModel, ManagerModel
from app.infrastructure.external.excel_sync.types import JobRow
from app.infrastructure.repositories.job_repository import (
    CREATED,
    PROTECTED,
    UPDATED,
    JobRepository,
)
from app.shared.constants.job_constants import JobSource


NOW = datetime(2025, 3, 1, 9, 0, 0, tzinfo=timezone.utc)


def _row(job_number: str = "1234", site_name: str = "Main St", **kwargs) -> JobRow:
    kwargs.setdefault("excel_file_name", "jobs.xlsx")
    kwargs.setdefault("excel_sheet_name", "Jobs")
    kwargs.setdefault("excel_row_ref", "Jobs:R2")
    return JobRow(job_number=job_number, site_name=site_name, **kwargs)


async def _get(db_session, job_number: str) -> JobModel:
    db_session.expire_all()
    result = await db_session.execute(select(JobModel).where(JobModel.job_number == job_number))
    return result.scalars().one()


# Columnas que un re-import no debe modificar (imported_at y updated_at si cambian)
_STABLE_COLUMNS = [c.name for c in JobModel.__table__.columns if c.name not in ("imported_at", "updated_at")]


async def _snapshot(db_session, job_number: str) -> dict:
    job = await _get(db_session, job_number)
    return {name: getattr(job, name) for name in _STABLE_COLUMNS}


@pytest.mark.asyncio
async def test_upsert_inserts_new_job_as_excel(db_session) -> None:
    repo = JobRepository(db_session)

    outcome = await repo.upsert_job(_row(client="Acme"), imported_at=NOW)
    await db_session.commit()

    assert outcome == CREATED
    job = await _get(db_session, "1234")
    assert job.site_name == "Main St"
    assert job.client == "Acme"
    assert job.source == JobSource.EXCEL
    assert job.excel_row_ref == "Jobs:R2"
    assert job.imported_at is not None
    assert job.manager_id is None


@pytest.mark.asyncio
async def test_reimport_updates_fields_and_keeps_manager(db_session) -> None:
    manager = ManagerModel(name="Ana")
    db_session.add(manager)
    await db_session.flush()
    manager_id = manager.id
    db_session.add(JobModel(
        job_number="1234",
        site_name="Old name",
        source=JobSource.EXCEL,
        manager_id=manager_id,
    ))
    await db_session.commit()

    repo = JobRepository(db_session)
    outcome = await repo.upsert_job(
        _row(site_name="New name", manager_name_raw="Somebody else"),
        imported_at=NOW,
    )
    await db_session.commit()

    assert outcome == UPDATED
    job = await _get(db_session, "1234")
    assert job.site_name == "New name"
    assert job.manager_name_raw == "Somebody else"
    assert job.manager_id == manager_id
    assert job.source == JobSource.EXCEL


@pytest.mark.asyncio
async def test_running_twice_is_idempotent(db_session) -> None:
    repo = JobRepository(db_session)
    rows = [_row("1"), _row("2", "Depot")]

    first = await repo.upsert_jobs(rows, imported_at=NOW)
    await db_session.commit()
    before = {n: await _snapshot(db_session, n) for n in ("1", "2")}
    first_imported_at = (await _get(db_session, "1")).imported_at

    second = await repo.upsert_jobs(rows, imported_at=NOW + timedelta(minutes=5))
    await db_session.commit()
    after = {n: await _snapshot(db_session, n) for n in ("1", "2")}

    assert after == before
    assert (await _get(db_session, "1")).imported_at != first_imported_at

    assert (first.created, first.updated) == (2, 0)
    assert (second.created, second.updated) == (0, 2)
    assert second.saved == ["1", "2"]
    assert await repo.count() == 2


@pytest.mark.asyncio
async def test_duplicate_job_number_in_batch_counts_as_update(db_session) -> None:
    repo = JobRepository(db_session)

    result = await repo.upsert_jobs([_row("7", "First"), _row("7", "Second")], imported_at=NOW)
    await db_session.commit()

    assert (result.created, result.updated) == (1, 1)
    job = await _get(db_session, "7")
    assert job.site_name == "Second"


@pytest.mark.asyncio
async def test_app_jobs_are_protected(db_session) -> None:
    db_session.add(JobModel(job_number="500", site_name="Typed in panel", source=JobSource.APP))
    await db_session.commit()

    repo = JobRepository(db_session)
    result = await repo.upsert_jobs([_row("500", "From sheet"), _row("501")], imported_at=NOW)
    await db_session.commit()

    assert result.protected_app_jobs == 1
    assert result.created == 1
    assert result.saved == ["501"]
    job = await _get(db_session, "500")
    assert job.site_name == "Typed in panel"
    assert job.source == JobSource.APP


@pytest.mark.asyncio
async def test_app_jobs_can_be_overwritten_when_protection_is_off(db_session) -> None:
    db_session.add(JobModel(job_number="500", site_name="Typed in panel", source=JobSource.APP))
    await db_session.commit()

    repo = JobRepository(db_session)
    outcome = await repo.upsert_job(_row("500", "From sheet"), imported_at=NOW, protect_app_jobs=False)
    await db_session.commit()

    assert outcome == UPDATED
    job = await _get(db_session, "500")
    assert job.site_name == "From sheet"
    # source no se reescribe en un update
    assert job.source == JobSource.APP


@pytest.mark.asyncio
async def test_preview_upsert_does_not_write(db_session) -> None:
    db_session.add(JobModel(job_number="1", site_name="Existing", source=JobSource.EXCEL))
    db_session.add(JobModel(job_number="2", site_name="Panel", source=JobSource.APP))
    await db_session.commit()

    repo = JobRepository(db_session)
    result = await repo.preview_upsert([_row("1"), _row("2"), _row("3"), _row("3")])

    assert result.dry_run is True
    assert result.would_update == 2
    assert result.would_create == 1
    assert result.protected_app_jobs == 1
    assert result.saved == []
    assert await repo.count() == 2


@pytest.mark.asyncio
async def test_get_by_job_number(db_session) -> None:
    repo = JobRepository(db_session)
    await repo.upsert_job(_row("42"), imported_at=NOW)
    await db_session.commit()

    assert (await repo.get_by_job_number("42")).site_name == "Main St"
    assert await repo.get_by_job_number("43") is None


@pytest.mark.asyncio
async def test_outcome_comes_from_pre_read_source(db_session, monkeypatch) -> None:
    """
    Si otro proceso inserta el job entre la lectura previa y el UPSERT,
    la fila igual se actualiza (sin duplicado) aunque se informe como creada.
    """
    db_session.add(JobModel(job_number="88", site_name="Inserted elsewhere", source=JobSource.EXCEL))
    await db_session.commit()

    async def _empty_pre_read(self, job_numbers):
        return {}

    # La lectura previa no ve el job: simula el insert concurrente
    monkeypatch.setattr(JobRepository, "get_sources", _empty_pre_read)
    repo = JobRepository(db_session)
    outcome = await repo.upsert_job(_row("88", "From sheet"), imported_at=NOW)
    await db_session.commit()
    monkeypatch.undo()

    assert outcome == CREATED
    assert await repo.count() == 1
    job = await _get(db_session, "88")
    assert job.site_name == "From sheet"
