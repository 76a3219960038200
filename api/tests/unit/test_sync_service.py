"""
Tests unitarios para el orquestador ExcelJobSync y sus transportes.
"""
from __future__ import annotations

import io
from pathlib import Path
from typing import List, Sequence
from unittest.mock import MagicMock

import openpyxl
import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from app.core.config import Settings
from app.infrastructure.database.models import JobModel
from app.infrastructure.external.excel_sync.remote_client import RemoteJobSyncClient
from app.infrastructure.external.excel_sync.sync_service import (
    DirectJobTransport,
    ExcelJobSync,
    HttpJobTransport,
    build_transport,
)
from app.infrastructure.external.excel_sync.types import JobRow, UpsertResult
from app.infrastructure.repositories.job_repository import JobRepository
from app.shared.exceptions.sync import ExcelReadError, SyncConfigError


def _write_sheet(tmp_path: Path, rows: List[list]) -> str:
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Jobs"
    for row in rows:
        ws.append(row)
    path = tmp_path / "jobs.xlsx"
    wb.save(path)
    return str(path)


async def _stored_rows(session_factory) -> dict:
    """job_number -> columnas guardadas (sin updated_at, que mueve la base)."""
    columns = [c.name for c in JobModel.__table__.columns if c.name != "updated_at"]
    async with session_factory() as session:
        jobs = (await session.execute(select(JobModel))).scalars().all()
        return {job.job_number: {name: getattr(job, name) for name in columns} for job in jobs}


class _RecordingTransport:
    """Transporte fake que guarda lo recibido."""

    name = "fake"

    def __init__(self) -> None:
        self.calls: List[Sequence[JobRow]] = []

    async def send(self, jobs: Sequence[JobRow], *, dry_run: bool = False) -> UpsertResult:
        self.calls.append(list(jobs))
        return UpsertResult(created=len(jobs), saved=[j.job_number for j in jobs], dry_run=dry_run)


@pytest.mark.asyncio
async def test_run_sends_only_valid_rows(tmp_path: Path) -> None:
    path = _write_sheet(tmp_path, [["Job", "Site"], ["1", "A"], ["2", ""], ["3", "C"]])
    transport = _RecordingTransport()

    summary = await ExcelJobSync(transport).run(file_path=path)

    assert [j.job_number for j in transport.calls[0]] == ["1", "3"]
    assert summary.transport == "fake"
    assert summary.success is True
    data = summary.to_dict()
    assert data["rowsRead"] == 3
    assert data["rowsSkipped"] == 1
    assert data["created"] == 2
    assert data["count"] == 2


@pytest.mark.asyncio
async def test_run_without_valid_rows_skips_transport(tmp_path: Path) -> None:
    path = _write_sheet(tmp_path, [["Job", "Site"], ["", "A"]])
    transport = _RecordingTransport()

    summary = await ExcelJobSync(transport).run(file_path=path)

    assert transport.calls == []
    assert summary.upsert.count == 0


@pytest.mark.asyncio
async def test_run_propagates_read_errors(tmp_path: Path) -> None:
    with pytest.raises(ExcelReadError):
        await ExcelJobSync(_RecordingTransport()).run(file_path=str(tmp_path / "missing.xlsx"))


@pytest.mark.asyncio
async def test_run_applies_min_job_number(tmp_path: Path) -> None:
    path = _write_sheet(tmp_path, [["Job", "Site"], ["10", "A"], ["2000", "B"]])
    transport = _RecordingTransport()

    summary = await ExcelJobSync(transport, min_job_number=1000).run(file_path=path)

    assert [j.job_number for j in transport.calls[0]] == ["2000"]
    assert summary.to_dict()["skippedBelowMin"] == 1


@pytest.mark.asyncio
async def test_run_accepts_buffer() -> None:
    wb = openpyxl.Workbook()
    wb.active.append(["Job #", "Site Name"])
    wb.active.append(["55", "Quay"])
    buf = io.BytesIO()
    wb.save(buf)
    transport = _RecordingTransport()

    summary = await ExcelJobSync(transport).run(buffer=buf.getvalue(), file_name="mail.xlsx")

    assert summary.extraction.file_name == "mail.xlsx"
    assert transport.calls[0][0].job_number == "55"


class TestDirectTransport:

    @pytest.mark.asyncio
    async def test_direct_sync_writes_batch(self, tmp_path: Path, session_factory) -> None:
        path = _write_sheet(tmp_path, [["JobNumber", "Job Name"], ["1234.0", "Main St"], ["1235", ""]])
        sync = ExcelJobSync(DirectJobTransport(session_factory))

        summary = await sync.run(file_path=path)

        assert summary.upsert.created == 1
        async with session_factory() as session:
            repo = JobRepository(session)
            job = await repo.get_by_job_number("1234")
            assert job is not None
            assert job.site_name == "Main St"
            assert await repo.count() == 1

    @pytest.mark.asyncio
    async def test_direct_sync_twice_updates(self, tmp_path: Path, session_factory) -> None:
        path = _write_sheet(tmp_path, [["Job", "Site"], ["1", "A"], ["2", "B"]])
        sync = ExcelJobSync(DirectJobTransport(session_factory))

        await sync.run(file_path=path)
        before = await _stored_rows(session_factory)
        summary = await sync.run(file_path=path)
        after = await _stored_rows(session_factory)

        assert (summary.upsert.created, summary.upsert.updated) == (0, 2)
        for job_number in ("1", "2"):
            first_imported_at = before[job_number].pop("imported_at")
            second_imported_at = after[job_number].pop("imported_at")
            assert second_imported_at >= first_imported_at
        assert after == before

    @pytest.mark.asyncio
    async def test_dry_run_writes_nothing(self, tmp_path: Path, session_factory) -> None:
        path = _write_sheet(tmp_path, [["Job", "Site"], ["1", "A"]])
        sync = ExcelJobSync(DirectJobTransport(session_factory))

        summary = await sync.run(file_path=path, dry_run=True)

        assert summary.upsert.dry_run is True
        assert summary.upsert.would_create == 1
        async with session_factory() as session:
            assert await JobRepository(session).count() == 0

    @pytest.mark.asyncio
    async def test_batch_is_rolled_back_on_database_error(self, session_factory, monkeypatch) -> None:
        calls = {"n": 0}
        original = JobRepository.upsert_job

        async def failing_upsert(self, job, **kwargs):
            calls["n"] += 1
            if calls["n"] == 2:
                raise IntegrityError("INSERT", {}, Exception("boom"))
            return await original(self, job, **kwargs)

        monkeypatch.setattr(JobRepository, "upsert_job", failing_upsert)
        transport = DirectJobTransport(session_factory)

        with pytest.raises(IntegrityError):
            await transport.send([JobRow("1", "A"), JobRow("2", "B")])

        async with session_factory() as session:
            assert await JobRepository(session).count() == 0


class TestHttpTransport:

    @pytest.mark.asyncio
    async def test_remote_send_maps_response(self) -> None:
        client = MagicMock(spec=RemoteJobSyncClient)
        client.push_jobs.return_value = {
            "success": False,
            "count": 1,
            "saved": ["1"],
            "created": 1,
            "updated": 0,
            "errors": [{"jobNumber": "2", "rowRef": "Jobs:R3", "message": "db error"}],
        }

        result = await HttpJobTransport(client).send([JobRow("1", "A"), JobRow("2", "B")])

        client.push_jobs.assert_called_once()
        assert result.created == 1
        assert result.saved == ["1"]
        assert result.errors[0].row_ref == "Jobs:R3"

    @pytest.mark.asyncio
    async def test_remote_dry_run_sends_nothing(self) -> None:
        client = MagicMock(spec=RemoteJobSyncClient)

        result = await HttpJobTransport(client).send([JobRow("1", "A")], dry_run=True)

        client.push_jobs.assert_not_called()
        assert result.dry_run is True


class TestBuildTransport:

    def test_remote_mode_requires_url(self) -> None:
        cfg = Settings(SYNC_MODE="remote", SYNC_REMOTE_URL="", EXCEL_SYNC_TOKEN="t")
        with pytest.raises(SyncConfigError):
            build_transport(cfg)

    def test_remote_mode_builds_http_transport(self) -> None:
        cfg = Settings(SYNC_MODE="remote", SYNC_REMOTE_URL="http://panel/api/sync/jobs", EXCEL_SYNC_TOKEN="t")
        assert isinstance(build_transport(cfg), HttpJobTransport)

    def test_override_forces_direct(self) -> None:
        cfg = Settings(SYNC_MODE="remote", SYNC_REMOTE_URL="http://panel/api/sync/jobs", EXCEL_SYNC_TOKEN="t")
        assert isinstance(build_transport(cfg, remote=False), DirectJobTransport)
