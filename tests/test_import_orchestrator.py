"""
tests/test_import_orchestrator.py

End-to-end import runs through the orchestrator with inline and deferred
executors, plus upload validation and batch result aggregation.
"""

from __future__ import annotations

import io
import os
import shutil
from pathlib import Path
from typing import Any

import pytest
from fastapi import UploadFile
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.domain.import_task import ImportTaskSnapshot, ImportTaskState
from app.services.asset_import_service import AssetImportService
from app.services.import_orchestrator_service import ImportOrchestratorService, ImportUploadError
from app.services.import_result_service import ImportResultService
from app.services.import_task_registry import InMemoryImportTaskRegistry
from conftest import DeferredExecutor, InlineExecutor, asset_row, write_workbook
from db.models.asset_record import AssetRecord
from db.models.change_trace import ChangeTraceEntry


class RecordingRegistry(InMemoryImportTaskRegistry):
    """
    Registry that remembers every progress value it publishes.
    """

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.progress_seen: list[float] = []

    def record_success(self, task_id: str) -> ImportTaskSnapshot | None:
        snapshot = super().record_success(task_id)
        if snapshot is not None:
            self.progress_seen.append(snapshot.progress)
        return snapshot

    def record_failure(self, task_id: str, *, row_number: int, message: str) -> ImportTaskSnapshot | None:
        snapshot = super().record_failure(task_id, row_number=row_number, message=message)
        if snapshot is not None:
            self.progress_seen.append(snapshot.progress)
        return snapshot


class FailingExecutor:
    def __init__(self) -> None:
        self.task_ids: list[str] = []

    def submit(self, task: Any, *args: Any, **kwargs: Any) -> None:
        self.task_ids.append(args[0])
        raise RuntimeError("executor is shut down")


def _count_assets(db: Session) -> int:
    return db.execute(select(func.count()).select_from(AssetRecord)).scalar_one()


def _copy(source: Path, target: Path) -> str:
    shutil.copyfile(source, target)
    return str(target)


@pytest.fixture()
def mixed_workbook(tmp_path: Path) -> Path:
    # sheet row 3 carries a level-3 category from another branch
    return write_workbook(
        tmp_path / "mixed.xlsx",
        [asset_row(1), asset_row(2, **{"三级分类": 211}), asset_row(3)],
    )


def test_partial_failure_completes_with_row_errors(
    orchestrator: ImportOrchestratorService,
    registry: InMemoryImportTaskRegistry,
    mixed_workbook: Path,
    tmp_path: Path,
    db_session: Session,
) -> None:
    executor = InlineExecutor()
    path = _copy(mixed_workbook, tmp_path / "upload.xlsx")

    accepted = orchestrator.submit_file(executor=executor, file_path=path, file_name="mixed.xlsx")
    task = registry.get(accepted.task_id)

    assert accepted.state == ImportTaskState.PENDING
    assert executor.submitted == 1
    assert task.state == ImportTaskState.COMPLETED
    assert task.progress == 1.0
    assert task.total_rows == 3
    assert task.processed_rows == 3
    assert task.success_rows == 2
    assert task.failed_rows == (3,)
    assert len(task.errors) == 1
    assert task.errors[0].row_number == 3
    assert "not a child of level 2 category 11" in task.errors[0].message
    assert task.operator == "EXCEL_IMPORT"
    assert task.started_at is not None and task.completed_at is not None
    assert _count_assets(db_session) == 2
    assert not os.path.exists(path)


def test_resubmitting_the_same_workbook_creates_nothing(
    orchestrator: ImportOrchestratorService,
    registry: InMemoryImportTaskRegistry,
    tmp_path: Path,
    db_session: Session,
) -> None:
    source = write_workbook(tmp_path / "assets.xlsx", [asset_row(1), asset_row(2), asset_row(3)])
    executor = InlineExecutor()

    first = orchestrator.submit_file(
        executor=executor,
        file_path=_copy(source, tmp_path / "first.xlsx"),
        file_name="assets.xlsx",
    )
    second = orchestrator.submit_file(
        executor=executor,
        file_path=_copy(source, tmp_path / "second.xlsx"),
        file_name="assets.xlsx",
    )

    assert first.batch_id != second.batch_id
    rerun = registry.get(second.task_id)
    assert rerun.state == ImportTaskState.COMPLETED
    assert rerun.success_rows == 3
    assert rerun.failed_rows == ()
    assert _count_assets(db_session) == 3
    batches = db_session.execute(select(AssetRecord.import_batch).distinct()).scalars().all()
    assert batches == [first.batch_id]


def test_missing_header_fails_task_without_processing_rows(
    orchestrator: ImportOrchestratorService,
    registry: InMemoryImportTaskRegistry,
    tmp_path: Path,
) -> None:
    headers = ("资产编号", "资产名称", "二级分类", "三级分类")
    path = write_workbook(tmp_path / "no_l1.xlsx", [asset_row(1)], headers=headers)

    accepted = orchestrator.submit_file(executor=InlineExecutor(), file_path=str(path), file_name="no_l1.xlsx")
    task = registry.get(accepted.task_id)

    assert task.state == ImportTaskState.FAILED
    assert task.fatal_error.startswith("WorkbookStructureError: ")
    assert "category_l1" in task.fatal_error
    assert task.processed_rows == 0
    assert task.progress == 1.0
    assert not path.exists()


def test_scheduling_failure_marks_task_failed_and_removes_file(
    orchestrator: ImportOrchestratorService,
    registry: InMemoryImportTaskRegistry,
    mixed_workbook: Path,
) -> None:
    executor = FailingExecutor()

    with pytest.raises(RuntimeError, match="shut down"):
        orchestrator.submit_file(executor=executor, file_path=str(mixed_workbook), file_name="mixed.xlsx")

    task = registry.get(executor.task_ids[0])
    assert task.state == ImportTaskState.FAILED
    assert task.fatal_error == "Failed to schedule asset import task."
    assert not mixed_workbook.exists()


def test_task_stays_pending_until_a_worker_picks_it_up(
    orchestrator: ImportOrchestratorService,
    registry: InMemoryImportTaskRegistry,
    mixed_workbook: Path,
) -> None:
    executor = DeferredExecutor()

    accepted = orchestrator.submit_file(executor=executor, file_path=str(mixed_workbook), file_name="mixed.xlsx")
    pending = registry.get(accepted.task_id)

    assert pending.state == ImportTaskState.PENDING
    assert pending.progress == 0.0
    assert pending.started_at is None

    executor.run_all()

    assert registry.get(accepted.task_id).state == ImportTaskState.COMPLETED


def test_progress_never_decreases(
    session_factory: Any,
    categories: dict[str, int],
    import_service: AssetImportService,
    tmp_path: Path,
) -> None:
    registry = RecordingRegistry(progress_interval=2, task_ttl_seconds=3600, max_recorded_errors=10)
    orchestrator = ImportOrchestratorService(
        session_factory=session_factory,
        registry=registry,
        import_service=import_service,
        max_upload_bytes=1024 * 1024,
    )
    rows = [asset_row(index) for index in range(1, 8)]
    rows[3] = asset_row(4, **{"一级分类": 99})
    path = write_workbook(tmp_path / "assets.xlsx", rows)

    accepted = orchestrator.submit_file(executor=InlineExecutor(), file_path=str(path), file_name="assets.xlsx")

    assert registry.progress_seen == sorted(registry.progress_seen)
    assert max(registry.progress_seen) <= 0.99
    final = registry.get(accepted.task_id)
    assert final.progress == 1.0
    assert final.failed_rows == (5,)


def test_operator_flows_to_task_and_traces(
    orchestrator: ImportOrchestratorService,
    registry: InMemoryImportTaskRegistry,
    mixed_workbook: Path,
    db_session: Session,
) -> None:
    accepted = orchestrator.submit_file(
        executor=InlineExecutor(),
        file_path=str(mixed_workbook),
        file_name="mixed.xlsx",
        operator="  bob  ",
    )

    assert registry.get(accepted.task_id).operator == "bob"
    operators = db_session.execute(select(ChangeTraceEntry.operated_by).distinct()).scalars().all()
    assert operators == ["bob"]


def test_submit_upload_imports_the_uploaded_bytes(
    orchestrator: ImportOrchestratorService,
    registry: InMemoryImportTaskRegistry,
    mixed_workbook: Path,
) -> None:
    upload = UploadFile(file=io.BytesIO(mixed_workbook.read_bytes()), filename="assets.xlsx")

    accepted = orchestrator.submit_upload(executor=InlineExecutor(), upload_file=upload)

    task = registry.get(accepted.task_id)
    assert task.file_name == "assets.xlsx"
    assert task.state == ImportTaskState.COMPLETED
    assert task.success_rows == 2


@pytest.mark.parametrize(
    ("filename", "payload", "max_bytes", "status_code", "message"),
    [
        ("assets.csv", b"a,b\n", 1024, 400, "Only Excel files"),
        ("assets.xlsx", b"", 1024, 400, "empty"),
        ("assets.xlsx", b"x" * 2048, 1024, 413, "maximum upload size of 1024 bytes"),
    ],
)
def test_rejected_uploads_never_create_tasks(
    session_factory: Any,
    registry: InMemoryImportTaskRegistry,
    import_service: AssetImportService,
    filename: str,
    payload: bytes,
    max_bytes: int,
    status_code: int,
    message: str,
) -> None:
    orchestrator = ImportOrchestratorService(
        session_factory=session_factory,
        registry=registry,
        import_service=import_service,
        max_upload_bytes=max_bytes,
    )
    executor = InlineExecutor()
    upload = UploadFile(file=io.BytesIO(payload), filename=filename)

    with pytest.raises(ImportUploadError, match=message) as excinfo:
        orchestrator.submit_upload(executor=executor, upload_file=upload)

    assert excinfo.value.status_code == status_code
    assert executor.submitted == 0


def test_batch_result_combines_store_and_task(
    orchestrator: ImportOrchestratorService,
    registry: InMemoryImportTaskRegistry,
    mixed_workbook: Path,
    db_session: Session,
) -> None:
    accepted = orchestrator.submit_file(executor=InlineExecutor(), file_path=str(mixed_workbook), file_name="mixed.xlsx")

    summary = ImportResultService(registry=registry).summarize(db=db_session, batch_id=accepted.batch_id)

    assert summary.total_assets == 2
    assert summary.task_id == accepted.task_id
    assert summary.state == ImportTaskState.COMPLETED
    assert summary.success_count == 2
    assert summary.failed_count == 1
    assert summary.elapsed_seconds >= 0.0
    assert summary.first_imported_at is not None
    assert summary.import_timestamp == summary.last_imported_at


def test_batch_result_for_unknown_batch_is_empty(
    registry: InMemoryImportTaskRegistry,
    db_session: Session,
) -> None:
    summary = ImportResultService(registry=registry).summarize(db=db_session, batch_id="IMPORT-UNKNOWN")

    assert summary.total_assets == 0
    assert summary.task_id is None
    assert summary.last_imported_at is None
    assert summary.import_timestamp is not None
