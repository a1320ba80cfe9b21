"""
Orchestrator service for asset import task dispatch and lifecycle tracking.

Submission stores the upload in a temp file, registers a task and hands one
unit of work to a bounded executor; it never waits for the import itself.
The worker streams workbook rows through the row pipeline with its own
session and reports every row to the task registry.
"""

from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from functools import lru_cache
from typing import Any, Protocol

from fastapi import UploadFile, status
from sqlalchemy.orm import Session, sessionmaker

from app.config import get_asset_import_settings
from app.domain.asset_row import AssetRow
from app.domain.import_task import ImportTaskSnapshot, ImportTaskState
from app.logging_utils import log_event
from app.parsing.workbook_reader import AssetWorkbookReader
from app.services.asset_import_service import (
    AssetImportService,
    AssetPersistenceError,
    RowRejectedError,
    generate_batch_id,
    get_asset_import_service,
)
from app.services.import_task_registry import (
    ImportTaskRecord,
    ImportTaskRegistry,
    get_import_task_registry,
)

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS: tuple[str, ...] = (".xlsx", ".xls")
_UPLOAD_CHUNK_BYTES = 1024 * 1024
_MAX_FATAL_ERROR_LENGTH = 2000


class ImportUploadError(ValueError):
    """
    Raised when an uploaded file is rejected before a task is created.
    """

    def __init__(self, message: str, *, status_code: int = status.HTTP_400_BAD_REQUEST) -> None:
        super().__init__(message)
        self.status_code = status_code


class ImportTaskExecutor(Protocol):
    def submit(self, task: Callable[..., None], *args: Any, **kwargs: Any) -> None:
        ...


class ThreadPoolImportExecutor:
    """
    Bounded worker pool; one submitted import occupies one worker.
    """

    def __init__(self, max_workers: int) -> None:
        self._pool = ThreadPoolExecutor(
            max_workers=max(1, max_workers),
            thread_name_prefix="asset-import",
        )

    def submit(self, task: Callable[..., None], *args: Any, **kwargs: Any) -> None:
        self._pool.submit(task, *args, **kwargs)

    def shutdown(self, *, wait: bool = True) -> None:
        self._pool.shutdown(wait=wait)


class ImportOrchestratorService:
    """
    Coordinates task creation, background execution and task state reporting.
    """

    def __init__(
        self,
        *,
        session_factory: sessionmaker[Session] | None = None,
        registry: ImportTaskRegistry | None = None,
        import_service: AssetImportService | None = None,
        reader: AssetWorkbookReader | None = None,
        max_upload_bytes: int | None = None,
        default_operator: str | None = None,
    ) -> None:
        if session_factory is None:
            from db.session import SessionLocal

            self._session_factory = SessionLocal
        else:
            self._session_factory = session_factory

        settings = get_asset_import_settings()
        self._registry = registry or get_import_task_registry()
        self._import_service = import_service or get_asset_import_service()
        self._reader = reader or AssetWorkbookReader()
        self._max_upload_bytes = max_upload_bytes or settings.max_upload_bytes
        self._default_operator = default_operator or settings.default_operator

    @property
    def registry(self) -> ImportTaskRegistry:
        return self._registry

    def submit_upload(
        self,
        *,
        executor: ImportTaskExecutor,
        upload_file: UploadFile,
        operator: str | None = None,
    ) -> ImportTaskSnapshot:
        file_name = upload_file.filename or "upload.xlsx"
        ensure_allowed_extension(file_name)
        temp_file_path = self._persist_temp_upload(upload_file)
        return self.submit_file(
            executor=executor,
            file_path=temp_file_path,
            file_name=file_name,
            operator=operator,
        )

    def submit_file(
        self,
        *,
        executor: ImportTaskExecutor,
        file_path: str,
        file_name: str,
        operator: str | None = None,
    ) -> ImportTaskSnapshot:
        """
        Register a task for a workbook already on disk. The worker deletes ``file_path``.
        """

        operated_by = (operator or "").strip() or self._default_operator
        batch_id = generate_batch_id(datetime.now())
        task = self._registry.create(batch_id=batch_id, file_name=file_name, operator=operated_by)

        try:
            executor.submit(
                self._run_import_task,
                task.task_id,
                file_path,
                batch_id,
                operated_by,
            )
        except Exception:
            self._delete_file_quietly(file_path)
            self._registry.mark_failed(
                task.task_id,
                error_message="Failed to schedule asset import task.",
            )
            raise

        log_event(
            logger,
            logging.INFO,
            "import_task_submitted",
            task_id=task.task_id,
            batch_id=batch_id,
            file_name=file_name,
            operator=operated_by,
        )
        return task

    def get_task(self, task_id: str) -> ImportTaskSnapshot | None:
        return self._registry.get(task_id)

    def _run_import_task(
        self,
        task_id: str,
        temp_file_path: str,
        batch_id: str,
        operator: str,
    ) -> None:
        try:
            self._registry.mark_processing(task_id, total_rows=0)
            workbook = self._reader.open(temp_file_path)
            self._registry.update(task_id, _set_total_rows(workbook.total_rows))
            log_event(
                logger,
                logging.INFO,
                "import_task_started",
                task_id=task_id,
                batch_id=batch_id,
                total_rows=workbook.total_rows,
            )

            with self._session_factory() as db:
                for row in workbook.iter_rows():
                    self._import_row(db=db, task_id=task_id, row=row, batch_id=batch_id, operator=operator)

            completed = self._registry.mark_completed(task_id)
            if completed is None:
                raise RuntimeError(f"Import task not found: {task_id}")
            log_event(
                logger,
                logging.INFO,
                "import_task_completed",
                task_id=task_id,
                batch_id=batch_id,
                total_rows=completed.total_rows,
                success_rows=completed.success_rows,
                failed_rows=len(completed.failed_rows),
            )
        except Exception as exc:
            self._mark_task_failed(task_id=task_id, batch_id=batch_id, exc=exc)
        finally:
            self._delete_file_quietly(temp_file_path)

    def _import_row(
        self,
        *,
        db: Session,
        task_id: str,
        row: AssetRow,
        batch_id: str,
        operator: str,
    ) -> None:
        try:
            self._import_service.import_row(db=db, row=row, batch_id=batch_id, operator=operator)
        except (RowRejectedError, AssetPersistenceError) as exc:
            self._registry.record_failure(task_id, row_number=row.row_number, message=str(exc))
            return
        except Exception as exc:
            db.rollback()
            logger.exception("Unexpected error importing row task=%s row=%s", task_id, row.row_number)
            self._registry.record_failure(
                task_id,
                row_number=row.row_number,
                message=f"{type(exc).__name__}: {exc}",
            )
            return
        self._registry.record_success(task_id)

    def _mark_task_failed(self, *, task_id: str, batch_id: str, exc: Exception) -> None:
        error_message = f"{type(exc).__name__}: {exc}"
        logger.exception("Asset import task failed id=%s error=%s", task_id, error_message)
        failed = self._registry.mark_failed(task_id, error_message=error_message[:_MAX_FATAL_ERROR_LENGTH])
        if failed is None:
            logger.error("Unable to mark import task as failed because it was not found id=%s", task_id)
            return
        if failed.state == ImportTaskState.FAILED:
            log_event(
                logger,
                logging.ERROR,
                "import_task_failed",
                task_id=task_id,
                batch_id=batch_id,
                error=failed.fatal_error,
            )

    def _persist_temp_upload(self, upload_file: UploadFile) -> str:
        _, ext = os.path.splitext(upload_file.filename or "")
        suffix = ext.lower() if ext else ".xlsx"
        upload_file.file.seek(0)

        with tempfile.NamedTemporaryFile(delete=False, prefix="asset_import_", suffix=suffix) as temp_file:
            temp_path = temp_file.name
            file_size = 0
            while True:
                chunk = upload_file.file.read(_UPLOAD_CHUNK_BYTES)
                if not chunk:
                    break
                file_size += len(chunk)
                if file_size > self._max_upload_bytes:
                    break
                temp_file.write(chunk)

        upload_file.file.seek(0)
        if file_size > self._max_upload_bytes:
            self._delete_file_quietly(temp_path)
            raise ImportUploadError(
                f"File exceeds the maximum upload size of {self._max_upload_bytes} bytes.",
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            )
        if file_size == 0:
            self._delete_file_quietly(temp_path)
            raise ImportUploadError("Uploaded file is empty.")
        return temp_path

    def _delete_file_quietly(self, file_path: str) -> None:
        try:
            os.remove(file_path)
        except OSError:
            return


def ensure_allowed_extension(file_name: str) -> None:
    """
    Raise ImportUploadError unless ``file_name`` has an Excel extension.
    """

    if not file_name.strip().lower().endswith(ALLOWED_EXTENSIONS):
        raise ImportUploadError("Only Excel files (.xlsx, .xls) are allowed.")


def _set_total_rows(total_rows: int) -> Callable[[ImportTaskRecord], None]:
    def _apply(record: ImportTaskRecord) -> None:
        record.total_rows = total_rows

    return _apply


@lru_cache(maxsize=1)
def get_import_executor() -> ThreadPoolImportExecutor:
    return ThreadPoolImportExecutor(max_workers=get_asset_import_settings().max_workers)


@lru_cache(maxsize=1)
def get_import_orchestrator_service() -> ImportOrchestratorService:
    return ImportOrchestratorService()
