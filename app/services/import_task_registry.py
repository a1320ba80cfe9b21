"""
app/services/import_task_registry.py

Process-local registry of running and recently finished import tasks.

Tasks are mutated by their worker thread and read by HTTP pollers. All
access goes through one lock; readers only ever see frozen snapshots.
Terminal tasks stay visible for ``task_ttl_seconds`` and are then evicted
by ``purge_expired``.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Protocol

from app.config import get_asset_import_settings
from app.domain.import_task import ImportTaskSnapshot, ImportTaskState, RowError

logger = logging.getLogger(__name__)

IN_FLIGHT_PROGRESS_CAP = 0.99


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ImportTaskRecord:
    """
    Mutable task state. Only the registry hands this out, and only under its lock.
    """

    task_id: str
    batch_id: str
    created_at: datetime
    file_name: str | None = None
    operator: str | None = None
    state: str = ImportTaskState.PENDING
    progress: float = 0.0
    total_rows: int = 0
    processed_rows: int = 0
    success_rows: int = 0
    failed_rows: list[int] = field(default_factory=list)
    errors: list[RowError] = field(default_factory=list)
    fatal_error: str | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None

    def snapshot(self) -> ImportTaskSnapshot:
        return ImportTaskSnapshot(
            task_id=self.task_id,
            batch_id=self.batch_id,
            state=self.state,
            progress=self.progress,
            total_rows=self.total_rows,
            processed_rows=self.processed_rows,
            success_rows=self.success_rows,
            failed_rows=tuple(self.failed_rows),
            errors=tuple(self.errors),
            fatal_error=self.fatal_error,
            file_name=self.file_name,
            operator=self.operator,
            created_at=self.created_at,
            started_at=self.started_at,
            completed_at=self.completed_at,
        )

    @property
    def is_terminal(self) -> bool:
        return self.state in ImportTaskState.TERMINAL


class ImportTaskRegistry(Protocol):
    def create(
        self,
        *,
        batch_id: str,
        file_name: str | None = None,
        operator: str | None = None,
    ) -> ImportTaskSnapshot:
        ...

    def get(self, task_id: str) -> ImportTaskSnapshot | None:
        ...

    def find_by_batch(self, batch_id: str) -> ImportTaskSnapshot | None:
        ...

    def update(
        self,
        task_id: str,
        mutator: Callable[[ImportTaskRecord], None],
    ) -> ImportTaskSnapshot | None:
        ...

    def mark_processing(self, task_id: str, *, total_rows: int) -> ImportTaskSnapshot | None:
        ...

    def record_success(self, task_id: str) -> ImportTaskSnapshot | None:
        ...

    def record_failure(self, task_id: str, *, row_number: int, message: str) -> ImportTaskSnapshot | None:
        ...

    def mark_completed(self, task_id: str) -> ImportTaskSnapshot | None:
        ...

    def mark_failed(self, task_id: str, *, error_message: str) -> ImportTaskSnapshot | None:
        ...

    def purge_expired(self) -> int:
        ...


class InMemoryImportTaskRegistry:
    """
    Lock-guarded dict of task records keyed by task id.
    """

    def __init__(
        self,
        *,
        progress_interval: int = 10,
        task_ttl_seconds: int = 86400,
        max_recorded_errors: int = 1000,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._progress_interval = max(1, progress_interval)
        self._task_ttl = timedelta(seconds=max(1, task_ttl_seconds))
        self._max_recorded_errors = max(1, max_recorded_errors)
        self._clock = clock
        self._lock = threading.Lock()
        self._tasks: dict[str, ImportTaskRecord] = {}
        self._task_by_batch: dict[str, str] = {}

    def create(
        self,
        *,
        batch_id: str,
        file_name: str | None = None,
        operator: str | None = None,
    ) -> ImportTaskSnapshot:
        record = ImportTaskRecord(
            task_id=str(uuid.uuid4()),
            batch_id=batch_id,
            created_at=self._clock(),
            file_name=file_name,
            operator=operator,
        )
        with self._lock:
            self._tasks[record.task_id] = record
            self._task_by_batch[batch_id] = record.task_id
            return record.snapshot()

    def get(self, task_id: str) -> ImportTaskSnapshot | None:
        with self._lock:
            record = self._tasks.get(task_id)
            return record.snapshot() if record is not None else None

    def find_by_batch(self, batch_id: str) -> ImportTaskSnapshot | None:
        with self._lock:
            task_id = self._task_by_batch.get(batch_id)
            record = self._tasks.get(task_id) if task_id else None
            return record.snapshot() if record is not None else None

    def update(
        self,
        task_id: str,
        mutator: Callable[[ImportTaskRecord], None],
    ) -> ImportTaskSnapshot | None:
        """
        Apply ``mutator`` to a non-terminal task. Terminal tasks are returned unchanged.
        """

        with self._lock:
            record = self._tasks.get(task_id)
            if record is None:
                return None
            if not record.is_terminal:
                mutator(record)
            return record.snapshot()

    def mark_processing(self, task_id: str, *, total_rows: int) -> ImportTaskSnapshot | None:
        def _start(record: ImportTaskRecord) -> None:
            record.state = ImportTaskState.PROCESSING
            record.total_rows = max(0, total_rows)
            record.started_at = self._clock()

        return self.update(task_id, _start)

    def record_success(self, task_id: str) -> ImportTaskSnapshot | None:
        def _success(record: ImportTaskRecord) -> None:
            record.processed_rows += 1
            record.success_rows += 1
            self._publish_progress(record)

        return self.update(task_id, _success)

    def record_failure(self, task_id: str, *, row_number: int, message: str) -> ImportTaskSnapshot | None:
        def _failure(record: ImportTaskRecord) -> None:
            record.processed_rows += 1
            record.failed_rows.append(row_number)
            if len(record.errors) < self._max_recorded_errors:
                record.errors.append(RowError(row_number=row_number, message=message))
            self._publish_progress(record)

        return self.update(task_id, _failure)

    def mark_completed(self, task_id: str) -> ImportTaskSnapshot | None:
        def _complete(record: ImportTaskRecord) -> None:
            record.state = ImportTaskState.COMPLETED
            record.progress = 1.0
            record.completed_at = self._clock()

        return self.update(task_id, _complete)

    def mark_failed(self, task_id: str, *, error_message: str) -> ImportTaskSnapshot | None:
        def _fail(record: ImportTaskRecord) -> None:
            record.state = ImportTaskState.FAILED
            record.fatal_error = error_message
            record.progress = 1.0
            record.completed_at = self._clock()

        return self.update(task_id, _fail)

    def purge_expired(self) -> int:
        """
        Evict terminal tasks whose completion is older than the TTL. Returns the eviction count.
        """

        cutoff = self._clock() - self._task_ttl
        with self._lock:
            expired = [
                record
                for record in self._tasks.values()
                if record.is_terminal
                and record.completed_at is not None
                and record.completed_at <= cutoff
            ]
            for record in expired:
                del self._tasks[record.task_id]
                if self._task_by_batch.get(record.batch_id) == record.task_id:
                    del self._task_by_batch[record.batch_id]

        if expired:
            logger.info("Evicted expired import tasks count=%d", len(expired))
        return len(expired)

    def _publish_progress(self, record: ImportTaskRecord) -> None:
        if record.total_rows <= 0:
            return
        if record.processed_rows % self._progress_interval != 0 and record.processed_rows != record.total_rows:
            return
        ratio = min(record.processed_rows / record.total_rows, IN_FLIGHT_PROGRESS_CAP)
        record.progress = max(record.progress, ratio)


@lru_cache(maxsize=1)
def get_import_task_registry() -> InMemoryImportTaskRegistry:
    """
    Build and cache the process-wide registry with env-driven settings.
    """

    settings = get_asset_import_settings()
    return InMemoryImportTaskRegistry(
        progress_interval=settings.progress_interval,
        task_ttl_seconds=settings.task_ttl_seconds,
        max_recorded_errors=settings.max_recorded_errors,
    )
