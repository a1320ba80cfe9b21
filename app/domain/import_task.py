"""
app/domain/import_task.py

Import task lifecycle types shared by the registry, orchestrator and API layer.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


class ImportTaskState:
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

    TERMINAL = frozenset({COMPLETED, FAILED})


class RowOutcome:
    CREATED = "created"
    SKIPPED_DUPLICATE = "skipped_duplicate"


@dataclass(frozen=True)
class RowError:
    """
    One rejected sheet row.
    """

    row_number: int
    message: str


@dataclass(frozen=True)
class ImportTaskSnapshot:
    """
    Immutable view of an import task handed to pollers.
    """

    task_id: str
    batch_id: str
    state: str
    progress: float
    total_rows: int
    processed_rows: int
    success_rows: int
    failed_rows: tuple[int, ...]
    errors: tuple[RowError, ...]
    fatal_error: str | None
    file_name: str | None
    operator: str | None
    created_at: datetime
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return self.state in ImportTaskState.TERMINAL


@dataclass(frozen=True)
class BatchSummary:
    """
    Persisted-store view of one import batch, optionally enriched with task counters.
    """

    batch_id: str
    total_assets: int
    import_timestamp: datetime
    first_imported_at: datetime | None = None
    last_imported_at: datetime | None = None
    task_id: str | None = None
    state: str | None = None
    success_count: int | None = None
    failed_count: int | None = None
    elapsed_seconds: float | None = None
