"""
app/services/import_result_service.py

Batch result aggregation over persisted assets and, while it is still
retained, the in-memory task that produced the batch.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import replace
from datetime import datetime, timezone
from functools import lru_cache

from sqlalchemy.orm import Session

from app.domain.import_task import BatchSummary
from app.repositories.asset_repository import AssetRepository
from app.services.import_task_registry import ImportTaskRegistry, get_import_task_registry


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ImportResultService:
    def __init__(
        self,
        *,
        registry: ImportTaskRegistry | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._registry = registry or get_import_task_registry()
        self._clock = clock

    def summarize(self, *, db: Session, batch_id: str) -> BatchSummary:
        """
        Summarize one batch. ``import_timestamp`` is the latest asset creation
        time, or the query time when the batch has no persisted assets.
        """

        now = self._clock()
        stats = AssetRepository(db).batch_stats(batch_id)
        summary = BatchSummary(
            batch_id=batch_id,
            total_assets=stats.total_assets,
            import_timestamp=stats.last_created_at or now,
            first_imported_at=stats.first_created_at,
            last_imported_at=stats.last_created_at,
        )

        task = self._registry.find_by_batch(batch_id)
        if task is None:
            return summary

        end = task.completed_at or now
        start = task.started_at or task.created_at
        return replace(
            summary,
            task_id=task.task_id,
            state=task.state,
            success_count=task.success_rows,
            failed_count=len(task.failed_rows),
            elapsed_seconds=max(0.0, (end - start).total_seconds()),
        )


@lru_cache(maxsize=1)
def get_import_result_service() -> ImportResultService:
    return ImportResultService()
