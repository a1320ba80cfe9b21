"""
Asset import endpoints: workbook submission, task progress and batch results.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, UploadFile, status
from sqlalchemy.orm import Session

from app.api.dependencies import get_excel_upload
from app.domain.import_task import ImportTaskSnapshot
from app.schemas.asset_import import (
    ImportBatchResultResponse,
    ImportProgressResponse,
    ImportRowErrorResponse,
    ImportTaskAcceptedResponse,
)
from app.services.import_orchestrator_service import (
    ImportOrchestratorService,
    ImportTaskExecutor,
    ImportUploadError,
    get_import_executor,
    get_import_orchestrator_service,
)
from app.services.import_result_service import ImportResultService, get_import_result_service
from db.session import get_db

router = APIRouter(prefix="/api/import", tags=["asset-import"])


@router.post(
    "/excel",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=ImportTaskAcceptedResponse,
)
def submit_excel_import(
    file: UploadFile = Depends(get_excel_upload),
    operator: str | None = Query(default=None, max_length=50, description="Optional operator recorded on change traces"),
    orchestrator: ImportOrchestratorService = Depends(get_import_orchestrator_service),
    executor: ImportTaskExecutor = Depends(get_import_executor),
) -> ImportTaskAcceptedResponse:
    try:
        task = orchestrator.submit_upload(
            executor=executor,
            upload_file=file,
            operator=operator,
        )
    except ImportUploadError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
    finally:
        file.file.close()

    return ImportTaskAcceptedResponse(
        task_id=task.task_id,
        batch_id=task.batch_id,
        state=task.state,
        created_at=task.created_at,
    )


@router.get("/progress/{task_id}", response_model=ImportProgressResponse)
def get_import_progress(
    task_id: str,
    orchestrator: ImportOrchestratorService = Depends(get_import_orchestrator_service),
) -> ImportProgressResponse:
    task = orchestrator.get_task(task_id)
    if task is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Import task not found: {task_id}",
        )
    return _to_progress_response(task)


@router.get("/result/{batch_id}", response_model=ImportBatchResultResponse)
def get_import_result(
    batch_id: str,
    db: Session = Depends(get_db),
    result_service: ImportResultService = Depends(get_import_result_service),
) -> ImportBatchResultResponse:
    summary = result_service.summarize(db=db, batch_id=batch_id)
    return ImportBatchResultResponse(
        batch_id=summary.batch_id,
        import_timestamp=summary.import_timestamp,
        total_assets=summary.total_assets,
        first_imported_at=summary.first_imported_at,
        last_imported_at=summary.last_imported_at,
        task_id=summary.task_id,
        state=summary.state,
        success_count=summary.success_count,
        failed_count=summary.failed_count,
        elapsed_seconds=summary.elapsed_seconds,
    )


def _to_progress_response(task: ImportTaskSnapshot) -> ImportProgressResponse:
    return ImportProgressResponse(
        task_id=task.task_id,
        batch_id=task.batch_id,
        state=task.state,
        progress=task.progress,
        total_rows=task.total_rows,
        processed_rows=task.processed_rows,
        success_rows=task.success_rows,
        failed_rows=list(task.failed_rows),
        errors=[
            ImportRowErrorResponse(row_number=error.row_number, message=error.message)
            for error in task.errors
        ],
        fatal_error=task.fatal_error,
        file_name=task.file_name,
        created_at=task.created_at,
        started_at=task.started_at,
        completed_at=task.completed_at,
    )
