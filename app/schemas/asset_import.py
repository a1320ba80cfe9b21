"""
Schemas for asset import submission, progress and batch result endpoints.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class ImportTaskAcceptedResponse(BaseModel):
    task_id: str
    batch_id: str
    state: str
    created_at: datetime


class ImportRowErrorResponse(BaseModel):
    row_number: int = Field(ge=1)
    message: str


class ImportProgressResponse(BaseModel):
    task_id: str
    batch_id: str
    state: str
    progress: float = Field(ge=0.0, le=1.0)
    total_rows: int = Field(ge=0)
    processed_rows: int = Field(ge=0)
    success_rows: int = Field(ge=0)
    failed_rows: list[int] = Field(default_factory=list)
    errors: list[ImportRowErrorResponse] = Field(default_factory=list)
    fatal_error: str | None = None
    file_name: str | None = None
    created_at: datetime
    started_at: datetime | None = None
    completed_at: datetime | None = None


class ImportBatchResultResponse(BaseModel):
    batch_id: str
    import_timestamp: datetime
    total_assets: int = Field(ge=0)
    first_imported_at: datetime | None = None
    last_imported_at: datetime | None = None
    task_id: str | None = None
    state: str | None = None
    success_count: int | None = None
    failed_count: int | None = None
    elapsed_seconds: float | None = None
