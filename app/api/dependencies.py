"""
app/api/dependencies.py

Shared FastAPI dependencies for request validation.
"""

from __future__ import annotations

from fastapi import File, HTTPException, UploadFile

from app.services.import_orchestrator_service import ImportUploadError, ensure_allowed_extension


def get_excel_upload(file: UploadFile = File(...)) -> UploadFile:
    """
    Validate that the uploaded file is an Excel workbook by extension.
    """

    try:
        ensure_allowed_extension(file.filename or "")
    except ImportUploadError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc

    return file
