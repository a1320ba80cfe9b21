"""
app/services package marker.
"""

from app.services.asset_import_service import (
    AssetImportService,
    AssetPersistenceError,
    RowRejectedError,
    get_asset_import_service,
)
from app.services.import_orchestrator_service import (
    ImportOrchestratorService,
    ImportUploadError,
    ThreadPoolImportExecutor,
    get_import_executor,
    get_import_orchestrator_service,
)
from app.services.import_result_service import ImportResultService, get_import_result_service
from app.services.import_task_registry import (
    ImportTaskRegistry,
    InMemoryImportTaskRegistry,
    get_import_task_registry,
)

__all__ = [
    "AssetImportService",
    "AssetPersistenceError",
    "RowRejectedError",
    "get_asset_import_service",
    "ImportOrchestratorService",
    "ImportUploadError",
    "ThreadPoolImportExecutor",
    "get_import_executor",
    "get_import_orchestrator_service",
    "ImportResultService",
    "get_import_result_service",
    "ImportTaskRegistry",
    "InMemoryImportTaskRegistry",
    "get_import_task_registry",
]
