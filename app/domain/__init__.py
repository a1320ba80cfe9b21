"""
app/domain package marker.
"""

from app.domain.asset_row import AssetRow, CategoryPath, LocationDelta, LocationSnapshot, StatusDelta
from app.domain.fingerprint import fingerprint_row, hash_row
from app.domain.import_task import (
    BatchSummary,
    ImportTaskSnapshot,
    ImportTaskState,
    RowError,
    RowOutcome,
)

__all__ = [
    "AssetRow",
    "BatchSummary",
    "CategoryPath",
    "ImportTaskSnapshot",
    "ImportTaskState",
    "LocationDelta",
    "LocationSnapshot",
    "RowError",
    "RowOutcome",
    "StatusDelta",
    "fingerprint_row",
    "hash_row",
]
