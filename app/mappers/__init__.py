"""
app/mappers package marker.
"""

from app.mappers.asset_sheet_mapper import (
    DEFAULT_COLUMN_ALIASES,
    REQUIRED_FIELDS,
    AssetSheetMapper,
    MissingColumnsError,
    SheetColumnMapping,
    normalize_header,
)

__all__ = [
    "DEFAULT_COLUMN_ALIASES",
    "REQUIRED_FIELDS",
    "AssetSheetMapper",
    "MissingColumnsError",
    "SheetColumnMapping",
    "normalize_header",
]
