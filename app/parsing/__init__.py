"""
app/parsing package marker.
"""

from app.parsing.workbook_reader import AssetWorkbook, AssetWorkbookReader, WorkbookStructureError

__all__ = [
    "AssetWorkbook",
    "AssetWorkbookReader",
    "WorkbookStructureError",
]
