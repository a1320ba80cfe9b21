"""
app/schemas package marker.
"""

from app.schemas.asset_import import (
    ImportBatchResultResponse,
    ImportProgressResponse,
    ImportRowErrorResponse,
    ImportTaskAcceptedResponse,
)

__all__ = [
    "ImportBatchResultResponse",
    "ImportProgressResponse",
    "ImportRowErrorResponse",
    "ImportTaskAcceptedResponse",
]
