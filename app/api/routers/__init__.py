"""
app/api/routers package marker.
"""

from app.api.routers.asset_import import router as asset_import_router

__all__ = [
    "asset_import_router",
]
