"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.asset_record import AssetRecord, AssetStatus
from db.models.category_node import CategoryNode
from db.models.change_trace import ChangeTraceEntry, ChangeType
from db.models.location_timeline import LocationTimelineEntry
from db.models.warranty_record import WarrantyRecord

__all__ = [
    "AssetRecord",
    "AssetStatus",
    "CategoryNode",
    "ChangeTraceEntry",
    "ChangeType",
    "LocationTimelineEntry",
    "WarrantyRecord",
]
