"""
app/repositories package marker.
"""

from app.repositories.asset_repository import AssetRepository, BatchStats
from app.repositories.category_repository import CategoryRepository

__all__ = [
    "AssetRepository",
    "BatchStats",
    "CategoryRepository",
]
