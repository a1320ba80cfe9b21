"""
app/repositories/asset_repository.py

Persistence helpers for imported asset records.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import exists, func, select
from sqlalchemy.orm import Session

from db.models.asset_record import AssetRecord


@dataclass(frozen=True)
class BatchStats:
    total_assets: int
    first_created_at: datetime | None
    last_created_at: datetime | None


class AssetRepository:
    """
    Repository for asset lookups and inserts used by the import pipeline.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def exists_by_fingerprint(self, fingerprint: str) -> bool:
        stmt = select(exists().where(AssetRecord.data_fingerprint == fingerprint))
        return bool(self._session.execute(stmt).scalar())

    def exists_by_asset_no(self, asset_no: str) -> bool:
        stmt = select(exists().where(AssetRecord.asset_no == asset_no))
        return bool(self._session.execute(stmt).scalar())

    def get_by_asset_no(self, asset_no: str) -> AssetRecord | None:
        stmt = select(AssetRecord).where(AssetRecord.asset_no == asset_no)
        return self._session.execute(stmt).scalars().first()

    def add(self, asset: AssetRecord) -> AssetRecord:
        """
        Stage an asset and its cascaded children, then flush to surface constraint errors.
        """

        self._session.add(asset)
        self._session.flush()
        return asset

    def batch_stats(self, batch_id: str) -> BatchStats:
        stmt = select(
            func.count(AssetRecord.id),
            func.min(AssetRecord.created_at),
            func.max(AssetRecord.created_at),
        ).where(AssetRecord.import_batch == batch_id)
        total, first_created_at, last_created_at = self._session.execute(stmt).one()
        return BatchStats(
            total_assets=int(total or 0),
            first_created_at=first_created_at,
            last_created_at=last_created_at,
        )
